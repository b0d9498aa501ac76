"""FFmpeg job runner.

Runs a single encode job as a child process and reports a JobOutcome.
"""

import asyncio
import logging
import subprocess
import time
from typing import Optional

from vodpack.core.logging import log_error, log_info
from vodpack.core.metrics import TRANSCODE_JOB_DURATION_SECONDS, TRANSCODE_JOBS_TOTAL
from vodpack.core.tracing import create_span, record_exception
from vodpack.modules.transcoding.ffmpeg import build_ffmpeg_command
from vodpack.modules.transcoding.models import EncodeJob, JobKind, JobOutcome

logger = logging.getLogger(__name__)


class EncodeJobError(Exception):
    """Raised when one encode job fails.

    Carries the job kind and the underlying process error.
    """

    def __init__(self, kind: JobKind, cause: BaseException):
        self.kind = JobKind(kind)
        self.cause = cause
        super().__init__(f"{self.kind.value.upper()} transcoding error: {cause}")

    @property
    def returncode(self) -> Optional[int]:
        """Exit status of ffmpeg, or None when it never ran."""
        if isinstance(self.cause, subprocess.CalledProcessError):
            return self.cause.returncode
        return None


class FFmpegJobRunner:
    """Runs encode jobs with an ffmpeg binary.

    The child inherits this process's stdout and stderr so operators can
    follow ffmpeg's own output; nothing is parsed from it.
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        self.ffmpeg_path = ffmpeg_path

    async def run(self, job: EncodeJob) -> JobOutcome:
        """Run one encode job to completion.

        Never raises for encoder failures: a non-zero exit, a spawn failure
        or a missing binary produce a failed outcome instead. Partial output
        is left in place.

        Args:
            job: The job to run

        Returns:
            JobOutcome with the elapsed seconds or the classified error
        """
        cmd = build_ffmpeg_command(self.ffmpeg_path, job)

        with create_span(
            f"ffmpeg {job.kind.value}",
            attributes={"job.kind": job.kind.value, "request.id": job.request_id},
        ):
            log_info(
                logger,
                "Encode job started",
                request_id=job.request_id,
                job_kind=job.kind.value,
                command=cmd,
            )
            start = time.monotonic()

            try:
                returncode = await self._execute(cmd)
            except OSError as e:
                return self._failed(job, EncodeJobError(job.kind, e))

            elapsed = time.monotonic() - start

            if returncode != 0:
                error = subprocess.CalledProcessError(returncode, cmd)
                return self._failed(job, EncodeJobError(job.kind, error))

        TRANSCODE_JOBS_TOTAL.labels(job_kind=job.kind.value, status="succeeded").inc()
        TRANSCODE_JOB_DURATION_SECONDS.labels(job_kind=job.kind.value).observe(elapsed)
        log_info(
            logger,
            "Encode job finished",
            request_id=job.request_id,
            job_kind=job.kind.value,
            elapsed_seconds=round(elapsed, 3),
        )
        return JobOutcome(kind=job.kind, elapsed=elapsed)

    async def _execute(self, cmd: list[str]) -> int:
        """Spawn ``cmd`` and wait for it to exit.

        The process is killed and reaped if the waiting task is cancelled.
        """
        process = await asyncio.create_subprocess_exec(*cmd, stdin=asyncio.subprocess.DEVNULL)
        try:
            return await process.wait()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

    def _failed(self, job: EncodeJob, error: EncodeJobError) -> JobOutcome:
        record_exception(error)
        TRANSCODE_JOBS_TOTAL.labels(job_kind=job.kind.value, status="failed").inc()
        log_error(
            logger,
            "Encode job failed",
            request_id=job.request_id,
            job_kind=job.kind.value,
            returncode=error.returncode,
            error=str(error.cause),
        )
        return JobOutcome(kind=job.kind, error=error)
