"""Service layer for HLS/DASH transcoding.

The orchestrator runs the HLS and DASH encodes of one upload concurrently
and reduces their two outcomes into a single result or failure.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Protocol, Union

from vodpack.core.logging import log_error, log_info
from vodpack.core.metrics import TRANSCODE_REQUESTS_IN_PROGRESS
from vodpack.core.tracing import create_span, record_exception
from vodpack.modules.transcoding.ffmpeg import format_flags_for, select_ffmpeg_params
from vodpack.modules.transcoding.models import (
    ArgumentSet,
    EncodeJob,
    EncodeProfile,
    HardwareAccel,
    JobKind,
    JobOutcome,
    OUTPUT_FILENAMES,
    TranscodeResult,
    VideoCodec,
)
from vodpack.modules.transcoding.runner import EncodeJobError, FFmpegJobRunner

logger = logging.getLogger(__name__)


class TranscodeError(Exception):
    """Raised when a request cannot produce both packagings."""

    def __init__(self, failure: EncodeJobError):
        self.failure = failure
        super().__init__(str(failure))

    @property
    def kind(self) -> JobKind:
        return self.failure.kind


class JobRunner(Protocol):
    async def run(self, job: EncodeJob) -> JobOutcome: ...


class TranscodeOrchestrator:
    """Runs the HLS and DASH encodes of an upload in parallel.

    The hardware profile is fixed for the lifetime of the orchestrator;
    the codec is chosen per call. Holds no per-request state, so one
    instance serves any number of concurrent requests.
    """

    def __init__(
        self,
        hw_accel: Union[HardwareAccel, str],
        base_url: str,
        runner: Optional[JobRunner] = None,
        ffmpeg_path: str = "ffmpeg",
        cancel_sibling_on_failure: bool = False,
    ):
        """Initialize orchestrator.

        Args:
            hw_accel: Hardware acceleration profile
            base_url: Prefix of the published playlist/manifest URLs
            runner: Job runner, defaults to an FFmpegJobRunner
            ffmpeg_path: Encoder binary used by the default runner
            cancel_sibling_on_failure: Cancel the other encode as soon as
                one fails instead of letting it run to completion
        """
        self.hw_accel = (
            hw_accel if isinstance(hw_accel, HardwareAccel) else HardwareAccel.parse(hw_accel)
        )
        self.base_url = base_url.rstrip("/")
        self.runner = runner or FFmpegJobRunner(ffmpeg_path)
        self.cancel_sibling_on_failure = cancel_sibling_on_failure

    def output_dir(self, storage_root: Path, kind: JobKind, request_id: str) -> Path:
        return Path(storage_root) / kind.value / request_id

    def public_url(self, kind: JobKind, request_id: str) -> str:
        return f"{self.base_url}/{kind.value}/{request_id}/{OUTPUT_FILENAMES[kind]}"

    def build_jobs(
        self,
        input_path: Path,
        request_id: str,
        storage_root: Path,
        arguments: ArgumentSet,
    ) -> list[EncodeJob]:
        """Build one encode job per packaging kind."""
        jobs = []
        for kind in JobKind:
            output_dir = self.output_dir(storage_root, kind, request_id)
            jobs.append(EncodeJob(
                kind=kind,
                input_path=Path(input_path),
                output_dir=output_dir,
                output_path=output_dir / OUTPUT_FILENAMES[kind],
                arguments=arguments,
                format_flags=format_flags_for(kind, output_dir),
                request_id=request_id,
            ))
        return jobs

    async def transcode(
        self,
        input_path: Union[Path, str],
        request_id: str,
        storage_root: Union[Path, str],
        codec: Union[VideoCodec, str] = VideoCodec.AVC,
    ) -> TranscodeResult:
        """Package an upload as HLS and DASH.

        Args:
            input_path: Path of the persisted upload
            request_id: Unique identifier of the request
            storage_root: Directory holding the hls/ and dash/ trees
            codec: Target video codec, already validated by the caller

        Returns:
            TranscodeResult with URLs and per-job timings

        Raises:
            TranscodeError: If an output directory could not be created or
                either encode job failed
        """
        start = time.monotonic()
        storage_root = Path(storage_root)
        profile = EncodeProfile(hw_accel=self.hw_accel, codec=VideoCodec(codec))

        for kind in JobKind:
            try:
                self.output_dir(storage_root, kind, request_id).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                failure = EncodeJobError(kind, e)
                log_error(
                    logger,
                    "Failed to create output directory",
                    request_id=request_id,
                    job_kind=kind.value,
                    error=str(e),
                )
                raise TranscodeError(failure) from e

        arguments = select_ffmpeg_params(profile)
        jobs = self.build_jobs(Path(input_path), request_id, storage_root, arguments)

        with create_span(
            "transcode",
            attributes={
                "request.id": request_id,
                "transcode.codec": profile.codec.value,
                "transcode.hw_accel": profile.hw_accel.value,
            },
        ):
            TRANSCODE_REQUESTS_IN_PROGRESS.inc()
            try:
                outcomes = await self._run_pair(jobs)
            finally:
                TRANSCODE_REQUESTS_IN_PROGRESS.dec()

            failure = next((o.error for o in outcomes if not o.ok), None)
            if failure is not None:
                record_exception(failure)
                log_error(
                    logger,
                    "Transcode failed",
                    request_id=request_id,
                    job_kind=failure.kind.value,
                    error=str(failure),
                )
                raise TranscodeError(failure) from failure

        result = TranscodeResult(
            request_id=request_id,
            urls={kind: self.public_url(kind, request_id) for kind in JobKind},
            timings={o.kind: o.elapsed for o in outcomes},
            total_seconds=time.monotonic() - start,
        )
        log_info(
            logger,
            "Transcode finished",
            request_id=request_id,
            codec=profile.codec.value,
            timings={k.value: round(v, 3) for k, v in result.timings.items()},
            total_seconds=round(result.total_seconds, 3),
        )
        return result

    async def _run_pair(self, jobs: list[EncodeJob]) -> list[JobOutcome]:
        """Run all jobs concurrently and collect one outcome per job.

        Outcomes are returned in arrival order, so the first failure in the
        list is the first one observed.
        """
        tasks = {
            asyncio.create_task(self.runner.run(job), name=f"{job.kind.value}-{job.request_id}"): job
            for job in jobs
        }
        pending = set(tasks)
        outcomes: list[JobOutcome] = []

        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    outcome = self._collect(task, tasks[task])
                    outcomes.append(outcome)
                    if not outcome.ok and self.cancel_sibling_on_failure:
                        for sibling in pending:
                            sibling.cancel()
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return outcomes

    def _collect(self, task: asyncio.Task, job: EncodeJob) -> JobOutcome:
        """Turn a finished task into exactly one outcome for its job."""
        if task.cancelled():
            return JobOutcome(kind=job.kind, error=EncodeJobError(job.kind, asyncio.CancelledError()))
        exc = task.exception()
        if exc is not None:
            return JobOutcome(kind=job.kind, error=EncodeJobError(job.kind, exc))
        outcome = task.result()
        if outcome.error is not None and not isinstance(outcome.error, EncodeJobError):
            return JobOutcome(kind=job.kind, error=EncodeJobError(job.kind, outcome.error))
        return outcome
