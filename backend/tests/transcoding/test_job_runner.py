"""Tests for the ffmpeg job runner.

ffmpeg itself is replaced by a small executable script, so these tests
exercise real process spawning without needing an encoder installed.
"""

import asyncio
import subprocess
from pathlib import Path

import pytest

from fakes import write_fake_ffmpeg
from vodpack.modules.transcoding.ffmpeg import (
    build_ffmpeg_command,
    dash_format_flags,
    hls_format_flags,
)
from vodpack.modules.transcoding.models import ArgumentSet, EncodeJob, JobKind
from vodpack.modules.transcoding.runner import EncodeJobError, FFmpegJobRunner


def make_job(tmp_path: Path, kind: JobKind = JobKind.HLS) -> EncodeJob:
    output_dir = tmp_path / kind.value / "req-1"
    output_dir.mkdir(parents=True, exist_ok=True)
    if kind is JobKind.HLS:
        output_path = output_dir / "playlist.m3u8"
        format_flags = hls_format_flags(output_dir)
    else:
        output_path = output_dir / "manifest.mpd"
        format_flags = dash_format_flags()
    return EncodeJob(
        kind=kind,
        input_path=tmp_path / "uploads" / "req-1.mp4",
        output_dir=output_dir,
        output_path=output_path,
        arguments=ArgumentSet(
            input_flags=("-hwaccel", "cuda"),
            output_flags=("-c:v", "h264_nvenc", "-c:a", "aac"),
        ),
        format_flags=format_flags,
        request_id="req-1",
    )


class TestCommandLayout:
    """Argument vector order for one encode."""

    def test_hls_command_order(self, tmp_path: Path) -> None:
        job = make_job(tmp_path, JobKind.HLS)
        cmd = build_ffmpeg_command("ffmpeg", job)
        output_dir = str(job.output_dir)

        assert cmd == [
            "ffmpeg",
            "-hwaccel", "cuda",
            "-i", str(job.input_path),
            "-c:v", "h264_nvenc", "-c:a", "aac",
            "-hls_time", "4",
            "-hls_playlist_type", "vod",
            "-hls_segment_filename", str(Path(output_dir) / "segment_%03d.ts"),
            str(job.output_path),
        ]

    def test_dash_command_order(self, tmp_path: Path) -> None:
        job = make_job(tmp_path, JobKind.DASH)
        cmd = build_ffmpeg_command("/usr/bin/ffmpeg", job)

        assert cmd[:5] == ["/usr/bin/ffmpeg", "-hwaccel", "cuda", "-i", str(job.input_path)]
        assert cmd[-11:] == [
            "-f", "dash",
            "-use_timeline", "1",
            "-use_template", "1",
            "-seg_duration", "4",
            "-adaptation_sets", "id=0,streams=v id=1,streams=a",
            str(job.output_path),
        ]

    def test_input_flags_precede_input_path(self, tmp_path: Path) -> None:
        job = make_job(tmp_path)
        cmd = build_ffmpeg_command("ffmpeg", job)

        assert cmd.index("-hwaccel") < cmd.index("-i") < cmd.index("-c:v")
        assert cmd[-1] == str(job.output_path)


class TestRunnerOutcomes:
    """One outcome per job, classified by how ffmpeg ended."""

    @pytest.mark.asyncio
    async def test_success_reports_elapsed(self, tmp_path: Path, fake_ffmpeg: Path) -> None:
        job = make_job(tmp_path)
        outcome = await FFmpegJobRunner(str(fake_ffmpeg)).run(job)

        assert outcome.ok
        assert outcome.kind is JobKind.HLS
        assert outcome.elapsed > 0
        assert job.output_path.exists()

    @pytest.mark.asyncio
    async def test_elapsed_covers_process_runtime(self, tmp_path: Path) -> None:
        slow = write_fake_ffmpeg(tmp_path, delay=0.3, name="slow-ffmpeg")
        outcome = await FFmpegJobRunner(str(slow)).run(make_job(tmp_path))

        assert outcome.ok
        assert outcome.elapsed >= 0.3

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_failure(self, tmp_path: Path) -> None:
        failing = write_fake_ffmpeg(tmp_path, failing=["dash"], name="bad-ffmpeg")
        outcome = await FFmpegJobRunner(str(failing)).run(make_job(tmp_path, JobKind.DASH))

        assert not outcome.ok
        assert isinstance(outcome.error, EncodeJobError)
        assert outcome.error.kind is JobKind.DASH
        assert outcome.error.returncode == 1
        assert isinstance(outcome.error.cause, subprocess.CalledProcessError)
        assert "DASH transcoding error" in str(outcome.error)

    @pytest.mark.asyncio
    async def test_missing_binary_is_failure(self, tmp_path: Path) -> None:
        runner = FFmpegJobRunner(str(tmp_path / "no-such-ffmpeg"))
        outcome = await runner.run(make_job(tmp_path))

        assert not outcome.ok
        assert outcome.error.kind is JobKind.HLS
        assert outcome.error.returncode is None
        assert isinstance(outcome.error.cause, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_non_executable_binary_is_failure(self, tmp_path: Path) -> None:
        not_executable = tmp_path / "ffmpeg.txt"
        not_executable.write_text("not a program")
        outcome = await FFmpegJobRunner(str(not_executable)).run(make_job(tmp_path))

        assert not outcome.ok
        assert isinstance(outcome.error.cause, PermissionError)

    @pytest.mark.asyncio
    async def test_cancellation_kills_process(self, tmp_path: Path) -> None:
        slow = write_fake_ffmpeg(tmp_path, delay=30.0, name="hanging-ffmpeg")
        job = make_job(tmp_path)
        task = asyncio.create_task(FFmpegJobRunner(str(slow)).run(job))
        await asyncio.sleep(0.3)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, timeout=5)
        assert not job.output_path.exists()
