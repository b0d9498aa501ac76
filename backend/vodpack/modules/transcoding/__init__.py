"""Transcoding module for HLS and DASH packaging.

Selects ffmpeg arguments from the hardware profile and codec, runs the HLS
and DASH encodes of an upload in parallel and reduces their outcomes.
"""

from vodpack.modules.transcoding.models import (
    ArgumentSet,
    EncodeJob,
    EncodeProfile,
    HardwareAccel,
    JobKind,
    JobOutcome,
    TranscodeResult,
    VideoCodec,
)
from vodpack.modules.transcoding.ffmpeg import select_ffmpeg_params
from vodpack.modules.transcoding.runner import EncodeJobError, FFmpegJobRunner
from vodpack.modules.transcoding.service import TranscodeError, TranscodeOrchestrator

__all__ = [
    "ArgumentSet",
    "EncodeJob",
    "EncodeJobError",
    "EncodeProfile",
    "FFmpegJobRunner",
    "HardwareAccel",
    "JobKind",
    "JobOutcome",
    "TranscodeError",
    "TranscodeOrchestrator",
    "TranscodeResult",
    "VideoCodec",
    "select_ffmpeg_params",
]
