"""Value types for the transcoding module.

Nothing here is persisted; every value lives for the duration of one
upload request.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from vodpack.core.logging import log_warning

logger = logging.getLogger(__name__)


class HardwareAccel(str, Enum):
    """Hardware encoder family targeted by ffmpeg."""
    NONE = "none"
    NVIDIA = "nvidia"
    INTEL = "intel"
    AMD = "amd"
    APPLE = "apple"

    @classmethod
    def parse(cls, value: Optional[str]) -> "HardwareAccel":
        """Resolve a configured profile name.

        ``macos`` is accepted as an alias of ``apple``. Anything unknown
        falls back to software encoding.
        """
        name = (value or "").strip().lower()
        if name == "macos":
            return cls.APPLE
        if name in ("", "software", "cpu"):
            return cls.NONE
        try:
            return cls(name)
        except ValueError:
            log_warning(
                logger,
                "Unknown hardware acceleration profile, using software encoding",
                hw_accel=value,
            )
            return cls.NONE


class VideoCodec(str, Enum):
    """Target video compression standard."""
    AVC = "avc"
    HEVC = "hevc"
    AV1 = "av1"


DEFAULT_CODEC = VideoCodec.AVC


class JobKind(str, Enum):
    """Packaging format produced by one encode job."""
    HLS = "hls"
    DASH = "dash"


# Output layout, relative to storage_root/<kind>/<request_id>
HLS_PLAYLIST_NAME = "playlist.m3u8"
HLS_SEGMENT_PATTERN = "segment_%03d.ts"
DASH_MANIFEST_NAME = "manifest.mpd"
SEGMENT_SECONDS = 4

OUTPUT_FILENAMES = {
    JobKind.HLS: HLS_PLAYLIST_NAME,
    JobKind.DASH: DASH_MANIFEST_NAME,
}


@dataclass(frozen=True)
class EncodeProfile:
    """Hardware profile and codec selected for one request."""
    hw_accel: HardwareAccel
    codec: VideoCodec = DEFAULT_CODEC


@dataclass(frozen=True)
class ArgumentSet:
    """ffmpeg flags placed before ``-i`` (input) and after it (output)."""
    input_flags: tuple[str, ...] = ()
    output_flags: tuple[str, ...] = ()


@dataclass(frozen=True)
class EncodeJob:
    """One ffmpeg invocation producing one packaging of the upload."""
    kind: JobKind
    input_path: Path
    output_dir: Path
    output_path: Path
    arguments: ArgumentSet
    format_flags: tuple[str, ...] = ()
    request_id: str = ""


@dataclass(frozen=True)
class JobOutcome:
    """Result of running one EncodeJob.

    Exactly one of ``elapsed`` and ``error`` is meaningful: a successful
    outcome has ``error`` set to ``None``.
    """
    kind: JobKind
    elapsed: float = 0.0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TranscodeResult:
    """Published URLs and timings of a request whose two jobs succeeded."""
    request_id: str
    urls: dict[JobKind, str] = field(default_factory=dict)
    timings: dict[JobKind, float] = field(default_factory=dict)
    total_seconds: float = 0.0

    @property
    def hls_url(self) -> str:
        return self.urls[JobKind.HLS]

    @property
    def dash_url(self) -> str:
        return self.urls[JobKind.DASH]
