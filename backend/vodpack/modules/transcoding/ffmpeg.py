"""FFmpeg argument construction.

Maps a hardware profile and codec onto ffmpeg input/output flags and builds
the full argument vector for the HLS and DASH encodes of one upload.
"""

from pathlib import Path

from vodpack.modules.transcoding.models import (
    ArgumentSet,
    EncodeJob,
    EncodeProfile,
    HardwareAccel,
    HLS_SEGMENT_PATTERN,
    JobKind,
    SEGMENT_SECONDS,
    VideoCodec,
)

AUDIO_FLAGS = ("-c:a", "aac", "-b:a", "128k")

# Software encoder settings per codec; hardware profiles prepend their own
# encoder selection and ffmpeg honours the last occurrence of a flag.
BASELINE_OUTPUT_FLAGS: dict[VideoCodec, tuple[str, ...]] = {
    VideoCodec.AV1: (
        "-c:v", "libaom-av1",
        "-crf", "30",
        "-b:v", "0",
        "-strict", "experimental",
        *AUDIO_FLAGS,
    ),
    VideoCodec.HEVC: (
        "-c:v", "libx265",
        "-crf", "28",
        "-preset", "medium",
        *AUDIO_FLAGS,
    ),
    VideoCodec.AVC: (
        "-c:v", "libx264",
        "-preset", "ultrafast",
        "-tune", "fastdecode",
        "-profile:v", "baseline",
        "-level", "3.0",
        "-b:v", "2M",
        "-maxrate", "2.5M",
        "-bufsize", "5M",
        "-pix_fmt", "yuv420p",
        *AUDIO_FLAGS,
        "-movflags", "+faststart",
        "-g", "48",
        "-keyint_min", "48",
        "-sc_threshold", "0",
        "-bf", "0",
    ),
}

HWACCEL_INPUT_FLAGS: dict[HardwareAccel, tuple[str, ...]] = {
    HardwareAccel.NONE: (),
    HardwareAccel.NVIDIA: ("-hwaccel", "cuda"),
    HardwareAccel.INTEL: ("-hwaccel", "qsv"),
    HardwareAccel.AMD: ("-hwaccel", "amf"),
    HardwareAccel.APPLE: (
        "-hwaccel", "videotoolbox",
        "-hwaccel_output_format", "videotoolbox_vld",
    ),
}

# A codec missing from a profile's table has no hardware encoder there.
HWACCEL_ENCODER_FLAGS: dict[HardwareAccel, dict[VideoCodec, tuple[str, ...]]] = {
    HardwareAccel.NONE: {},
    HardwareAccel.NVIDIA: {
        VideoCodec.AV1: ("-c:v", "av1_nvenc"),
        VideoCodec.HEVC: ("-c:v", "hevc_nvenc"),
        VideoCodec.AVC: ("-c:v", "h264_nvenc", "-preset", "p4", "-tune", "ll"),
    },
    HardwareAccel.INTEL: {
        VideoCodec.HEVC: ("-c:v", "hevc_qsv"),
        VideoCodec.AVC: ("-c:v", "h264_qsv", "-preset", "faster"),
    },
    HardwareAccel.AMD: {
        VideoCodec.HEVC: ("-c:v", "hevc_amf"),
        VideoCodec.AVC: ("-c:v", "h264_amf", "-quality", "speed"),
    },
    HardwareAccel.APPLE: {
        VideoCodec.HEVC: ("-c:v", "hevc_videotoolbox"),
    },
}

# Profiles that drop to plain software encoding when the codec has no
# hardware encoder. Apple keeps its decode flags and the baseline encoder.
SOFTWARE_FALLBACK_PROFILES = frozenset((HardwareAccel.INTEL, HardwareAccel.AMD))

# The baseline AVC flags force yuv420p, which VideoToolbox cannot take, so
# this combination carries its own complete flag set.
APPLE_AVC_ARGUMENTS = ArgumentSet(
    input_flags=("-hwaccel", "videotoolbox"),
    output_flags=(
        "-c:v", "h264_videotoolbox",
        "-b:v", "2M",
        "-maxrate", "2.5M",
        "-bufsize", "5M",
        "-pix_fmt", "nv12",
        *AUDIO_FLAGS,
    ),
)


def select_ffmpeg_params(profile: EncodeProfile) -> ArgumentSet:
    """Select ffmpeg input and output flags for a profile.

    Pure and deterministic: equal profiles always yield equal argument sets.

    Args:
        profile: Hardware profile and codec of the request

    Returns:
        ArgumentSet with flags for before and after ``-i``
    """
    hw_accel = HardwareAccel(profile.hw_accel)
    codec = VideoCodec(profile.codec)
    baseline = BASELINE_OUTPUT_FLAGS[codec]

    if hw_accel is HardwareAccel.APPLE and codec is VideoCodec.AVC:
        return APPLE_AVC_ARGUMENTS

    encoder_flags = HWACCEL_ENCODER_FLAGS[hw_accel].get(codec)
    if encoder_flags is None and hw_accel in SOFTWARE_FALLBACK_PROFILES:
        return ArgumentSet(input_flags=(), output_flags=baseline)

    return ArgumentSet(
        input_flags=HWACCEL_INPUT_FLAGS[hw_accel],
        output_flags=(encoder_flags or ()) + baseline,
    )


def hls_format_flags(output_dir: Path) -> tuple[str, ...]:
    """Muxer flags for a VOD HLS playlist with fixed-length segments."""
    return (
        "-hls_time", str(SEGMENT_SECONDS),
        "-hls_playlist_type", "vod",
        "-hls_segment_filename", str(output_dir / HLS_SEGMENT_PATTERN),
    )


def dash_format_flags() -> tuple[str, ...]:
    """Muxer flags for a templated DASH manifest with separate A/V sets."""
    return (
        "-f", "dash",
        "-use_timeline", "1",
        "-use_template", "1",
        "-seg_duration", str(SEGMENT_SECONDS),
        "-adaptation_sets", "id=0,streams=v id=1,streams=a",
    )


def format_flags_for(kind: JobKind, output_dir: Path) -> tuple[str, ...]:
    if kind is JobKind.HLS:
        return hls_format_flags(output_dir)
    return dash_format_flags()


def build_ffmpeg_command(ffmpeg_path: str, job: EncodeJob) -> list[str]:
    """Build the argument vector for one encode job.

    Order: input flags, ``-i <input>``, output flags, format flags, output
    path.
    """
    return [
        ffmpeg_path,
        *job.arguments.input_flags,
        "-i", str(job.input_path),
        *job.arguments.output_flags,
        *job.format_flags,
        str(job.output_path),
    ]
