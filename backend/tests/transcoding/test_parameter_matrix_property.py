"""Property-based tests for the ffmpeg parameter matrix.

Covers determinism, the software fallback for profiles without a hardware
AV1 encoder and the per-profile flag layout.
"""

import logging

from hypothesis import given, settings, strategies as st

from vodpack.modules.transcoding.ffmpeg import (
    AUDIO_FLAGS,
    BASELINE_OUTPUT_FLAGS,
    select_ffmpeg_params,
)
from vodpack.modules.transcoding.models import (
    ArgumentSet,
    EncodeProfile,
    HardwareAccel,
    VideoCodec,
)


hw_strategy = st.sampled_from(list(HardwareAccel))
codec_strategy = st.sampled_from(list(VideoCodec))


def _flag_value(flags: tuple[str, ...], flag: str) -> str:
    """Value following the last occurrence of ``flag``."""
    index = len(flags) - 1 - flags[::-1].index(flag)
    return flags[index + 1]


class TestMatrixDeterminism:
    """Identical inputs always give identical argument lists."""

    @given(hw_accel=hw_strategy, codec=codec_strategy)
    @settings(max_examples=100)
    def test_same_profile_same_arguments(self, hw_accel: HardwareAccel, codec: VideoCodec) -> None:
        first = select_ffmpeg_params(EncodeProfile(hw_accel, codec))
        second = select_ffmpeg_params(EncodeProfile(hw_accel, codec))

        assert first == second
        assert list(first.input_flags) == list(second.input_flags)
        assert list(first.output_flags) == list(second.output_flags)

    @given(hw_accel=hw_strategy, codec=codec_strategy)
    @settings(max_examples=100)
    def test_string_profile_matches_enum_profile(self, hw_accel: HardwareAccel, codec: VideoCodec) -> None:
        from_enum = select_ffmpeg_params(EncodeProfile(hw_accel, codec))
        from_str = select_ffmpeg_params(EncodeProfile(hw_accel.value, codec.value))

        assert from_enum == from_str

    @given(hw_accel=hw_strategy, codec=codec_strategy)
    @settings(max_examples=100)
    def test_flags_are_string_pairs(self, hw_accel: HardwareAccel, codec: VideoCodec) -> None:
        """Every flag is a string; every output flag set carries AAC audio."""
        args = select_ffmpeg_params(EncodeProfile(hw_accel, codec))

        assert all(isinstance(f, str) for f in args.input_flags + args.output_flags)
        assert _flag_value(args.output_flags, "-c:a") == "aac"
        assert _flag_value(args.output_flags, "-b:a") == "128k"


class TestSoftwareFallback:
    """Profiles without a hardware AV1 encoder degrade to software."""

    @given(hw_accel=st.sampled_from([HardwareAccel.INTEL, HardwareAccel.AMD]))
    @settings(max_examples=20)
    def test_av1_without_hardware_encoder_matches_software(self, hw_accel: HardwareAccel) -> None:
        fallback = select_ffmpeg_params(EncodeProfile(hw_accel, VideoCodec.AV1))
        software = select_ffmpeg_params(EncodeProfile(HardwareAccel.NONE, VideoCodec.AV1))

        assert fallback.input_flags == ()
        assert fallback.output_flags == software.output_flags
        assert fallback == software

    @given(codec=codec_strategy)
    @settings(max_examples=20)
    def test_software_profile_is_baseline(self, codec: VideoCodec) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.NONE, codec))

        assert args == ArgumentSet(input_flags=(), output_flags=BASELINE_OUTPUT_FLAGS[codec])

    def test_unknown_profile_name_uses_software(self) -> None:
        assert HardwareAccel.parse("voodoo") is HardwareAccel.NONE
        assert HardwareAccel.parse(None) is HardwareAccel.NONE
        assert HardwareAccel.parse("macos") is HardwareAccel.APPLE
        assert HardwareAccel.parse(" NVIDIA ") is HardwareAccel.NVIDIA

    def test_unknown_profile_name_is_logged(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="vodpack.modules.transcoding.models"):
            HardwareAccel.parse("voodoo")
            HardwareAccel.parse("nvidia")

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].hw_accel == "voodoo"
        assert warnings[0].correlation_id


class TestHardwareOverrides:
    """Hardware encoder flags precede the codec baseline."""

    @given(
        hw_accel=st.sampled_from([HardwareAccel.NVIDIA, HardwareAccel.INTEL, HardwareAccel.AMD]),
        codec=st.sampled_from([VideoCodec.AVC, VideoCodec.HEVC]),
    )
    @settings(max_examples=50)
    def test_hardware_prefix_then_baseline(self, hw_accel: HardwareAccel, codec: VideoCodec) -> None:
        args = select_ffmpeg_params(EncodeProfile(hw_accel, codec))
        baseline = BASELINE_OUTPUT_FLAGS[codec]

        assert args.input_flags[0] == "-hwaccel"
        assert args.output_flags[0] == "-c:v"
        assert args.output_flags[-len(baseline):] == baseline
        assert len(args.output_flags) > len(baseline)

    def test_apple_avc_is_self_contained(self) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.APPLE, VideoCodec.AVC))

        assert args.input_flags == ("-hwaccel", "videotoolbox")
        assert args.output_flags == (
            "-c:v", "h264_videotoolbox",
            "-b:v", "2M",
            "-maxrate", "2.5M",
            "-bufsize", "5M",
            "-pix_fmt", "nv12",
            *AUDIO_FLAGS,
        )
        assert "libx264" not in args.output_flags
        assert "yuv420p" not in args.output_flags

    def test_apple_hevc_appends_baseline(self) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.APPLE, VideoCodec.HEVC))

        assert args.input_flags == (
            "-hwaccel", "videotoolbox",
            "-hwaccel_output_format", "videotoolbox_vld",
        )
        assert args.output_flags == ("-c:v", "hevc_videotoolbox") + BASELINE_OUTPUT_FLAGS[VideoCodec.HEVC]

    def test_apple_av1_keeps_decode_flags_with_software_encoder(self) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.APPLE, VideoCodec.AV1))

        assert args.input_flags[:2] == ("-hwaccel", "videotoolbox")
        assert args.output_flags == BASELINE_OUTPUT_FLAGS[VideoCodec.AV1]


class TestScenarios:
    """Concrete argument lists for common profiles."""

    def test_avc_software(self) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.NONE, VideoCodec.AVC))
        out = args.output_flags

        assert args.input_flags == ()
        assert _flag_value(out, "-c:v") == "libx264"
        assert _flag_value(out, "-preset") == "ultrafast"
        assert _flag_value(out, "-profile:v") == "baseline"
        assert _flag_value(out, "-b:v") == "2M"
        assert _flag_value(out, "-g") == "48"
        assert _flag_value(out, "-keyint_min") == "48"
        assert _flag_value(out, "-sc_threshold") == "0"
        assert _flag_value(out, "-bf") == "0"
        assert _flag_value(out, "-movflags") == "+faststart"
        assert _flag_value(out, "-c:a") == "aac"
        assert _flag_value(out, "-b:a") == "128k"

    def test_av1_nvidia(self) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.NVIDIA, VideoCodec.AV1))

        assert args.input_flags == ("-hwaccel", "cuda")
        assert args.output_flags[:2] == ("-c:v", "av1_nvenc")
        assert args.output_flags[2:] == BASELINE_OUTPUT_FLAGS[VideoCodec.AV1]

    def test_avc_nvidia(self) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.NVIDIA, VideoCodec.AVC))

        assert args.output_flags[:6] == ("-c:v", "h264_nvenc", "-preset", "p4", "-tune", "ll")

    def test_hevc_software(self) -> None:
        args = select_ffmpeg_params(EncodeProfile(HardwareAccel.NONE, VideoCodec.HEVC))

        assert args.output_flags == (
            "-c:v", "libx265", "-crf", "28", "-preset", "medium",
            "-c:a", "aac", "-b:a", "128k",
        )

    def test_intel_and_amd_encoders(self) -> None:
        intel = select_ffmpeg_params(EncodeProfile(HardwareAccel.INTEL, VideoCodec.AVC))
        amd = select_ffmpeg_params(EncodeProfile(HardwareAccel.AMD, VideoCodec.HEVC))

        assert intel.input_flags == ("-hwaccel", "qsv")
        assert intel.output_flags[:4] == ("-c:v", "h264_qsv", "-preset", "faster")
        assert amd.input_flags == ("-hwaccel", "amf")
        assert amd.output_flags[:2] == ("-c:v", "hevc_amf")
