"""Shared fixtures for the ffmpeg stand-in."""

from pathlib import Path

import pytest

from fakes import write_fake_ffmpeg


@pytest.fixture
def fake_ffmpeg(tmp_path: Path) -> Path:
    """ffmpeg stand-in that succeeds for both packaging kinds."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return write_fake_ffmpeg(bin_dir)


@pytest.fixture
def fake_ffmpeg_factory(tmp_path: Path):
    """Build ffmpeg stand-ins with chosen failures and delays."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    counter = iter(range(1000))

    def factory(failing=(), delay: float = 0.0) -> Path:
        return write_fake_ffmpeg(bin_dir, failing, delay, name=f"ffmpeg-{next(counter)}")

    return factory
