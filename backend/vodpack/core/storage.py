"""Local filesystem storage for uploads and packaged output.

Layout under the storage root::

    uploads/<request_id><ext>
    hls/<request_id>/playlist.m3u8, segment_NNN.ts
    dash/<request_id>/manifest.mpd, segments
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

logger = logging.getLogger(__name__)

STORAGE_SUBDIRECTORIES = ("uploads", "transcoded", "hls", "dash")
UPLOADS_DIR = "uploads"


@dataclass
class StorageResult:
    """Result of a storage operation."""
    success: bool
    key: str
    path: Optional[Path] = None
    file_size: int = 0
    error_message: Optional[str] = None


def ensure_storage_directories(root: Union[str, Path]) -> Path:
    """Create the storage root and its fixed subdirectories.

    Existing directories are left untouched.

    Returns:
        The storage root as a Path
    """
    root = Path(root)
    for name in STORAGE_SUBDIRECTORIES:
        (root / name).mkdir(parents=True, exist_ok=True)
    return root


class LocalStorage:
    """Local filesystem storage backend rooted at one directory."""

    def __init__(self, base_path: Union[str, Path], chunk_size: int = 8 << 20):
        self.base_path = Path(base_path)
        self.chunk_size = chunk_size

    def _get_full_path(self, key: str) -> Path:
        return self.base_path / key

    def upload_key(self, request_id: str, filename: Optional[str]) -> str:
        """Storage key for an upload, keeping only the original extension."""
        suffix = Path(filename or "").suffix
        return f"{UPLOADS_DIR}/{request_id}{suffix}"

    def upload_fileobj(self, fileobj: BinaryIO, key: str) -> StorageResult:
        """Copy a file object into storage under ``key``."""
        dest_path = self._get_full_path(key)
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)

            with open(dest_path, "wb") as f:
                shutil.copyfileobj(fileobj, f, self.chunk_size)

            file_size = dest_path.stat().st_size
        except OSError as e:
            logger.error(
                "Failed to store file",
                extra={"key": key, "error": str(e)},
            )
            return StorageResult(
                success=False,
                key=key,
                path=dest_path,
                error_message=str(e),
            )

        return StorageResult(
            success=True,
            key=key,
            path=dest_path,
            file_size=file_size,
        )
