"""Video upload service.

Validates an upload, persists it under the storage root and hands it to
the transcode orchestrator.
"""

import logging
import time
import uuid
from typing import Optional, Union

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from vodpack.core.logging import log_info
from vodpack.core.storage import LocalStorage
from vodpack.modules.transcoding.models import DEFAULT_CODEC, JobKind, VideoCodec
from vodpack.modules.transcoding.service import TranscodeOrchestrator
from vodpack.modules.video.schemas import TranscodeTimings, VideoTranscodeResponse

logger = logging.getLogger(__name__)


class VideoServiceError(Exception):
    """Base exception for video service errors."""

    pass


class InvalidCodecError(VideoServiceError):
    """Raised when the requested codec is not supported."""

    pass


class MissingUploadError(VideoServiceError):
    """Raised when the request carries no video file."""

    pass


class UploadPersistError(VideoServiceError):
    """Raised when the uploaded file cannot be written to storage."""

    pass


def parse_codec(value: Optional[str]) -> VideoCodec:
    """Validate the codec selector of an upload.

    Args:
        value: Raw selector, ``None`` when absent

    Returns:
        The selected codec, ``avc`` when absent

    Raises:
        InvalidCodecError: For any value other than av1, hevc or avc
    """
    if value is None:
        return DEFAULT_CODEC
    try:
        return VideoCodec(value)
    except ValueError:
        raise InvalidCodecError("Invalid codec. Use av1, hevc, or avc")


class VideoService:
    """Handles one upload from validation to packaged output."""

    def __init__(self, orchestrator: TranscodeOrchestrator, storage: LocalStorage):
        self.orchestrator = orchestrator
        self.storage = storage

    async def upload_and_transcode(
        self,
        file: Union[UploadFile, str, None],
        codec: Optional[str] = None,
    ) -> VideoTranscodeResponse:
        """Persist an upload and package it as HLS and DASH.

        Validation happens before anything is written, and nothing is
        transcoded unless the upload was stored.

        Raises:
            InvalidCodecError: Unsupported codec selector
            MissingUploadError: No file in the request
            UploadPersistError: The upload could not be stored
            TranscodeError: Either encode job failed
        """
        start = time.monotonic()

        video_codec = parse_codec(codec)
        # Plain form fields arrive as str
        if file is None or isinstance(file, str) or not file.filename:
            raise MissingUploadError("No video file uploaded")

        request_id = str(uuid.uuid4())
        key = self.storage.upload_key(request_id, file.filename)

        upload_start = time.monotonic()
        stored = await run_in_threadpool(self.storage.upload_fileobj, file.file, key)
        if not stored.success:
            raise UploadPersistError("Failed to save video")
        upload_duration = time.monotonic() - upload_start

        log_info(
            logger,
            "Upload stored",
            request_id=request_id,
            key=key,
            file_size=stored.file_size,
            codec=video_codec.value,
        )

        result = await self.orchestrator.transcode(
            stored.path,
            request_id,
            self.storage.base_path,
            video_codec,
        )

        return VideoTranscodeResponse(
            id=request_id,
            hls_url=result.hls_url,
            dash_url=result.dash_url,
            timings=TranscodeTimings(
                upload_duration=upload_duration,
                hls_transcode=result.timings[JobKind.HLS],
                dash_transcode=result.timings[JobKind.DASH],
                total_duration=time.monotonic() - start,
            ),
        )
