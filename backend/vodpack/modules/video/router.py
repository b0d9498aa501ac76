"""Video API router.

Implements the upload endpoint that packages a video as HLS and DASH.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status

from vodpack.modules.transcoding.service import TranscodeError
from vodpack.modules.video.schemas import VideoTranscodeResponse
from vodpack.modules.video.service import (
    InvalidCodecError,
    MissingUploadError,
    UploadPersistError,
    VideoService,
)

router = APIRouter(prefix="/videos", tags=["videos"])


def get_video_service(request: Request) -> VideoService:
    """Video service built once at application start."""
    return request.app.state.video_service


@router.post("", response_model=VideoTranscodeResponse)
async def upload_video(
    codec: Optional[str] = Query(None, description="Target codec: av1, hevc or avc (default)"),
    video: Union[UploadFile, str, None] = File(None),
    service: VideoService = Depends(get_video_service),
):
    """Upload a video and package it as HLS and DASH.

    Blocks until both encodes have finished.
    """
    try:
        return await service.upload_and_transcode(video, codec)
    except (InvalidCodecError, MissingUploadError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UploadPersistError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except TranscodeError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to transcode video",
        )
