"""Pydantic schemas for the video upload endpoint."""

from pydantic import BaseModel, Field


class TranscodeTimings(BaseModel):
    """Timing breakdown of one upload request, in fractional seconds."""
    upload_duration: float = Field(
        ..., alias="uploadDuration", ge=0,
        description="Time spent writing the upload to storage, excluding transcoding",
    )
    hls_transcode: float = Field(..., alias="hlsTranscode", ge=0, description="HLS encode wall time")
    dash_transcode: float = Field(..., alias="dashTranscode", ge=0, description="DASH encode wall time")
    total_duration: float = Field(
        ..., alias="totalDuration", ge=0,
        description="Whole request, from validation to both encodes finishing",
    )

    class Config:
        populate_by_name = True


class VideoTranscodeResponse(BaseModel):
    """Schema returned once both packagings of an upload are ready."""
    id: str = Field(..., description="Request identifier")
    hls_url: str = Field(..., alias="hlsUrl", description="HLS playlist URL")
    dash_url: str = Field(..., alias="dashUrl", description="DASH manifest URL")
    timings: TranscodeTimings

    class Config:
        populate_by_name = True
