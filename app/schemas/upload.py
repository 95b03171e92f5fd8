"""Request/response schemas for the upload endpoints."""

from pydantic import Field

from app.schemas.common import CamelModel

PRESIGN_MIN_SECONDS = 60
PRESIGN_MAX_SECONDS = 86400
PRESIGN_DEFAULT_SECONDS = 3600


class UploadResponse(CamelModel):
    """Stored object after a direct upload."""

    key: str = Field(..., description="Storage key for the uploaded file")
    url: str = Field(..., description="Public URL of the uploaded file")
    size: int = Field(..., ge=0, description="File size in bytes")
    content_type: str = Field(..., description="MIME type of the uploaded file")


class PresignedUploadRequest(CamelModel):
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1, max_length=255)
    folder: str | None = Field(default=None, max_length=255)
    expires_in: int = Field(
        default=PRESIGN_DEFAULT_SECONDS, ge=PRESIGN_MIN_SECONDS, le=PRESIGN_MAX_SECONDS
    )


class PresignedDownloadRequest(CamelModel):
    key: str = Field(..., min_length=1, max_length=1024)
    expires_in: int = Field(
        default=PRESIGN_DEFAULT_SECONDS, ge=PRESIGN_MIN_SECONDS, le=PRESIGN_MAX_SECONDS
    )


class PresignedUrlResponse(CamelModel):
    url: str = Field(..., description="Presigned URL for upload/download")
    key: str
    expires_in: int
