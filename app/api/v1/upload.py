"""Upload routes: direct multipart upload and presigned URLs for object storage."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from app.api.v1.deps import CurrentUserDep, get_upload_service
from app.schemas.upload import (
    PresignedDownloadRequest,
    PresignedUploadRequest,
    PresignedUrlResponse,
    UploadResponse,
)
from app.services.upload import UploadService

router = APIRouter()

UploadServiceDep = Annotated[UploadService, Depends(get_upload_service)]

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload_file(
    _user: CurrentUserDep,
    service: UploadServiceDep,
    file: Annotated[UploadFile, File(description="File to store")],
    folder: Annotated[str | None, Form(max_length=255)] = None,
) -> UploadResponse:
    """Store a file directly. Size and MIME type are validated before upload."""
    # plain def: FastAPI runs it in the threadpool
    content = file.file.read()
    stored = service.upload_file(
        filename=file.filename or "file",
        content=content,
        content_type=file.content_type or DEFAULT_CONTENT_TYPE,
        folder=folder,
    )
    return UploadResponse(
        key=stored.key, url=stored.url, size=stored.size, content_type=stored.content_type
    )


@router.post("/presigned/upload", response_model=PresignedUrlResponse)
def presigned_upload(
    body: PresignedUploadRequest,
    _user: CurrentUserDep,
    service: UploadServiceDep,
) -> PresignedUrlResponse:
    """Presigned PUT URL for client-side upload."""
    url, key = service.presigned_upload(
        filename=body.filename,
        content_type=body.content_type,
        folder=body.folder,
        expires_in=body.expires_in,
    )
    return PresignedUrlResponse(url=url, key=key, expires_in=body.expires_in)


@router.post("/presigned/download", response_model=PresignedUrlResponse)
def presigned_download(
    body: PresignedDownloadRequest,
    _user: CurrentUserDep,
    service: UploadServiceDep,
) -> PresignedUrlResponse:
    url = service.presigned_download(body.key, body.expires_in)
    return PresignedUrlResponse(url=url, key=body.key, expires_in=body.expires_in)


@router.delete("/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(key: str, _user: CurrentUserDep, service: UploadServiceDep) -> None:
    service.delete_file(key)
