"""Upload validation and delegation to object storage."""

from app.core.exceptions import BadRequestError
from app.services.storage import StorageService, StoredObject

DEFAULT_FOLDER = "uploads"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_ALLOWED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
)


class UploadService:
    def __init__(
        self,
        storage: StorageService,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        allowed_mime_types: list[str] | tuple[str, ...] = DEFAULT_ALLOWED_MIME_TYPES,
    ) -> None:
        self.storage = storage
        self.max_file_size = max_file_size
        self.allowed_mime_types = list(allowed_mime_types)

    def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        folder: str | None = None,
    ) -> StoredObject:
        """Validate size and type, then store under a generated key."""
        if len(content) > self.max_file_size:
            raise BadRequestError(
                f"File size exceeds the limit of {self.max_file_size / (1024 * 1024):g}MB"
            )
        self._ensure_allowed(content_type, "File type")
        key = self.storage.generate_key(folder or DEFAULT_FOLDER, filename)
        return self.storage.upload(key, content, content_type)

    def presigned_upload(
        self,
        filename: str,
        content_type: str,
        folder: str | None,
        expires_in: int,
    ) -> tuple[str, str]:
        """Return (url, key) for a client-side PUT."""
        self._ensure_allowed(content_type, "Content type")
        key = self.storage.generate_key(folder or DEFAULT_FOLDER, filename)
        return self.storage.presigned_upload_url(key, content_type, expires_in), key

    def presigned_download(self, key: str, expires_in: int) -> str:
        return self.storage.presigned_download_url(key, expires_in)

    def delete_file(self, key: str) -> None:
        self.storage.delete(key)

    def _ensure_allowed(self, content_type: str, label: str) -> None:
        if content_type not in self.allowed_mime_types:
            raise BadRequestError(
                f"{label} {content_type} is not allowed. "
                f"Allowed types: {', '.join(self.allowed_mime_types)}"
            )
