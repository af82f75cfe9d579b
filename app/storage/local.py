"""
Filesystem blob storage with signed, expiring download links.
Links are itsdangerous tokens over the blob reference, served by GET /files/{token}.
"""
import logging
import os
from uuid import uuid4

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from app.core.config import settings
from app.storage.base import BlobNotFoundError, Storage

logger = logging.getLogger(__name__)


class InvalidBlobTokenError(Exception):
    pass


class LocalStorage(Storage):
    def __init__(self, base_path: str | None = None, secret: str | None = None) -> None:
        self.base_path = base_path or settings.storage_base_path
        self.serializer = URLSafeTimedSerializer(
            secret or settings.jwt_secret_key,
            salt="document-blob",
        )
        self.url_ttl = settings.signed_url_ttl_seconds

    def path_for(self, blob_ref: str) -> str:
        # refs are flat file names; anything else is rejected
        if not blob_ref or os.path.basename(blob_ref) != blob_ref or blob_ref.startswith("."):
            raise BlobNotFoundError(blob_ref)
        return os.path.join(self.base_path, blob_ref)

    def store(self, content: bytes, filename: str) -> str:
        ext = os.path.splitext(filename or "")[1].lower() or ".pdf"
        blob_ref = f"{uuid4().hex}{ext}"
        os.makedirs(self.base_path, exist_ok=True)
        with open(self.path_for(blob_ref), "wb") as f:
            f.write(content)
        logger.info("blob_stored", extra={"path": blob_ref})
        return blob_ref

    def delete(self, blob_ref: str) -> None:
        try:
            os.remove(self.path_for(blob_ref))
        except FileNotFoundError as e:
            raise BlobNotFoundError(blob_ref) from e

    def resolve_url(self, blob_ref: str) -> str:
        token = self.serializer.dumps(blob_ref)
        return f"{settings.public_base_url.rstrip('/')}/files/{token}"

    def open_token(self, token: str) -> str:
        """Verify a signed link; returns the file path of the blob."""
        try:
            blob_ref = self.serializer.loads(token, max_age=self.url_ttl)
        except SignatureExpired as e:
            raise InvalidBlobTokenError("Link expired") from e
        except BadSignature as e:
            raise InvalidBlobTokenError("Invalid link") from e
        path = self.path_for(blob_ref)
        if not os.path.isfile(path):
            raise BlobNotFoundError(blob_ref)
        return path


_storage: LocalStorage | None = None


def get_storage() -> LocalStorage:
    """FastAPI dependency; one storage per process."""
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage
