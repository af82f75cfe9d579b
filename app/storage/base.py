from abc import ABC, abstractmethod


class BlobNotFoundError(Exception):
    pass


class Storage(ABC):
    """Blob storage collaborator: opaque references in, bytes and URLs out."""

    @abstractmethod
    def store(self, content: bytes, filename: str) -> str:
        """Save content; returns the blob reference."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, blob_ref: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def resolve_url(self, blob_ref: str) -> str:
        """Short-lived URL the client is redirected to once access is allowed."""
        raise NotImplementedError
