"""
Catalog store: document metadata in the database, bytes in blob storage.
"""
import logging
import os
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFound, ValidationError
from app.models.document import Document
from app.storage.base import BlobNotFoundError, Storage

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "author", "description", "price", "category")
REQUIRED_FIELDS = ("title", "author", "price", "category")


def parse_price(value: Any) -> Decimal:
    """Empty / missing price means free. Negative prices are rejected."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValidationError("Price must be a number") from e
    if not price.is_finite() or price < 0:
        raise ValidationError("Price must be zero or positive")
    return price.quantize(Decimal("0.01"))


class DocumentService:
    def __init__(self, db: Session, storage: Storage | None = None):
        self.db = db
        self.storage = storage

    def list(self, category: str | None = None) -> list[Document]:
        q = self.db.query(Document)
        if category:
            q = q.filter(Document.category == category)
        return q.order_by(Document.created_at.desc()).all()

    def get(self, document_id: str) -> Document | None:
        return self.db.query(Document).filter(Document.id == document_id).one_or_none()

    def get_or_404(self, document_id: str) -> Document:
        document = self.get(document_id)
        if not document:
            raise NotFound("Document not found")
        return document

    def create(
        self,
        *,
        title: str,
        category: str,
        content: bytes,
        file_name: str,
        author: str | None = None,
        price: Any = None,
        description: str | None = None,
    ) -> Document:
        title = (title or "").strip()
        category = (category or "").strip()
        if not title or not category:
            raise ValidationError("Title and category are required")
        ext = os.path.splitext(file_name or "")[1].lower()
        if ext not in settings.allowed_extensions_set:
            raise ValidationError(f"Unsupported file type: {ext or 'none'}")
        if not content:
            raise ValidationError("No file uploaded")
        if len(content) > settings.max_file_size_mb * 1024 * 1024:
            raise ValidationError(f"File exceeds {settings.max_file_size_mb} MB")
        parsed_price = parse_price(price)

        blob_ref = self.storage.store(content, file_name)
        document = Document(
            title=title,
            author=(author or "").strip() or "Unknown",
            description=description,
            price=parsed_price,
            category=category,
            blob_ref=blob_ref,
            file_name=file_name,
        )
        self.db.add(document)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            # metadata insert failed: don't leave an orphan blob behind
            self._delete_blob(blob_ref)
            raise
        self.db.refresh(document)
        logger.info("document_created", extra={"document_id": document.id, "source": category})
        return document

    def update(self, document: Document, data: dict[str, Any]) -> Document:
        """Partial edit. Explicit nulls are refused for required fields; "0" makes a document free."""
        changes = {}
        for key, value in data.items():
            if key not in EDITABLE_FIELDS:
                continue
            if key in REQUIRED_FIELDS and (value is None or (isinstance(value, str) and not value.strip())):
                raise ValidationError(f"{key} cannot be empty")
            if key == "price":
                value = parse_price(value)
            elif key in ("title", "author", "category"):
                value = value.strip()
            changes[key] = value
        for key, value in changes.items():
            setattr(document, key, value)
        self.db.add(document)
        self.db.commit()
        self.db.refresh(document)
        return document

    def delete(self, document: Document) -> None:
        document_id, blob_ref = document.id, document.blob_ref
        self.db.delete(document)
        self.db.commit()
        self._delete_blob(blob_ref)
        logger.info("document_deleted", extra={"document_id": document_id})

    def _delete_blob(self, blob_ref: str) -> None:
        try:
            self.storage.delete(blob_ref)
        except BlobNotFoundError:
            logger.warning("blob_already_missing", extra={"path": blob_ref})
        except OSError as e:
            logger.warning("blob_cleanup_failed", extra={"path": blob_ref, "error": str(e)})
