"""
Document: a catalog entry backed by a PDF blob.
locked is derived from price on every read and is never stored.
"""
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Column, DateTime, Numeric, String, Text

from app.db.base import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    title = Column(String, nullable=False)
    author = Column(String, nullable=False, default="Unknown")
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))  # 0 = free
    category = Column(String, nullable=False, index=True)  # e.g. state board name
    blob_ref = Column(String, nullable=False)  # key in blob storage
    file_name = Column(String, nullable=True)  # original upload name
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def locked(self) -> bool:
        return Decimal(self.price or 0) > 0
