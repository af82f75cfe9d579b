from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, UniqueConstraint

from app.db.base import Base


class Entitlement(Base):
    """Confirmed access of one user (email) to one document. Append-only."""

    __tablename__ = "entitlements"
    __table_args__ = (
        UniqueConstraint("user_email", "document_id", name="uq_entitlements_user_document"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_email = Column(String, nullable=False, index=True)
    # no FK: the grant stays as a record after the document is deleted
    document_id = Column(String, nullable=False, index=True)
    source = Column(String, nullable=False, default="free")  # free / approval / admin
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
