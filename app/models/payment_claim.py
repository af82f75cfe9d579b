"""
PaymentClaim: proof of an out-of-band payment (UPI / bank transfer reference).
transaction_ref is unique across all claims, whatever their status.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Numeric, String, UniqueConstraint

from app.db.base import Base

CLAIM_PENDING = "pending"
CLAIM_APPROVED = "approved"
CLAIM_REJECTED = "rejected"
CLAIM_STATUSES = (CLAIM_PENDING, CLAIM_APPROVED, CLAIM_REJECTED)


class PaymentClaim(Base):
    __tablename__ = "payment_claims"
    __table_args__ = (
        UniqueConstraint("transaction_ref", name="uq_payment_claims_transaction_ref"),
    )

    # integer id: monotonic, breaks created_at ties (newest wins)
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(String, nullable=False, index=True)
    user_name = Column(String, nullable=True)
    document_id = Column(String, nullable=False, index=True)
    document_title = Column(String, nullable=True)  # denormalized for review screens
    transaction_ref = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=True)
    status = Column(String, nullable=False, default=CLAIM_PENDING)  # pending / approved / rejected
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String, nullable=True)  # admin email
