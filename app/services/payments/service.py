"""
PaymentClaimService: queue of manual payment claims (UPI / bank transfer references).

Responsibilities:
- Storing a claim for a priced document (status pending)
- Refusing a reused transaction reference (unique constraint, not a pre-check)
- Latest status per (user, document), admin listing
- Guarded status transition, used only by ReconciliationService
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    DocumentNotPayable,
    DuplicateReference,
    NotFound,
    StorageFailure,
    ValidationError,
)
from app.models.document import Document
from app.models.payment_claim import CLAIM_PENDING, CLAIM_STATUSES, PaymentClaim
from app.services.rate_limit import claim_limiter
from app.utils.metrics import claims_duplicate_total, claims_submitted_total

logger = logging.getLogger(__name__)

TRANSACTION_REF_MAX_LENGTH = 64
REF_CONSTRAINT_MARKERS = ("uq_payment_claims_transaction_ref", "payment_claims.transaction_ref")


def _is_duplicate_ref(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    return any(marker in text for marker in REF_CONSTRAINT_MARKERS)


def _parse_amount(value: Any, default: Decimal) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValidationError("Amount must be a number") from e
    if not amount.is_finite() or amount < 0:
        raise ValidationError("Amount must be zero or positive")
    return amount.quantize(Decimal("0.01"))


class PaymentClaimService:
    def __init__(self, db: Session):
        self.db = db
        self.rate_limiter = claim_limiter()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        user_email: str,
        user_name: str | None,
        document_id: str,
        transaction_ref: str,
        amount: Any = None,
        document_title: str | None = None,
    ) -> PaymentClaim:
        """
        Store a pending claim. Raises DuplicateReference if the reference was used
        by any earlier claim, whatever its status (including rejected ones).
        """
        ref = (transaction_ref or "").strip()
        if not ref:
            raise ValidationError("Transaction reference is required")
        if len(ref) > TRANSACTION_REF_MAX_LENGTH:
            raise ValidationError("Transaction reference is too long")

        document = self.db.query(Document).filter(Document.id == document_id).one_or_none()
        if not document:
            raise NotFound("Document not found")
        if not document.locked:
            raise DocumentNotPayable()

        self.rate_limiter.hit(user_email)

        price = Decimal(document.price)
        claimed = _parse_amount(amount, default=price)
        if claimed < price:
            logger.warning(
                "claim_amount_below_price",
                extra={"user": user_email, "document_id": document_id, "transaction_ref": ref},
            )

        claim = PaymentClaim(
            user_email=user_email,
            user_name=user_name,
            document_id=document.id,
            document_title=document_title or document.title,
            transaction_ref=ref,
            amount=claimed,
            status=CLAIM_PENDING,
        )
        self.db.add(claim)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _is_duplicate_ref(e):
                claims_duplicate_total.inc()
                logger.warning(
                    "claim_duplicate_reference",
                    extra={"user": user_email, "document_id": document_id, "transaction_ref": ref},
                )
                raise DuplicateReference() from e
            logger.exception("claim_submit_failed", extra={"user": user_email})
            raise StorageFailure() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("claim_submit_failed", extra={"user": user_email})
            raise StorageFailure() from e

        self.db.refresh(claim)
        claims_submitted_total.inc()
        logger.info(
            "claim_submitted",
            extra={
                "claim_id": claim.id,
                "user": user_email,
                "document_id": document.id,
                "transaction_ref": ref,
            },
        )
        return claim

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, claim_id: int) -> PaymentClaim | None:
        return self.db.query(PaymentClaim).filter(PaymentClaim.id == claim_id).one_or_none()

    def latest(self, user_email: str, document_id: str) -> PaymentClaim | None:
        """Most recent claim for the pair; created_at ties go to the higher id."""
        return (
            self.db.query(PaymentClaim)
            .filter(PaymentClaim.user_email == user_email, PaymentClaim.document_id == document_id)
            .order_by(PaymentClaim.created_at.desc(), PaymentClaim.id.desc())
            .first()
        )

    def latest_status(self, user_email: str, document_id: str) -> str | None:
        claim = self.latest(user_email, document_id)
        return claim.status if claim else None

    def list_all(self) -> list[PaymentClaim]:
        """Admin listing, newest first, every status."""
        return (
            self.db.query(PaymentClaim)
            .order_by(PaymentClaim.created_at.desc(), PaymentClaim.id.desc())
            .all()
        )

    def list_for_user(self, user_email: str) -> list[PaymentClaim]:
        return (
            self.db.query(PaymentClaim)
            .filter(PaymentClaim.user_email == user_email)
            .order_by(PaymentClaim.created_at.desc(), PaymentClaim.id.desc())
            .all()
        )

    # ------------------------------------------------------------------
    # Transition (ReconciliationService only)
    # ------------------------------------------------------------------

    def set_status(self, claim_id: int, new_status: str, reviewed_by: str | None = None) -> bool:
        """
        pending -> new_status, guarded by WHERE status = 'pending'.
        Returns False if the claim was no longer pending. Does not commit.
        """
        if new_status not in CLAIM_STATUSES or new_status == CLAIM_PENDING:
            raise ValueError(f"Invalid target status: {new_status}")
        res = self.db.execute(
            update(PaymentClaim)
            .where(PaymentClaim.id == claim_id, PaymentClaim.status == CLAIM_PENDING)
            .values(
                status=new_status,
                reviewed_at=datetime.now(timezone.utc),
                reviewed_by=reviewed_by,
            )
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

