"""
ReconciliationService: admin review of payment claims.

State machine: pending -> approved | pending -> rejected. Both targets are terminal.

approve() writes the status change, the entitlement grant and the audit row in
one transaction and commits once. On any storage error everything is rolled
back: the claim stays pending and no entitlement exists, so the admin can
simply retry.

Repeating the same decision is a no-op (changed=False). Asking for the opposite
decision on a closed claim raises InvalidTransition and never grants.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InvalidTransition, NotFound, StorageFailure
from app.models.payment_claim import CLAIM_APPROVED, CLAIM_PENDING, CLAIM_REJECTED, PaymentClaim
from app.services.audit.service import AuditService
from app.services.entitlements.service import SOURCE_APPROVAL, EntitlementService
from app.services.payments.service import PaymentClaimService
from app.utils.metrics import claims_reconciled_total

logger = logging.getLogger(__name__)

ACTIONS = {CLAIM_APPROVED: "approve", CLAIM_REJECTED: "reject"}


@dataclass
class ReconciliationResult:
    claim: PaymentClaim
    changed: bool  # False = claim was already in the requested state


class ReconciliationService:
    def __init__(self, db: Session):
        self.db = db
        self.claims = PaymentClaimService(db)
        self.entitlements = EntitlementService(db)
        self.audit = AuditService(db)

    def approve(self, claim_id: int, admin_email: str | None = None) -> ReconciliationResult:
        return self._transition(claim_id, CLAIM_APPROVED, admin_email)

    def reject(self, claim_id: int, admin_email: str | None = None) -> ReconciliationResult:
        return self._transition(claim_id, CLAIM_REJECTED, admin_email)

    def _load_for_update(self, claim_id: int) -> PaymentClaim | None:
        return (
            self.db.query(PaymentClaim)
            .filter(PaymentClaim.id == claim_id)
            .with_for_update()
            .one_or_none()
        )

    def _already_closed(self, claim: PaymentClaim, target: str) -> ReconciliationResult:
        action = ACTIONS[target]
        if claim.status == target:
            claims_reconciled_total.labels(action=action, outcome="noop").inc()
            logger.info(
                "claim_transition_noop",
                extra={"claim_id": claim.id, "status": claim.status},
            )
            return ReconciliationResult(claim=claim, changed=False)
        claims_reconciled_total.labels(action=action, outcome="invalid").inc()
        logger.warning(
            "claim_invalid_transition",
            extra={"claim_id": claim.id, "status": claim.status, "decision": target},
        )
        raise InvalidTransition(f"Payment request is already {claim.status}")

    def _transition(self, claim_id: int, target: str, admin_email: str | None) -> ReconciliationResult:
        action = ACTIONS[target]
        try:
            claim = self._load_for_update(claim_id)
            if claim is None:
                self.db.rollback()
                raise NotFound("Payment request not found")
            if claim.status != CLAIM_PENDING:
                self.db.rollback()
                return self._already_closed(claim, target)

            if not self.claims.set_status(claim.id, target, reviewed_by=admin_email):
                # another reviewer closed it between our read and write
                self.db.rollback()
                return self._already_closed(self.claims.get(claim_id), target)

            if target == CLAIM_APPROVED:
                self.entitlements.grant(
                    claim.user_email,
                    claim.document_id,
                    source=SOURCE_APPROVAL,
                    commit=False,
                )
            self.audit.log(
                actor_type="admin",
                actor_id=admin_email,
                action=f"claim_{target}",
                entity_type="payment_claim",
                entity_id=str(claim.id),
                payload={
                    "user_email": claim.user_email,
                    "document_id": claim.document_id,
                    "transaction_ref": claim.transaction_ref,
                    "amount": str(claim.amount) if claim.amount is not None else None,
                },
                commit=False,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            claims_reconciled_total.labels(action=action, outcome="failed").inc()
            logger.exception(
                "claim_transition_failed",
                extra={"claim_id": claim_id, "decision": target},
            )
            raise StorageFailure() from e

        self.db.refresh(claim)
        claims_reconciled_total.labels(action=action, outcome="changed").inc()
        logger.info(
            f"claim_{target}",
            extra={
                "claim_id": claim.id,
                "user": claim.user_email,
                "document_id": claim.document_id,
                "actor": admin_email,
            },
        )
        return ReconciliationResult(claim=claim, changed=True)
