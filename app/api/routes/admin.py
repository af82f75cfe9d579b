"""
Admin API: payment claim review, user roles, audit log.
Every route requires the admin role from the users table.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.auth import AuditOut, RoleIn, UserInfo
from app.schemas.payments import ClaimOut, ReconciliationOut
from app.services.audit.service import AuditService
from app.services.auth.jwt import CurrentUser, require_admin
from app.services.payments.service import PaymentClaimService
from app.services.reconciliation.service import ReconciliationService
from app.services.users.service import UserService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ---------- Payment claims ----------
@router.get("/payment-requests", response_model=list[ClaimOut])
def payment_requests_list(db: Session = Depends(get_db)):
    """Every claim, newest first. Filtering by status is left to the client."""
    return PaymentClaimService(db).list_all()


@router.post("/payment-requests/{claim_id}/approve", response_model=ReconciliationOut)
def payment_requests_approve(
    claim_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = ReconciliationService(db).approve(claim_id, admin.email)
    message = "Payment approved and document unlocked" if result.changed else "Payment was already approved"
    return {"claim": result.claim, "changed": result.changed, "message": message}


@router.post("/payment-requests/{claim_id}/reject", response_model=ReconciliationOut)
def payment_requests_reject(
    claim_id: int,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = ReconciliationService(db).reject(claim_id, admin.email)
    message = "Payment rejected" if result.changed else "Payment was already rejected"
    return {"claim": result.claim, "changed": result.changed, "message": message}


# ---------- Users ----------
@router.put("/users/{email}/role", response_model=UserInfo)
def users_set_role(
    email: str,
    payload: RoleIn,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = UserService(db).set_role(email, payload.role)
    AuditService(db).log("admin", admin.email, "user_role_set", "user", user.email, {"role": user.role})
    return UserInfo(email=user.email, name=user.display_name, role=user.role)


# ---------- Audit ----------
@router.get("/audit", response_model=list[AuditOut])
def audit_list(
    db: Session = Depends(get_db),
    limit: int = Query(100, ge=1, le=500),
    entity_type: str | None = None,
    entity_id: str | None = None,
):
    rows = AuditService(db).list_recent(limit=limit, entity_type=entity_type, entity_id=entity_id)
    return [
        AuditOut(
            id=r.id,
            actor_type=r.actor_type,
            actor_id=r.actor_id,
            action=r.action,
            entity_type=r.entity_type,
            entity_id=r.entity_id,
            payload=r.payload or {},
            created_at=r.created_at.isoformat() if r.created_at else None,
        )
        for r in rows
    ]
