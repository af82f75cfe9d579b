"""
Payment claim routes for signed-in users: submit a transaction reference, poll its status.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.payments import ClaimOut, ClaimStatusOut, ClaimSubmitIn
from app.services.auth.jwt import CurrentUser, get_current_user, resolve_subject
from app.services.payments.service import PaymentClaimService

router = APIRouter(prefix="/payment-requests", tags=["payment-requests"])


@router.post("", response_model=ClaimOut, status_code=status.HTTP_201_CREATED)
def submit_claim(
    body: ClaimSubmitIn,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """400 with code=duplicate_reference when the reference was already used."""
    user_email = resolve_subject(db, current_user, body.user)
    user_name = body.user_name or (current_user.name if user_email == current_user.email else None)
    return PaymentClaimService(db).submit(
        user_email=user_email,
        user_name=user_name,
        document_id=body.document_id,
        transaction_ref=body.transaction_ref,
        amount=body.amount,
        document_title=body.document_title,
    )


@router.get("/status", response_model=ClaimStatusOut)
def claim_status(
    document_id: str = Query(..., alias="documentId"),
    user: str | None = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_email = resolve_subject(db, current_user, user)
    return {"status": PaymentClaimService(db).latest_status(user_email, document_id)}


@router.get("", response_model=list[ClaimOut])
def my_claims(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return PaymentClaimService(db).list_for_user(current_user.email)
