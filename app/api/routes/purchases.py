"""
Entitlement routes (the web client calls a grant a "purchase").
Users grant themselves free documents only; admins may grant any document.
"""
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.entitlements import EntitlementCheckOut, EntitlementOut, GrantIn
from app.services.auth.jwt import CurrentUser, get_current_user, is_admin, resolve_subject
from app.services.documents.service import DocumentService
from app.services.entitlements.service import (
    SOURCE_ADMIN,
    SOURCE_APPROVAL,
    SOURCE_FREE,
    EntitlementService,
)

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("", response_model=EntitlementOut, status_code=status.HTTP_201_CREATED)
def grant_entitlement(
    body: GrantIn,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_email = resolve_subject(db, current_user, body.user)
    document = DocumentService(db).get_or_404(body.document_id)
    svc = EntitlementService(db)
    source = SOURCE_FREE
    if document.locked:
        admin = is_admin(db, current_user.email)
        # an existing grant is returned as-is (idempotent), anything else needs approval
        if not admin and not svc.is_entitled(user_email, document.id):
            return JSONResponse(
                status_code=status.HTTP_402_PAYMENT_REQUIRED,
                content={
                    "detail": "Paid documents unlock after payment approval",
                    "code": "payment_required",
                },
            )
        source = SOURCE_ADMIN if admin else SOURCE_APPROVAL
    return svc.grant(user_email, document.id, source=source)


@router.get("/check", response_model=EntitlementCheckOut)
def check_entitlement(
    document_id: str = Query(..., alias="documentId"),
    user: str | None = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_email = resolve_subject(db, current_user, user)
    return {"entitled": EntitlementService(db).is_entitled(user_email, document_id)}


@router.get("", response_model=list[EntitlementOut])
def my_entitlements(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return EntitlementService(db).list_for_user(current_user.email)
