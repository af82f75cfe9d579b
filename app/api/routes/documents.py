"""
Catalog routes and the gated file endpoint.
Reading is public for free documents; upload/edit/delete need the admin role.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.schemas.documents import AccessOut, DocumentOut, DocumentUpdateIn
from app.services.access.service import AccessService
from app.services.audit.service import AuditService
from app.services.auth.jwt import CurrentUser, get_optional_user, require_admin
from app.services.documents.service import DocumentService
from app.storage.local import LocalStorage, get_storage

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=list[DocumentOut])
def list_documents(category: str | None = Query(None), db: Session = Depends(get_db)):
    return DocumentService(db).list(category=category)


@router.get("/{document_id}", response_model=DocumentOut)
def get_document(document_id: str, db: Session = Depends(get_db)):
    return DocumentService(db).get_or_404(document_id)


@router.post("", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    title: str = Form(...),
    category: str = Form(...),
    author: str | None = Form(None),
    price: str | None = Form(None),
    description: str | None = Form(None),
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    # one byte past the limit is enough for create() to refuse the file
    content = file.file.read(settings.max_file_size_mb * 1024 * 1024 + 1)
    document = DocumentService(db, storage).create(
        title=title,
        category=category,
        content=content,
        file_name=file.filename or "document.pdf",
        author=author,
        price=price,
        description=description,
    )
    AuditService(db).log(
        "admin", admin.email, "document_created", "document", document.id,
        {"title": document.title, "price": str(document.price)},
    )
    return document


@router.patch("/{document_id}", response_model=DocumentOut)
def update_document(
    document_id: str,
    payload: DocumentUpdateIn,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = DocumentService(db)
    document = svc.get_or_404(document_id)
    changes = payload.model_dump(exclude_unset=True)
    document = svc.update(document, changes)
    AuditService(db).log(
        "admin", admin.email, "document_updated", "document", document.id,
        {k: str(v) for k, v in changes.items()},
    )
    return document


@router.delete("/{document_id}")
def delete_document(
    document_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    svc = DocumentService(db, storage)
    document = svc.get_or_404(document_id)
    title = document.title
    svc.delete(document)
    AuditService(db).log("admin", admin.email, "document_deleted", "document", document_id, {"title": title})
    return {"ok": True, "message": "Document deleted"}


@router.get("/{document_id}/access", response_model=AccessOut)
def check_access(
    document_id: str,
    page: int = Query(1, ge=1),
    current_user: CurrentUser | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Gate decision without fetching the file (lets the client show the payment flow)."""
    user_email = current_user.email if current_user else None
    decision, _ = AccessService(db).can_serve(user_email, document_id, page)
    return AccessOut(document_id=document_id, page=page, decision=decision)


@router.get("/{document_id}/file")
def get_document_file(
    document_id: str,
    page: int = Query(1, ge=1),
    current_user: CurrentUser | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Redirects to a short-lived signed link when the gate allows; 402 with the price otherwise."""
    user_email = current_user.email if current_user else None
    decision, document = AccessService(db).can_serve(user_email, document_id, page)
    if decision.allowed:
        return RedirectResponse(
            storage.resolve_url(document.blob_ref),
            status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        )
    if decision.reason == "not_found":
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Document not found", "code": "not_found"},
        )
    return JSONResponse(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        content={
            "detail": "Payment required for this document",
            "code": "payment_required",
            "decision": decision.model_dump(mode="json"),
        },
    )
