"""
AccessService: per-request gate: loads document and entitlement, delegates to decide_access.
"""
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.models.document import Document
from app.paywall import AccessContext, AccessDecision, decide_access, record_access
from app.services.auth.jwt import is_admin
from app.services.entitlements.service import EntitlementService


class AccessService:
    def __init__(self, db: Session):
        self.db = db
        self.entitlements = EntitlementService(db)

    def build_context(
        self,
        user_email: str | None,
        document_id: str,
        requested_page: int = 1,
    ) -> tuple[AccessContext, Document | None]:
        if requested_page < 1:
            raise ValidationError("Page numbers start at 1")
        document = self.db.query(Document).filter(Document.id == document_id).one_or_none()
        if document is None:
            ctx = AccessContext(
                user_email=user_email,
                document_id=document_id,
                document_found=False,
                requested_page=requested_page,
            )
            return ctx, None

        price = Decimal(document.price or 0)
        entitled = False
        admin = False
        # free documents never touch the ledger
        if price > 0 and user_email:
            entitled = self.entitlements.is_entitled(user_email, document.id)
            admin = not entitled and is_admin(self.db, user_email)
        ctx = AccessContext(
            user_email=user_email,
            document_id=document.id,
            price=price,
            is_entitled=entitled,
            is_admin=admin,
            requested_page=requested_page,
        )
        return ctx, document

    def can_serve(
        self,
        user_email: str | None,
        document_id: str,
        requested_page: int = 1,
    ) -> tuple[AccessDecision, Document | None]:
        """Returns the decision and, when found, the document (for the blob lookup)."""
        ctx, document = self.build_context(user_email, document_id, requested_page)
        decision = decide_access(ctx)
        record_access(ctx, decision)
        return decision, document
