from app.models.audit_log import AuditLog
from app.models.document import Document
from app.models.entitlement import Entitlement
from app.models.payment_claim import PaymentClaim
from app.models.user import User

__all__ = ["AuditLog", "Document", "Entitlement", "PaymentClaim", "User"]
