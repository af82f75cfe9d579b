"""
Paywall decision library.
decide_access is pure; loading the context is the access service's job.
"""
from app.paywall.access import decide_access
from app.paywall.audit import record_access
from app.paywall.models import (
    AccessContext,
    AccessDecision,
    PaymentInstructions,
)

__all__ = [
    "AccessContext",
    "AccessDecision",
    "PaymentInstructions",
    "decide_access",
    "record_access",
]
