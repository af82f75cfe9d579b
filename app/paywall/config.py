"""
Paywall config: typed wrapper over app.core.config for currency and payee details.
"""
from __future__ import annotations

from app.core.config import settings
from app.paywall.models import PaymentInstructions


def get_currency() -> str:
    return getattr(settings, "currency", "INR")


def get_payment_instructions() -> PaymentInstructions:
    return PaymentInstructions(
        upi_id=getattr(settings, "upi_payee_id", "") or None,
        payee_name=getattr(settings, "upi_payee_name", "") or None,
        note=getattr(settings, "payment_note", "") or None,
    )
