"""
DTO paywall: AccessContext (input of decide_access), AccessDecision, PaymentInstructions.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

AllowBasis = Literal["free", "entitled", "admin"]
DenyReason = Literal["not_found", "payment_required"]


# ----- Input of decide_access (one contract instead of growing signatures) -----


class AccessContext(BaseModel):
    """Everything decide_access needs, already loaded: document presence/price and the user's grants."""

    user_email: str | None = None  # None = anonymous
    document_id: str
    document_found: bool = True
    price: Decimal = Decimal("0")
    is_entitled: bool = False
    is_admin: bool = False
    # Logged only: once a document is allowed every page is.
    requested_page: int = Field(1, ge=1)

    model_config = {"frozen": True}


# ----- What a denied user needs to start the payment flow -----


class PaymentInstructions(BaseModel):
    """UPI payee shown next to the price; None fields mean the method is not configured."""

    upi_id: str | None = None
    payee_name: str | None = None
    note: str | None = None

    model_config = {"frozen": True}


# ----- Decision (pure logic, no I/O) -----


class AccessDecision(BaseModel):
    """Result of decide_access: allow, or deny with a reason (and price when payment is required)."""

    allowed: bool
    basis: AllowBasis | None = Field(None, description="Why access was allowed")
    reason: DenyReason | None = Field(None, description="Why access was denied")
    price: Decimal | None = Field(None, description="Set when reason == payment_required")
    currency: str | None = None
    payment: PaymentInstructions | None = None

    model_config = {"frozen": True}
