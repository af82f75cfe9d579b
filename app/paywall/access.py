"""
Decision only: decide_access(ctx) -> AccessDecision.
Pure function, no I/O. Document-granular: an allowed document is allowed on every page.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from app.paywall.config import get_currency, get_payment_instructions
from app.paywall.models import AccessContext, AccessDecision

logger = logging.getLogger(__name__)


def decide_access(ctx: AccessContext) -> AccessDecision:
    """
    Order of checks:
    - document missing -> deny not_found
    - price == 0 -> allow (free), no entitlement needed, anonymous included
    - admin -> allow (catalog review)
    - entitlement present -> allow
    - otherwise deny payment_required with the price and payee details
    """
    if not ctx.document_found:
        return AccessDecision(allowed=False, reason="not_found")

    if ctx.price <= Decimal("0"):
        return AccessDecision(allowed=True, basis="free")

    if ctx.is_admin:
        return AccessDecision(allowed=True, basis="admin")

    if ctx.is_entitled:
        return AccessDecision(allowed=True, basis="entitled")

    return AccessDecision(
        allowed=False,
        reason="payment_required",
        price=ctx.price,
        currency=get_currency(),
        payment=get_payment_instructions(),
    )
