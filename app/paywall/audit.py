"""
Access audit: record_access is called by the access service for every gate decision.
"""
from __future__ import annotations

import logging

from app.paywall.models import AccessContext, AccessDecision
from app.utils.metrics import access_decisions_total

logger = logging.getLogger(__name__)


def record_access(ctx: AccessContext, decision: AccessDecision) -> None:
    """Log the decision and count it. Denials are normal outcomes, logged at INFO."""
    label = "allow" if decision.allowed else decision.reason
    access_decisions_total.labels(decision=label).inc()
    logger.info(
        "paywall_access",
        extra={
            "user": ctx.user_email,
            "document_id": ctx.document_id,
            "decision": label,
            "reason": decision.basis or decision.reason,
            "page": ctx.requested_page,
        },
    )
