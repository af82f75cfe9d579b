from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from app.paywall.models import AccessDecision


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    author: str
    description: str | None = None
    price: Decimal
    category: str
    locked: bool  # derived from price on read
    file_name: str | None = None
    created_at: datetime


class DocumentUpdateIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    author: str | None = None
    description: str | None = None
    price: Decimal | str | None = None
    category: str | None = None


class AccessOut(BaseModel):
    document_id: str
    page: int
    decision: AccessDecision
