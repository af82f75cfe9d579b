from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ClaimSubmitIn(BaseModel):
    """Accepts the web client's camelCase names as well as snake_case."""

    model_config = ConfigDict(extra="ignore")

    user: str | None = Field(None, validation_alias=AliasChoices("user", "email"))
    user_name: str | None = Field(None, validation_alias=AliasChoices("user_name", "userName", "name"))
    document_id: str = Field(..., validation_alias=AliasChoices("document_id", "documentId", "pdfId"))
    document_title: str | None = Field(
        None, validation_alias=AliasChoices("document_title", "documentTitle", "pdfTitle")
    )
    transaction_ref: str = Field(
        ..., validation_alias=AliasChoices("transaction_ref", "transactionRef", "utrId")
    )
    amount: Decimal | None = None


class ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_email: str
    user_name: str | None = None
    document_id: str
    document_title: str | None = None
    transaction_ref: str
    amount: Decimal | None = None
    status: str
    created_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None


class ClaimStatusOut(BaseModel):
    status: str | None  # pending / approved / rejected, None when nothing was submitted


class ReconciliationOut(BaseModel):
    claim: ClaimOut
    changed: bool
    message: str
