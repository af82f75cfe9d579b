from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class GrantIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user: str | None = Field(None, validation_alias=AliasChoices("user", "email"))
    document_id: str = Field(..., validation_alias=AliasChoices("document_id", "documentId", "pdfId"))


class EntitlementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_email: str
    document_id: str
    source: str
    created_at: datetime


class EntitlementCheckOut(BaseModel):
    entitled: bool
