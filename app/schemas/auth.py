from pydantic import AliasChoices, BaseModel, Field


class SessionIn(BaseModel):
    # Google ID token (credential) or, for the dev provider, "email|Name"
    id_token: str = Field(..., validation_alias=AliasChoices("id_token", "idToken", "credential"))


class UserInfo(BaseModel):
    email: str
    name: str | None = None
    role: str


class SessionOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class RoleIn(BaseModel):
    role: str


class AuditOut(BaseModel):
    id: str
    actor_type: str
    actor_id: str | None = None
    action: str
    entity_type: str
    entity_id: str | None = None
    payload: dict
    created_at: str | None = None
