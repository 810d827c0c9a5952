# session_guard/api/schemas/session_schema.py
from datetime import datetime

from pydantic import BaseModel, Field, field_serializer

from session_guard.api.schemas._datetime_serializer import serialize_dt


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=512)
    device_info: str | None = Field(default=None, max_length=255)


class LogoutRequest(BaseModel):
    refresh_token: str | None = None  # opcional: sem "fid" no access, identifica a sessão pelo refresh


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class ActiveSessionResponse(BaseModel):
    family_id: str
    device_info: str | None
    user_agent: str | None
    location: str | None
    created_at: datetime
    last_used_at: datetime
    is_current: bool

    @field_serializer("created_at", "last_used_at")
    def _dt(self, value: datetime) -> str | None:
        return serialize_dt(value)


class ActiveSessionsResponse(BaseModel):
    items: list[ActiveSessionResponse]
    total: int


class RevocationResponse(BaseModel):
    message: str
    revoked_count: int
