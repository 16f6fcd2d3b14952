"""Stored API key schemas."""

from datetime import datetime, timezone
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, field_validator

from keyvault.services.key_service import parse_tags

Environment = Literal["production", "development", "staging"]
ShortText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class ApiKeyForm(BaseModel):
    """Fields shared by the create and edit forms."""

    name: ShortText
    provider: ShortText
    environment: Environment
    tags: list[str] = []  # comma-separated string or list
    notes: str = Field("", max_length=1000)
    expires_at: datetime | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, v):
        return parse_tags(v)

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_default(cls, v):
        return "" if v is None else v

    @field_validator("expires_at", mode="before")
    @classmethod
    def _parse_expiry(cls, v):
        # "" from an untouched date input; bare dates mean midnight UTC
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if len(v) == 10:
                return f"{v}T00:00:00+00:00"
        return v

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ApiKeyCreateRequest(ApiKeyForm):
    secret: str = Field(..., min_length=1)


class ApiKeyUpdateRequest(ApiKeyForm):
    secret: str | None = None  # blank keeps the stored secret


class ApiKeyResponse(BaseModel):
    id: UUID
    name: str
    provider: str
    environment: str
    masked_secret: str  # never the plaintext
    tags: list[str]
    notes: str
    expires_at: datetime | None
    last_used_at: datetime | None
    created_at: datetime
    updated_at: datetime | None = None


class ApiKeyListResponse(BaseModel):
    items: list[ApiKeyResponse]
    total: int


class RevealRequest(BaseModel):
    password: str = Field(..., min_length=1)


class RevealResponse(BaseModel):
    id: UUID
    secret: str
