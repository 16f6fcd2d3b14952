from datetime import datetime

from pydantic import BaseModel, Field


class AccountResponse(BaseModel):
    id: str
    email: str
    created_at: datetime
    key_count: int


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=128)
