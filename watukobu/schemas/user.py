"""
Request and response schemas for users and profiles.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: str
    employee_id: Optional[str] = None
    area: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool = True
    created_at: datetime


class UserSummary(BaseModel):
    """User row for team listings."""

    id: str
    name: str
    email: str
    role: str
    employee_id: Optional[str] = None
    area: str = "Unassigned"
    phone: Optional[str] = None
    assigned_count: int = 0


class UserListResponse(BaseModel):
    success: bool = True
    data: List[UserSummary]
    count: int


class UserEnvelope(BaseModel):
    success: bool = True
    data: UserResponse


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    name: str = Field(..., description="Display name; blank is rejected")
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("avatar_url", "avatarUrl"))

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if v and "@" not in v:
            raise ValueError("Invalid email address")
        return v or None
