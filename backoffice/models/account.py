from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .enums import Role


class UserCreate(BaseModel):
    """Admin-side registration of an identity-provider account"""
    user_id: str = Field(..., min_length=1, max_length=36)
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)
    role: Role = Role.GUEST


class UserProfileUpdate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr


class UserRoleUpdate(BaseModel):
    role: Role


class UserDisabledUpdate(BaseModel):
    disabled: bool


class NotificationPreferences(BaseModel):
    new_inventory_notif: bool = False
    new_requirement_notif: bool = False
    pending_requirement_notif: bool = False
