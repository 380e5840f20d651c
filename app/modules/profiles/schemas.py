from pydantic import BaseModel
from typing import Optional, Literal

UserRole = Literal["member", "admin"]


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    avatar: Optional[str] = None


class RoleUpdate(BaseModel):
    role: UserRole


class ProfileResponse(BaseModel):
    id: str
    uid: str
    email: str
    display_name: str
    avatar: Optional[str] = None
    role: UserRole = "member"
    joined_at: int
    last_active: int
    created_at: int
    updated_at: int

    class Config:
        from_attributes = True
