from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from fyphub.models.user import UserRole


class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    role: UserRole = UserRole.STUDENT


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    profile_info: Optional[str] = Field(None, max_length=2000)
    password: Optional[str] = Field(None, min_length=6)


class UserPublic(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    full_name: str
    role: UserRole
    profile_info: Optional[str] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str

    class Config:
        from_attributes = True


class User(UserPublic):
    email: str
    is_active: bool
    created_at: Optional[datetime] = None


class UsernameAvailability(BaseModel):
    username: str
    available: bool


class SessionInfo(BaseModel):
    user_id: int
    name: str
    email: str
    role: UserRole
