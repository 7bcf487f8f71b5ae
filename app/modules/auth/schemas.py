from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional

from app.core.policy import Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    weddingId: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("password")
    @classmethod
    def password_min_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return value


class SessionUser(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: Role


class SessionEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: Optional[SessionUser] = None
