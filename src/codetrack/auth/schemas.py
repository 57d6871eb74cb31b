"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import EmailStr, Field, field_validator

from codetrack.schemas import CamelModel


class RegisterRequest(CamelModel):
    """Registration with username, email and password."""

    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    full_name: str | None = Field(None, max_length=255)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Username cannot be blank"
            raise ValueError(msg)
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class LoginRequest(CamelModel):
    """Login with username + password."""

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    """Public user representation. Never includes the password hash."""

    id: int
    username: str
    email: str
    full_name: str | None = None


class AuthResponse(CamelModel):
    """Envelope returned by register, login and me."""

    user: UserResponse


class LogoutResponse(CamelModel):
    status: str = "logged_out"
