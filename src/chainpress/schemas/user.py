"""Profile registration schemas."""

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Profile details for a wallet holding a live session."""

    address: str
    token: str = Field(..., min_length=1, description="Session token from /auth/verify")
    name: str = Field("", max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterResponse(BaseModel):
    success: bool = True
    user_id: int
    redirect: str


class ProfileRequest(BaseModel):
    address: str
    token: str


class ProfileResponse(BaseModel):
    exists: bool
    name: str | None = None
