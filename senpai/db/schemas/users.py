import uuid
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict


class UserPublic(BaseModel):
    """What any caller may see about another account."""
    id: uuid.UUID
    name: str
    role: str
    profile_photo: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class UserPrivate(UserPublic):
    """Own-account and admin view; never carries the password hash."""
    email: str
    credits: int
    strikes: int
    is_banned: bool
    banned_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SignupRequest(BaseModel):
    # Defaults let the service answer missing fields with a 400 message
    email: str = ""
    password: str = ""
    name: str = ""
    role: str = ""
    profile: Optional[Dict[str, Any]] = None


class SignupResponse(BaseModel):
    user: UserPrivate
    profile: Optional[Dict[str, Any]] = None


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: Optional[datetime] = None
    user: UserPrivate


class ForgotPasswordRequest(BaseModel):
    email: str = ""


class ResetPasswordRequest(BaseModel):
    token: str = ""
    password: str = ""


class MessageResponse(BaseModel):
    message: str
