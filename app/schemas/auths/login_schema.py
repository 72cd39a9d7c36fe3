"""
Modelo que representa la estructura de datos recibida y enviada en las apis de login y sesión
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool
    message: str


class CurrentUserData(BaseModel):
    id: int
    email: str
    is_admin: bool
    is_verified: bool
    is_approved: bool

    model_config = ConfigDict(from_attributes=True)


class CurrentUserResponse(BaseModel):
    success: bool
    user: CurrentUserData


class AccountSummary(BaseModel):
    id: int
    email: str
    is_verified: bool
    is_approved: bool
    is_admin: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
