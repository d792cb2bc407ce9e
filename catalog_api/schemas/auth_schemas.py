from pydantic import BaseModel, EmailStr
from typing import Optional

from catalog_api.models.user import UserRead


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class TokenEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    token: str
    token_type: str = "bearer"
    user: UserRead


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserRead
