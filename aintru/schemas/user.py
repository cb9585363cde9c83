from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from aintru.models.enums import AuthProvider, UserType


class VerifyCredentials(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None


class UserCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class UserLogin(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class CompleteProfile(BaseModel):
    email: EmailStr
    phone: str
    surname: Optional[str] = None
    education_level: Optional[str] = None
    user_type: Optional[UserType] = None
    is_student: Optional[bool] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: Optional[str] = None
    provider: AuthProvider
    avatar: Optional[str] = None
    is_verified: bool
    surname: Optional[str] = None
    education_level: Optional[str] = None
    user_type: UserType
    is_student: Optional[bool] = None
    last_activity: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    id: int
    email: EmailStr
    name: str
    phone: Optional[str] = None
    last_activity: Optional[datetime] = None

    class Config:
        from_attributes = True


class SignupResponse(BaseModel):
    success: bool = True
    message: str
    user: UserBrief


class TokenResponse(BaseModel):
    success: bool = True
    user: UserBrief
    token: str


class ProfileResponse(BaseModel):
    success: bool = True
    user: UserOut
