from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..core.password_security import SecurityUtils


class PasswordMixin(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        problems = SecurityUtils.password_problems(v)
        if problems:
            raise ValueError("; ".join(problems))
        return v


class UserRegister(PasswordMixin):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("name cannot be empty or whitespace only")
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("name cannot be null")
        return v


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    role: str
    is_active: bool
    created_at: datetime


class UserAdminUpdate(BaseModel):
    role: Optional[str] = Field(None, pattern="^(customer|admin)$")
    is_active: Optional[bool] = None


class VendorRegister(PasswordMixin):
    business_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    owner_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None

    @field_validator("business_name")
    @classmethod
    def validate_business_name(cls, v):
        if not v.strip():
            raise ValueError("business_name cannot be empty or whitespace only")
        return v.strip()


class VendorProfileUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=2, max_length=255)
    owner_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None

    @field_validator("business_name")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("business_name cannot be null")
        return v


class VendorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    business_name: str
    slug: str
    email: str
    owner_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    logo: Optional[str] = None
    description: Optional[str] = None
    status: str
    commission_rate: Optional[float] = None
    created_at: datetime


class VendorPublicResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    business_name: str
    slug: str
    city: Optional[str] = None
    logo: Optional[str] = None
    description: Optional[str] = None


class VendorStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(pending|approved|rejected|suspended)$")
    commission_rate: Optional[float] = Field(None, ge=0, le=1)
