from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
import re

from cakeland.models.user import UserRole

PASSWORD_RULES = [
    (r'[A-Z]', 'Password must contain at least one uppercase letter'),
    (r'[a-z]', 'Password must contain at least one lowercase letter'),
    (r'\d', 'Password must contain at least one digit'),
]


class CustomerSignup(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = None
    password: str = Field(..., min_length=8)

    @field_validator('full_name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Full name is required')
        return v

    @field_validator('password')
    @classmethod
    def check_password_strength(cls, v):
        for pattern, message in PASSWORD_RULES:
            if not re.search(pattern, v):
                raise ValueError(message)
        return v

    @field_validator('phone')
    @classmethod
    def check_phone(cls, v):
        if not v:
            return None
        # Indian mobile numbers, no country code
        if not re.fullmatch(r'\d{10}', v):
            raise ValueError('Phone must be 10 digits')
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserProfile(BaseModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str]
    role: UserRole
    is_active: bool

    class Config:
        from_attributes = True
