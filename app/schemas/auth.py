"""Bearer token identity schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator


def normalize_phone_number(phone_number: str) -> str:
    """Reduce a phone number to international digits: '+91-98765 43210' -> '919876543210'"""
    return "".join(ch for ch in phone_number if ch.isdigit())


class User(BaseModel):
    """Identity behind a bearer token"""
    id: str
    phone_number: str  # {country_code}{number}, digits only

    @field_validator("phone_number")
    @classmethod
    def _normalize(cls, value: str) -> str:
        digits = normalize_phone_number(value)
        if not digits:
            raise ValueError("phone_number must contain digits")
        return digits


class TokenRecord(BaseModel):
    user: User
    issued_at: datetime
    expires_at: Optional[datetime] = None


class TokenValidation(BaseModel):
    """Outcome of validating a bearer token"""
    is_valid: bool
    user: Optional[User] = None
    message: Optional[str] = None
