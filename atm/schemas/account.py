"""
Pydantic schemas for account requests and responses.
"""

from pydantic import BaseModel, Field, ConfigDict
from decimal import Decimal


class RegisterRequest(BaseModel):
    """Schema for registering a new account."""
    name: str = Field(..., min_length=1, max_length=100, description="Login handle")
    # [0-9] rather than \d: only ASCII digits are accepted
    pin: str = Field(..., pattern=r"^[0-9]{6}$", description="6-digit numeric PIN")

    model_config = ConfigDict(str_strip_whitespace=True)


class AccountPublic(BaseModel):
    """Public view of an account; never carries the PIN hash."""
    id: int
    name: str
    balance: Decimal

    model_config = ConfigDict(from_attributes=True)
