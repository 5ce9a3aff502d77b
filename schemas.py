"""
Database Schemas for the Payment Portal

Each Pydantic model describes the documents of a MongoDB collection.

Collections:
- customers / employees / users -> Account (users holds admin accounts)
- payments                     -> Payment
- posts                        -> Post
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime

Role = Literal["customer", "employee", "admin"]
PaymentStatus = Literal[
    "pending", "approved", "rejected", "completed", "processing", "failed", "cancelled"
]

PAYMENT_STATUSES = (
    "pending", "approved", "rejected", "completed", "processing", "failed", "cancelled"
)
REVIEW_STATUSES = ("approved", "rejected")

ROLE_COLLECTIONS = {
    "customer": "customers",
    "employee": "employees",
    "admin": "users",
}


class Account(BaseModel):
    username: str = Field(..., description="Unique within its collection")
    password_hash: str = Field(..., description="bcrypt hash")
    full_name: str = Field(..., description="Display name")
    role: Role = "customer"
    is_active: bool = Field(True, description="Deactivated accounts cannot log in")
    permissions: List[str] = Field(default_factory=list)
    email: Optional[str] = None
    account_number: Optional[str] = None
    created_at: Optional[datetime] = None


class Payment(BaseModel):
    customer_id: str = Field(..., description="Account id of the requesting customer")
    customer_name: str
    source_account: str
    target_account: str
    beneficiary_name: str
    beneficiary_bank: str = Field(..., description="SWIFT/BIC code")
    amount: str = Field(..., description="Decimal string with at most 2 fraction digits")
    currency: str = Field(..., description="ISO 4217 code, e.g. USD")
    purpose: str
    status: PaymentStatus = "pending"
    reference: str = Field(..., description="Human readable reference, PAY-<millis>-<suffix>")
    created_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None


class Post(BaseModel):
    user: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None


class TokenClaims(BaseModel):
    """Decoded bearer token; never persisted."""

    user_id: str
    username: str
    role: Role
    full_name: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
    iat: Optional[int] = None
    exp: Optional[int] = None
