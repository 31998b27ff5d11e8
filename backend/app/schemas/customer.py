from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional
from datetime import datetime


class CustomerCreate(BaseModel):
    franchise_id: Optional[int] = None  # defaults to the caller's franchise
    first_name: str
    last_name: str
    address: str
    contact_number: str
    email: Optional[EmailStr] = None

    @field_validator('first_name', 'last_name', 'address', 'contact_number')
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = " ".join(v.split())
        if not v:
            raise ValueError('Field cannot be empty')
        return v


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[EmailStr] = None


class CustomerResponse(BaseModel):
    id: int
    franchise_id: int
    first_name: str
    last_name: str
    address: str
    contact_number: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
