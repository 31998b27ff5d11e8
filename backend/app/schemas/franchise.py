from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class FranchiseCreate(BaseModel):
    name: str
    address: str
    contact_number: str
    email: EmailStr
    is_active: bool = True


class FranchiseResponse(BaseModel):
    id: int
    name: str
    address: str
    contact_number: str
    email: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
