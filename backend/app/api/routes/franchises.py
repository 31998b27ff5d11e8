"""Franchise registry. Anyone signed in may list; only admins may add."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, get_admin_user
from app.core.audit import AuditLog
from app.models.user import User
from app.schemas.franchise import FranchiseCreate, FranchiseResponse
from app.services import franchise_service

router = APIRouter()


@router.get("", response_model=List[FranchiseResponse])
def list_franchises(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return franchise_service.list_franchises(db)


@router.post("", response_model=FranchiseResponse, status_code=status.HTTP_201_CREATED)
def create_franchise(
    data: FranchiseCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    franchise = franchise_service.create_franchise(db, data)
    AuditLog.log_action("create", "franchise", franchise.id, admin, changes={"name": franchise.name})
    return franchise
