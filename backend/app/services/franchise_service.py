"""Franchise (branch) registry."""
from typing import List

from sqlalchemy.orm import Session

from app.models.franchise import Franchise
from app.schemas.franchise import FranchiseCreate


def list_franchises(db: Session) -> List[Franchise]:
    return db.query(Franchise).order_by(Franchise.name).all()


def create_franchise(db: Session, data: FranchiseCreate) -> Franchise:
    franchise = Franchise(**data.model_dump())
    db.add(franchise)
    db.commit()
    db.refresh(franchise)
    return franchise
