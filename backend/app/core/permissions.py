"""
Franchise scoping for staff requests.
Trust: staff act only inside their own franchise; admins may act on any.
"""
from typing import Optional

from app.core.exceptions import PermissionDeniedError, ValidationError
from app.models.user import User


def franchise_scope(user: User, requested_franchise_id: Optional[int] = None) -> Optional[int]:
    """
    Resolve which franchise a read should be limited to.

    Returns None only for an admin who asked for no particular franchise,
    meaning "all franchises".
    """
    if user.is_admin and user.franchise_id is None:
        return requested_franchise_id
    if user.franchise_id is None:
        raise PermissionDeniedError("User is not assigned to a franchise")
    if requested_franchise_id is not None and requested_franchise_id != user.franchise_id:
        raise PermissionDeniedError("Cannot access another franchise")
    return user.franchise_id


def ensure_franchise_access(user: User, franchise_id: int) -> None:
    """Reject writes aimed at a franchise the user does not belong to."""
    if user.is_admin and user.franchise_id is None:
        return
    if franchise_id != user.franchise_id:
        raise PermissionDeniedError("Cannot access another franchise")


def acting_franchise(user: User, requested_franchise_id: Optional[int] = None) -> int:
    """Franchise a write applies to when the payload may omit it."""
    franchise_id = requested_franchise_id if requested_franchise_id is not None else user.franchise_id
    if franchise_id is None:
        raise ValidationError.for_field("franchise_id", "franchise_id is required")
    ensure_franchise_access(user, franchise_id)
    return franchise_id
