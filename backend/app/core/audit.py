"""
Audit logging for authentication and stock-affecting operations.

Emits one JSON line per event on the "audit" logger so it can be shipped
separately from application logs.

LOGGING SENSITIVE DATA: auth logs never include passwords or tokens.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

from app.models.user import User

audit_logger = logging.getLogger("audit")


def _emit(entry: Dict[str, Any], level: int = logging.INFO) -> None:
    entry = {"timestamp": datetime.now(timezone.utc).isoformat(), **entry}
    audit_logger.log(level, json.dumps(entry, default=str))


class AuditLog:
    """Central audit logging for security-critical and stock-changing events."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "logout", "register"
        username: str,
        ip_address: str,
        success: bool,
        reason: str = "",
    ):
        """
        Usage:
            AuditLog.log_authentication("login", "asha", "192.168.1.1", True)
            AuditLog.log_authentication("login", "asha", "192.168.1.1", False, reason="Invalid password")
        """
        entry = {
            "event_type": f"auth.{action}",
            "username": username,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            entry["reason"] = reason
        _emit(entry, logging.INFO if success else logging.WARNING)

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "status_change", "set_stock", "bill"
        resource_type: str,  # "order", "inventory", "product", "customer", "franchise"
        resource_id: Any,
        user: User,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Usage:
            AuditLog.log_action("create", "order", 12, current_user, changes={"items": 3})
            AuditLog.log_action("set_stock", "inventory", 4, current_user, changes={"stock_quantity": 40})
        """
        entry = {
            "event_type": f"{resource_type}.{action}",
            "user_id": user.id,
            "username": user.username,
            "franchise_id": user.franchise_id,
            "resource_id": resource_id,
        }
        if changes:
            entry["changes"] = changes
        _emit(entry)
