"""
Audit Service
Records admin writes in admin_audit_log

Author: TM3
Date: 2026-03-06
"""
import logging
from dataclasses import dataclass
from typing import Optional

from toolsy.repositories.admin_repository import AdminRepository

logger = logging.getLogger(__name__)


@dataclass
class AuditContext:
    """Who performed an admin action, and from where"""
    user_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def record_admin_action(
    context: Optional[AuditContext],
    action: str,
    table_name: str,
    record_id: Optional[str] = None,
    new_values: Optional[dict] = None,
    old_values: Optional[dict] = None
) -> None:
    """
    Write one audit entry

    The admin action has already been committed when this runs, so a failing
    audit write is logged and does not undo or fail the action.
    """
    context = context or AuditContext()
    try:
        AdminRepository().log_action(
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_values=old_values,
            new_values=new_values,
            user_id=context.user_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )
    except Exception as e:
        logger.error(f"Failed to write audit entry {action} on {table_name}/{record_id}: {e}")
