"""
Shared FastAPI dependencies for the routers

Author: TM3
Date: 2026-03-08
"""
import logging

from fastapi import Depends, Header, HTTPException, Request

from toolsy.core.auth import TokenUser, require_admin
from toolsy.core.config import settings
from toolsy.core.rate_limit import get_client_ip
from toolsy.services.audit_service import AuditContext

logger = logging.getLogger(__name__)


async def admin_context(
    request: Request,
    user: TokenUser = Depends(require_admin)
) -> AuditContext:
    """Admin user plus client details, for the audit log"""
    return AuditContext(
        user_id=user.id,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )


async def verify_maintenance_key(x_maintenance_key: str = Header(None, alias="X-Maintenance-Key")):
    """
    Verify the X-Maintenance-Key header used by cron jobs

    If MAINTENANCE_API_KEY is not configured, requests are allowed with a warning.
    """
    if not settings.MAINTENANCE_API_KEY:
        logger.warning("MAINTENANCE_API_KEY not configured - maintenance endpoints are unprotected!")
        return

    if not x_maintenance_key:
        logger.warning("Maintenance request without X-Maintenance-Key header")
        raise HTTPException(
            status_code=401,
            detail="Missing X-Maintenance-Key header. Authentication required."
        )

    if x_maintenance_key != settings.MAINTENANCE_API_KEY:
        logger.warning("Invalid maintenance key attempt")
        raise HTTPException(status_code=401, detail="Invalid API key")
