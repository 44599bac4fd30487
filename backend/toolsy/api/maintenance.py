"""
Maintenance API - scheduled jobs
Designed to be called by cron-job.org or similar services

Endpoints:
- POST /api/v1/maintenance/subscriptions/refresh-statuses  - Reclassify subscription statuses
- GET  /api/v1/maintenance/subscriptions/expiry-stats      - Counts per status

Security:
- Endpoints require X-Maintenance-Key header with valid MAINTENANCE_API_KEY

Author: TM3
Date: 2026-03-09
"""
import logging
import time
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from toolsy.api.dependencies import verify_maintenance_key
from toolsy.services.subscription_service import SubscriptionService, get_subscription_service

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_maintenance_key)])


class StatusRefreshResponse(BaseModel):
    success: bool
    message: str
    counts: Dict[str, int]
    duration_seconds: float
    timestamp: datetime


@router.post("/subscriptions/refresh-statuses", response_model=StatusRefreshResponse)
async def refresh_subscription_statuses(service: SubscriptionService = Depends(get_subscription_service)):
    """
    Reclassify every non-cancelled subscription by its expiry date

    Cancelled subscriptions are never touched.
    """
    start_time = time.time()
    try:
        logger.info("Starting subscription status refresh")
        counts = service.refresh_statuses()
        return StatusRefreshResponse(
            success=True,
            message=f"{counts['updated']} subscriptions updated",
            counts=counts,
            duration_seconds=round(time.time() - start_time, 2),
            timestamp=datetime.now(timezone.utc),
        )

    except Exception as e:
        logger.error(f"Subscription status refresh failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error refreshing statuses: {str(e)}")


@router.get("/subscriptions/expiry-stats")
async def get_expiry_stats(service: SubscriptionService = Depends(get_subscription_service)):
    try:
        return {"status": "success", "data": service.expiry_stats()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching expiry stats: {str(e)}")
