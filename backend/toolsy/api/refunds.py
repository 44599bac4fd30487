"""
Refund Request API
Public refund form (multipart, proof files attached)

Author: TM3
Date: 2026-03-08
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from toolsy.core.rate_limit import rate_limit, REFUND_FORM_RATE_LIMIT
from toolsy.services.refund_service import RefundService, get_refund_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", dependencies=[Depends(rate_limit(*REFUND_FORM_RATE_LIMIT))])
async def submit_refund_request(
    name: str = Form(""),
    email: str = Form(""),
    order_id: str = Form("", alias="orderId"),
    reason: str = Form(""),
    description: str = Form(""),
    proof: List[UploadFile] = File(default=[]),
    service: RefundService = Depends(get_refund_service)
):
    """
    Open a refund ticket

    Proof files (image/* or video/*, 10MB each) go to the refund-proofs bucket;
    support is notified on the configured chat channels.
    """
    try:
        files = [(upload.filename, await upload.read(), upload.content_type) for upload in proof]

        result = await service.submit(
            name=name,
            email=email,
            order_id=order_id,
            reason=reason,
            description=description,
            files=files,
        )

        return {
            "success": True,
            "ticketId": result["ticket"].ticket_id,
            "message": "Refund request submitted successfully",
            "uploaded_files": result["uploaded_files"],
            "notifications": result["notifications"],
        }

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Refund request error: {e}")
        raise HTTPException(status_code=500, detail=f"Error processing refund request: {str(e)}")
