"""
Testimonials API Endpoints
Public testimonial lists and admin maintenance

Author: TM3
Date: 2026-03-08
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from toolsy.api.dependencies import admin_context
from toolsy.domain.testimonial import TestimonialCreate, TestimonialUpdate
from toolsy.services.audit_service import AuditContext
from toolsy.services.storage_service import StorageService, get_storage_service
from toolsy.services.testimonial_service import TestimonialService, get_testimonial_service

router = APIRouter()

MAX_PHOTO_SIZE = 5 * 1024 * 1024  # 5MB


@router.get("/")
async def get_testimonials(
    product_slug: Optional[str] = Query(None, description="Only testimonials for this product"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: TestimonialService = Depends(get_testimonial_service)
):
    try:
        testimonials, total = service.list_testimonials(product_slug=product_slug, limit=limit, offset=offset)

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(testimonials),
            "data": [t.to_dict() for t in testimonials]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching testimonials: {str(e)}")


@router.get("/{testimonial_id}")
async def get_testimonial(testimonial_id: str, service: TestimonialService = Depends(get_testimonial_service)):
    try:
        testimonial = service.get_testimonial(testimonial_id)
        if not testimonial:
            raise HTTPException(status_code=404, detail=f"Testimonial {testimonial_id} not found")
        return {"status": "success", "data": testimonial.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching testimonial: {str(e)}")


@router.post("/", status_code=201)
async def create_testimonial(
    body: TestimonialCreate,
    context: AuditContext = Depends(admin_context),
    service: TestimonialService = Depends(get_testimonial_service)
):
    try:
        testimonial = service.create_testimonial(body.model_dump(), context=context)
        return {"status": "success", "data": testimonial.to_dict()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating testimonial: {str(e)}")


@router.put("/{testimonial_id}")
async def update_testimonial(
    testimonial_id: str,
    body: TestimonialUpdate,
    context: AuditContext = Depends(admin_context),
    service: TestimonialService = Depends(get_testimonial_service)
):
    try:
        testimonial = service.update_testimonial(testimonial_id, body.model_dump(exclude_unset=True), context=context)
        if not testimonial:
            raise HTTPException(status_code=404, detail=f"Testimonial {testimonial_id} not found")
        return {"status": "success", "data": testimonial.to_dict()}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating testimonial: {str(e)}")


@router.delete("/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: str,
    context: AuditContext = Depends(admin_context),
    service: TestimonialService = Depends(get_testimonial_service)
):
    try:
        if not service.delete_testimonial(testimonial_id, context=context):
            raise HTTPException(status_code=404, detail=f"Testimonial {testimonial_id} not found")
        return {"status": "success", "message": f"Testimonial {testimonial_id} deleted"}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting testimonial: {str(e)}")


@router.post("/photos", status_code=201)
async def upload_testimonial_photo(
    file: UploadFile = File(...),
    folder: str = Form('customers'),
    context: AuditContext = Depends(admin_context),
    storage: StorageService = Depends(get_storage_service)
):
    """
    Upload a customer photo or review screenshot

    Returns the public URL and storage path to save on the testimonial.
    """
    if folder not in ('customers', 'content'):
        raise HTTPException(status_code=400, detail="folder must be 'customers' or 'content'")

    try:
        content = await file.read()
        if len(content) > MAX_PHOTO_SIZE:
            raise HTTPException(status_code=400, detail="Photo must be 5MB or smaller")

        uploaded = storage.upload_testimonial_photo(file.filename, content, file.content_type, folder=folder)
        return {"status": "success", "data": uploaded}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error uploading photo: {str(e)}")
