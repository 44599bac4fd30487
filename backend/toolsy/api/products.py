"""
Products API Endpoints
Storefront catalog (public) and product administration (admin)

Author: TM3
Date: 2026-03-08
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from toolsy.api.dependencies import admin_context
from toolsy.core.rate_limit import get_client_ip
from toolsy.domain.product import PricingPlan, ProductCreate, ProductImage, ProductUpdate
from toolsy.services.audit_service import AuditContext
from toolsy.services.catalog_service import CatalogService, get_catalog_service
from toolsy.services.seo_service import product_meta_tags

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models
class ShareRequest(BaseModel):
    platform: str


class PricingPlansUpdate(BaseModel):
    plans: List[PricingPlan]


class ImagesUpdate(BaseModel):
    images: List[ProductImage]


def _get_or_404(service: CatalogService, product_id: str):
    product = service.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


@router.get("/")
async def get_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Search by name or description"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Get products, newest first

    The unfiltered list is served from the catalog cache.
    """
    try:
        products, total = service.list_products(
            category=category, search=search, limit=limit, offset=offset
        )

        return {
            "status": "success",
            "total": total,
            "limit": limit,
            "offset": offset,
            "count": len(products),
            "data": [product.to_dict() for product in products]
        }

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching products: {str(e)}")


@router.get("/categories")
async def get_categories(service: CatalogService = Depends(get_catalog_service)):
    try:
        return {"status": "success", "data": service.get_categories()}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching categories: {str(e)}")


@router.get("/slug/{slug}")
async def get_product_by_slug(slug: str, service: CatalogService = Depends(get_catalog_service)):
    try:
        product = service.get_product_by_slug(slug)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product '{slug}' not found")

        return {"status": "success", "data": product.to_dict()}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")


@router.get("/{product_id}")
async def get_product(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    try:
        product = _get_or_404(service, product_id)
        data = product.to_dict()
        data['images'] = [image.model_dump() for image in service.get_images(product_id)]
        return {"status": "success", "data": data}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching product: {str(e)}")


@router.get("/{product_id}/pricing")
async def get_product_pricing(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Every available subscription type and period with its resolved price"""
    try:
        product = _get_or_404(service, product_id)
        return {
            "status": "success",
            "data": {
                "plans": [plan.model_dump() for plan in product.pricing_plans],
                "prices": service.get_pricing_table(product),
            }
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching pricing: {str(e)}")


@router.get("/{product_id}/images")
async def get_product_images(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    try:
        images = service.get_images(product_id)
        return {"status": "success", "count": len(images), "data": [image.model_dump() for image in images]}

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching images: {str(e)}")


@router.get("/{product_id}/meta")
async def get_product_meta(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Meta tags for the product page"""
    try:
        product = _get_or_404(service, product_id)
        return {"status": "success", "data": product_meta_tags(product)}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building meta tags: {str(e)}")


@router.post("/{product_id}/share")
async def record_share(
    product_id: str,
    body: ShareRequest,
    request: Request,
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        service.record_share(product_id, body.platform, get_client_ip(request))
        return {"status": "success"}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error recording share: {str(e)}")


# ============================================================================
# Admin
# ============================================================================

@router.post("/", status_code=201)
async def create_product(
    body: ProductCreate,
    context: AuditContext = Depends(admin_context),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        product = service.create_product(body.model_dump(), context=context)
        return {"status": "success", "data": product.to_dict()}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating product: {str(e)}")


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    body: ProductUpdate,
    context: AuditContext = Depends(admin_context),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        product = service.update_product(product_id, body.model_dump(exclude_unset=True), context=context)
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        return {"status": "success", "data": product.to_dict()}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating product: {str(e)}")


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    context: AuditContext = Depends(admin_context),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        if not service.delete_product(product_id, context=context):
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

        return {"status": "success", "message": f"Product {product_id} deleted"}

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting product: {str(e)}")


@router.put("/{product_id}/pricing-plans")
async def replace_pricing_plans(
    product_id: str,
    body: PricingPlansUpdate,
    context: AuditContext = Depends(admin_context),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        _get_or_404(service, product_id)
        plans = service.replace_pricing_plans(product_id, body.plans, context=context)
        return {"status": "success", "count": len(plans), "data": [plan.model_dump() for plan in plans]}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error saving pricing plans: {str(e)}")


@router.put("/{product_id}/images")
async def replace_images(
    product_id: str,
    body: ImagesUpdate,
    context: AuditContext = Depends(admin_context),
    service: CatalogService = Depends(get_catalog_service)
):
    try:
        _get_or_404(service, product_id)
        images = service.replace_images(product_id, body.images, context=context)
        return {"status": "success", "count": len(images), "data": [image.model_dump() for image in images]}

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error saving images: {str(e)}")
