"""
SEO API
Sitemap and page meta tags for the storefront

Author: TM3
Date: 2026-03-09
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from toolsy.services.catalog_service import CatalogService, get_catalog_service
from toolsy.services.seo_service import build_meta_tags, generate_sitemap

router = APIRouter()

# Mounted at the site root, outside /api/v1
sitemap_router = APIRouter()


@sitemap_router.get("/sitemap.xml", include_in_schema=False)
async def get_sitemap(service: CatalogService = Depends(get_catalog_service)):
    try:
        products, _ = service.list_products(limit=10000)
        return Response(content=generate_sitemap(products), media_type="application/xml")

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error generating sitemap: {str(e)}")


@router.get("/meta")
async def get_meta_tags(
    title: str = Query(..., min_length=1),
    description: str = Query(..., min_length=1),
    path: str = Query("/", description="Canonical path, e.g. /about"),
    image: Optional[str] = Query(None, description="Absolute URL or site-relative path"),
    page_type: str = Query("website"),
    keywords: Optional[str] = Query(None),
    noindex: bool = Query(False)
):
    """Head tags for a storefront page (title, canonical, Open Graph, Twitter)"""
    if not path.startswith('/'):
        path = f"/{path}"
    return {
        "status": "success",
        "data": build_meta_tags(
            title=title,
            description=description,
            canonical_path=path,
            image=image,
            page_type=page_type,
            keywords=keywords,
            noindex=noindex,
        )
    }
