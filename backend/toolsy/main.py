"""
Toolsy Store - Backend API
Storefront, subscription portal and admin dashboard for Toolsy Store
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toolsy.api import (
    admin, cart, checkout, currencies, finance, maintenance, portal, products, refunds, seo, testimonials,
)
from toolsy.core.config import settings
from toolsy.core.database import get_db_connection_with_retry
from toolsy.core.rate_limit import RateLimitMiddleware

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    debug=settings.API_DEBUG
)

app.add_middleware(RateLimitMiddleware)

# Added last so it wraps the rate limiter and 429s still carry CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Include API routers
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(testimonials.router, prefix="/api/v1/testimonials", tags=["Testimonials"])
app.include_router(cart.router, prefix="/api/v1/cart", tags=["Cart"])
app.include_router(checkout.router, prefix="/api/v1/checkout", tags=["Checkout"])
app.include_router(portal.router, prefix="/api/v1/portal", tags=["Subscription Portal"])
app.include_router(refunds.router, prefix="/api/v1/refund-requests", tags=["Refund Requests"])
app.include_router(currencies.router, prefix="/api/v1/currencies", tags=["Currencies"])
app.include_router(seo.router, prefix="/api/v1/seo", tags=["SEO"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])
app.include_router(finance.router, prefix="/api/v1/admin/finance", tags=["Finance"])
app.include_router(maintenance.router, prefix="/api/v1/maintenance", tags=["Maintenance"])
app.include_router(seo.sitemap_router)


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "Toolsy Store API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Fast check: a single attempt
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()

        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check database error: {e}")
        db_status = "disconnected"
        db_error = str(e)

    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "toolsy-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
        },
        "total_latency_ms": total_latency_ms
    }


@app.get("/api/v1/status")
async def api_status():
    """Which optional integrations are configured"""
    return {
        "supabase": {
            "connected": bool(settings.SUPABASE_URL),
            "status": "configured" if settings.SUPABASE_URL else "not_configured"
        },
        "notifications": {
            "discord": bool(settings.DISCORD_WEBHOOK_URL),
            "slack": bool(settings.SLACK_WEBHOOK_URL),
            "whatsapp": bool(settings.WHATSAPP_ACCESS_TOKEN and settings.WHATSAPP_PHONE_NUMBER_ID),
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("toolsy.main:app", host=settings.API_HOST, port=settings.API_PORT)
