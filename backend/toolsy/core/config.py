"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "Toolsy Store API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Storefront API for Toolsy Store subscriptions"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database / Supabase
    # Empty defaults keep the package importable; connecting without them fails loudly.
    DATABASE_URL: str = ""
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    SUPABASE_JWT_SECRET: str = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:5173,https://toolsy.store" or '["http://localhost:5173"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,https://toolsy.store"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Storefront
    SITE_URL: str = "https://toolsy.store"
    DEFAULT_CURRENCY: str = "NGN"
    WHATSAPP_ORDER_NUMBER: str = "2348141988239"
    CATALOG_CACHE_TTL: int = 300
    EXPIRING_SOON_DAYS: int = 7
    SUPPORT_EMAIL: str = "support@toolsy.store"

    # Notification webhooks (each channel is optional)
    DISCORD_WEBHOOK_URL: str = ""
    SLACK_WEBHOOK_URL: str = ""
    WHATSAPP_ACCESS_TOKEN: str = ""
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    SUPPORT_WHATSAPP_NUMBER: str = ""
    ADMIN_DASHBOARD_URL: str = "https://toolsy.store/admin"

    # Cron / maintenance endpoints
    MAINTENANCE_API_KEY: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
