"""
Marketplace Service configuration
"""

from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# marketplace_service/ directory
SERVICE_DIR = Path(__file__).parent.parent.parent
ENV_FILE = SERVICE_DIR / ".env"


class MarketplaceSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Marketplace Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./marketplace.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    AUTH_COOKIE_NAME: str = "access_token"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: List[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    CORS_HEADERS: List[str] = ["*"]

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    REDIS_URL: str = "redis://localhost:6379/1"
    RATE_LIMIT_REQUESTS: int = 1000
    RATE_LIMIT_WINDOW: int = 3600
    RATE_LIMIT_AUTH_REQUESTS: int = 20
    RATE_LIMIT_ORDER_REQUESTS: int = 60
    RATE_LIMIT_INQUIRY_REQUESTS: int = 30

    # Uploads and images
    UPLOADS_DIR: str = str(SERVICE_DIR / "uploads")
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
    ]
    IMAGE_MAX_WIDTH: int = 1920
    IMAGE_MAX_HEIGHT: int = 1920
    IMAGE_QUALITY: int = 85
    RESPONSIVE_WIDTHS: List[int] = [300, 600, 1200]
    WATERMARK_ENABLED: bool = True
    WATERMARK_TEXT: str = "Marketplace"
    WATERMARK_OPACITY: float = 0.12
    STATIC_CACHE_MAX_AGE: int = 3600

    # Marketplace business rules
    COMMISSION_RATE: float = 0.20
    FREE_SHIPPING_THRESHOLD: float = 10000
    MAX_ORDER_ITEMS: int = 50
    MAX_ITEM_QUANTITY: int = 99

    # Site / SEO
    SITE_NAME: str = "Marketplace"
    FRONTEND_URL: str = "http://localhost:3000"

    # Email (SendGrid)
    SENDGRID_API_KEY: Optional[str] = None
    FROM_EMAIL: str = "no-reply@marketplace.local"
    FROM_NAME: str = "Marketplace"
    ADMIN_NOTIFICATION_EMAIL: Optional[str] = None

    @field_validator("COMMISSION_RATE")
    @classmethod
    def validate_commission_rate(cls, value: float) -> float:
        if not 0 <= value <= 1:
            raise ValueError("COMMISSION_RATE must be between 0 and 1")
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


# Create a singleton instance
_settings_instance = None


def get_settings() -> MarketplaceSettings:
    """Get settings singleton instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = MarketplaceSettings()
    return _settings_instance
