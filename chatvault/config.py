"""
Configuration management for ChatVault API
Uses pydantic-settings for environment variable validation
"""

from pydantic_settings import BaseSettings
from pydantic import model_validator
from typing import Dict, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database (from environment - no credentials in defaults)
    DATABASE_URL: str = "postgresql://localhost:5432/chatvault"
    DEBUG: bool = False  # Echo SQL statements

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3001
    API_RELOAD: bool = True

    # Application
    APP_NAME: str = "ChatVault API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development or production

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:8080",
        "http://localhost:3000",
        "https://chatvault.vercel.app",
        "https://chatvault-frontend.vercel.app",
    ]
    FRONTEND_URL: str = "http://localhost:3000"

    # Identity provider (Clerk session tokens, RS256 signed)
    CLERK_JWT_KEY: str = ""  # PEM public key, required for authenticated routes
    CLERK_ISSUER: str = ""  # Optional: reject tokens from other issuers
    JWT_ALGORITHMS: List[str] = ["RS256"]
    JWT_LEEWAY_SECONDS: int = 5

    # Storage
    UPLOAD_DIR: str = "./uploads"
    TEMP_DIR: str = "./temp"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = [".md", ".txt", ".html"]

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_PLANS: Dict[str, str] = {
        "price_pro_basic": "pro",
        "price_pro_premium": "premium",
        "price_enterprise": "enterprise",
    }

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/15minutes"
    RATE_LIMIT_UPLOAD: str = "30/hour"
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # redis://... to share limits across workers

    # Retry Logic (external provider calls)
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_EXPONENTIAL_BASE: int = 2

    @model_validator(mode='after')
    def include_frontend_origin(self):
        """Allow the configured frontend to call the API"""
        if self.FRONTEND_URL and self.FRONTEND_URL not in self.CORS_ORIGINS:
            self.CORS_ORIGINS.append(self.FRONTEND_URL)
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
