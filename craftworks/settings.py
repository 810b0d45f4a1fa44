# craftworks/settings.py
"""
Application settings.
"""

import os
from dataclasses import dataclass
from typing import Optional

# Load .env file
from dotenv import load_dotenv
load_dotenv()


@dataclass
class Settings:
    """Application configuration."""

    # Storage
    storage_backend: str = os.getenv("STORAGE_BACKEND", "memory")  # memory | sql
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./var/craftworks.db")

    # GitHub webhook ingress
    webhook_secret: Optional[str] = os.getenv("GH_WEBHOOK_SECRET")

    # Handoff retention
    handoff_retention_hours: int = int(os.getenv("HANDOFF_RETENTION_HOURS", "168"))
    cleanup_on_startup: bool = os.getenv("CLEANUP_ON_STARTUP", "true").lower() == "true"

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "true").lower() == "true"
    log_file: Optional[str] = os.getenv("LOG_FILE")

    # API settings
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "3000"))
    allowed_origins: str = os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://localhost:8000",
    )


# Global settings instance
settings = Settings()
