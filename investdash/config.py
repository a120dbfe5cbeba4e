"""Configuration management for the investment dashboard API."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Investment data service
    data_service_url: str
    data_service_token: Optional[str] = None

    # Network settings
    http_timeout: int = 30
    max_concurrent_requests: int = 10
    max_retries: int = 3

    # Web API
    web_host: str = "0.0.0.0"
    web_port: int = 8001

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        data_service_url = os.getenv("DATA_SERVICE_URL", "").strip()
        if not data_service_url:
            raise ValueError("DATA_SERVICE_URL environment variable is required")

        return cls(
            data_service_url=data_service_url.rstrip("/"),
            data_service_token=os.getenv("DATA_SERVICE_TOKEN", "").strip() or None,
            http_timeout=int(os.getenv("HTTP_TIMEOUT", "30")),
            max_concurrent_requests=int(os.getenv("MAX_CONCURRENT_REQUESTS", "10")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            web_host=os.getenv("WEB_HOST", "0.0.0.0").strip() or "0.0.0.0",
            web_port=int(os.getenv("WEB_PORT", "8001")),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
