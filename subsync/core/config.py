import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.stripe_secret_key = self._get("STRIPE_SECRET_KEY")
        self.stripe_public_key = os.getenv("STRIPE_PUBLIC_KEY", "")
        self.stripe_webhook_secret = os.getenv("STRIPE_WEBHOOK_SECRET") or None
        self.stripe_default_plan = os.getenv("STRIPE_DEFAULT_PLAN", "basic")
        self.stripe_timeout_seconds = self._get_int("STRIPE_TIMEOUT_SECONDS", default=30)
        self.stripe_max_network_retries = self._get_int("STRIPE_MAX_NETWORK_RETRIES", default=2)
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/subsync.db")).resolve()
        self.auth_token_secret = self._get("AUTH_TOKEN_SECRET")
        self.auth_token_algorithm = os.getenv("AUTH_TOKEN_ALGORITHM", "HS256")
        self.analytics_token = os.getenv("ANALYTICS_TOKEN", "")
        self.subscription_exempt_emails = self._get_list("SUBSCRIPTION_EXEMPT_EMAILS")
        self.subscription_exempt_domains = self._get_list("SUBSCRIPTION_EXEMPT_DOMAINS")
        self.dashboard_path = os.getenv("DASHBOARD_PATH", "/dashboard/")
        origins = self._get_list("CORS_ALLOW_ORIGINS")
        self.cors_allow_origins = origins or ["*"]
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.stripe_log_level = os.getenv("STRIPE_LOG_LEVEL", "WARNING").upper()

    @staticmethod
    def _get(key: str) -> str:
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"Missing required environment variable: {key}")
        return value

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_list(key: str) -> List[str]:
        value = os.getenv(key)
        if not value:
            return []
        return [item.strip().lower() for item in value.split(",") if item.strip()]
