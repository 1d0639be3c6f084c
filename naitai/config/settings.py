import logging
import sys
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # service role, used to verify bearer tokens
    supabase_anon_key: str = ""  # combined with the caller's token so RLS applies

    # Optional local pre-check of bearer tokens before asking Supabase
    jwt_secret: Optional[str] = None

    # App
    app_name: str = "naitai-backend"
    port: int = 3002
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def missing_supabase_settings(self) -> List[str]:
        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_KEY": self.supabase_key,
            "SUPABASE_ANON_KEY": self.supabase_anon_key,
        }
        return [name for name, value in required.items() if not value]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


class ClientSettings(BaseSettings):
    """Settings for the client half, read from the same VITE_* variables the web build used."""

    supabase_url: str = ""
    supabase_anon_key: str = ""
    api_url: str = "http://localhost:3001"
    site_url: str = "http://localhost:5173"  # origin OAuth and password-reset links return to

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="VITE_",
        extra="ignore"
    )


def check_required_settings(current: Optional[Settings] = None) -> bool:
    """Exit in production when Supabase is not configured; warn and continue elsewhere."""
    current = current or settings
    missing = current.missing_supabase_settings()
    if not missing:
        return True
    if current.is_production:
        logger.error(f"{', '.join(missing)} must be set in environment variables")
        sys.exit(1)
    logger.warning(
        f"{', '.join(missing)} not set; configure Supabase in your .env file to enable full functionality"
    )
    return False


settings = Settings()
