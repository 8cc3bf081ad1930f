from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: komsai/core/config.py -> komsai/core -> komsai -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    secret_key: str = "change-me-in-production"
    database_url: str = "sqlite:///./komsai.db"
    # CORS: comma separated origins; in production the public site, e.g. https://komsaicup.com
    cors_origins: str = "*"
    environment: str = "development"
    # Requests per minute per IP
    rate_limit_per_minute: int = 60
    # Separate limit for operator sign-up (kept high in tests)
    rate_limit_register_per_minute: int = 3
    # Only these emails may create an operator account (comma separated)
    operator_emails: str = ""
    # Web Push (VAPID). Public key is URL-safe base64; empty means push is disabled.
    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_subject: str = "mailto:admin@komsaicup.com"
    push_batch_size: int = 50
    push_request_timeout: int = 10  # seconds, per delivery
    push_icon: str = "/assets/starwhite.png"
    push_badge: str = "/assets/starwhite.png"
    # Competition days run 1..max_day
    max_day: int = 5

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("vapid_public_key", "vapid_private_key", mode="before")
    @classmethod
    def strip_vapid_key(cls, v: str | None) -> str:
        """Pasted keys often carry stray whitespace or newlines."""
        return (v or "").strip()


settings = Settings()


def get_operator_emails() -> set[str]:
    raw = (settings.operator_emails or "").strip()
    return {e.strip().lower() for e in raw.split(",") if e.strip()}


def is_push_configured() -> bool:
    """Both halves of the VAPID pair are required to sign pushes."""
    return bool(settings.vapid_public_key and settings.vapid_private_key)
