"""
Pydantic Settings — centralized configuration loaded from environment variables.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

PACKAGE_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    STAGE: str = "local"
    LOG_LEVEL: str = "INFO"

    # ── MongoDB ───────────────────────────────
    MONGODB_URI: str = "mongodb://localhost:27017/foxden"
    MONGODB_DB: str = ""

    # ── Templates / assets ────────────────────
    TEMPLATES_DIR: str = str(PACKAGE_ROOT / "templates")
    ASSETS_DIR: str = str(PACKAGE_ROOT / "assets")

    # ── HTML → PDF (Browserless) ──────────────
    BROWSERLESS_URL: str = "https://chrome.browserless.io/pdf"
    BROWSERLESS_API_TOKEN: str = ""
    BROWSERLESS_TIMEOUT: int = 60

    # ── Email ─────────────────────────────────
    EMAIL_SENDER: str = "noreply@foxquilt.com"
    SUPPORT_EMAIL: str = "support@foxquilt.com"
    EMAIL_BCC3: str = ""
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 1025
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = False

    # ── Policy defaults ───────────────────────
    DEFAULT_TIME_ZONE: str = "America/Toronto"
    DEFAULT_CARRIER_PARTNER: str = "Foxquilt"

    # Overridden per carrier by the ACORD forms config at render time
    US_DEFAULT_INSURER_NAME: str = "State National Insurance Company"
    US_DEFAULT_DEDUCTIBLE: float = 0

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
