"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import logging

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class EmailConfig(BaseSettings):
    """Environment fallback for outbound mail (persisted settings win)."""

    resend_api_key: str = ""
    smtp_host: str = ""
    smtp_port: int = 0
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_from_name: str = "E-Repair Shop"
    smtp_from_email: str = ""


class BillingConfig(BaseSettings):
    invoice_due_days: int = 30
    quote_valid_days: int = 30
    quote_max_reminders: int = 3
    payment_terms: str = "Net 30"
    number_padding: int = 5


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/repairshop.db"
    app_url: str = "http://localhost:8000"
    log_level: str = "INFO"
    session_max_age_days: int = 7
    email: EmailConfig = Field(default_factory=EmailConfig)
    billing: BillingConfig = Field(default_factory=BillingConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    email = EmailConfig(**y.get("email", {}))
    billing = BillingConfig(**y.get("billing", {}))
    overrides = {}
    db_url = y.get("database", {}).get("url")
    if db_url:
        overrides["database_url"] = db_url
    if y.get("app_url"):
        overrides["app_url"] = y["app_url"]
    return Settings(email=email, billing=billing, **overrides)


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
