"""Environment configuration (optionally loaded from .env) and log setup."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from loguru import logger

from pipeline.ingest_sheets import BUSINESS_CSV_URL, EMERGENCY_CSV_URL

DEFAULT_SUPPORT_PHONE = "068 898 6081"


@dataclass(frozen=True)
class Settings:
    town: str | None = None
    business_csv_url: str = BUSINESS_CSV_URL
    emergency_csv_url: str = EMERGENCY_CSV_URL
    http_timeout: float = 30.0
    payfast_passphrase: str = ""
    payment_log_url: str | None = None
    whatsapp_verify_token: str | None = None
    whatsapp_token: str | None = None
    whatsapp_phone_number_id: str | None = None
    support_phone: str = DEFAULT_SUPPORT_PHONE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        env = os.environ
        return cls(
            town=env.get("TOWN_NAME") or env.get("TOWN") or None,
            business_csv_url=env.get("BUSINESS_CSV_URL") or BUSINESS_CSV_URL,
            emergency_csv_url=env.get("EMERGENCY_CSV_URL") or EMERGENCY_CSV_URL,
            http_timeout=float(env.get("HTTP_TIMEOUT", "30")),
            payfast_passphrase=env.get("PAYFAST_PASSPHRASE", ""),
            payment_log_url=env.get("PAYMENT_LOG_URL") or None,
            whatsapp_verify_token=env.get("WHATSAPP_VERIFY_TOKEN") or None,
            whatsapp_token=env.get("WHATSAPP_TOKEN") or None,
            whatsapp_phone_number_id=env.get("WHATSAPP_PHONE_NUMBER_ID") or None,
            support_phone=env.get("SUPPORT_PHONE") or DEFAULT_SUPPORT_PHONE,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return settings


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )
