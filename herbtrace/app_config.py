# herbtrace/app_config.py

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from flask import current_app

HASH_MODES = ("content", "id")


@dataclass(frozen=True)
class Settings:
    """Values the services need, detached from Flask so they work in scripts too."""

    moisture_threshold_pct: float = 12.0
    record_hash_mode: str = "content"
    public_base_url: str = "http://localhost:5000"
    qr_service_url: str = "https://api.qrserver.com/v1/create-qr-code/"
    default_page_size: int = 50
    max_page_size: int = 200
    chain_page_size: int = 100
    chain_max_page_size: int = 500

    def __post_init__(self):
        if self.record_hash_mode not in HASH_MODES:
            raise ValueError(
                f"RECORD_HASH_MODE must be one of {', '.join(HASH_MODES)}, got {self.record_hash_mode!r}"
            )

    @classmethod
    def from_config(cls, config) -> "Settings":
        return cls(
            moisture_threshold_pct=float(config["MOISTURE_THRESHOLD_PCT"]),
            record_hash_mode=str(config["RECORD_HASH_MODE"]).strip().lower(),
            public_base_url=str(config["PUBLIC_BASE_URL"]).rstrip("/"),
            qr_service_url=str(config["QR_SERVICE_URL"]),
            default_page_size=int(config["DEFAULT_PAGE_SIZE"]),
            max_page_size=int(config["MAX_PAGE_SIZE"]),
            chain_page_size=int(config["CHAIN_PAGE_SIZE"]),
            chain_max_page_size=int(config["CHAIN_MAX_PAGE_SIZE"]),
        )


def load_config(app, overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Load all Flask configuration in a clean centralized way.
    Environment first, then `overrides` (used by tests and scripts).
    """
    # ------------------------------
    # Mongo
    # ------------------------------
    app.config["MONGO_URI"] = os.getenv("MONGO_URI", "mongodb://localhost:27017/herbtrace")
    app.config["DISABLE_MONGO"] = os.getenv("DISABLE_MONGO", "0") == "1"

    # ------------------------------
    # Quality gate & hashing
    # ------------------------------
    app.config["MOISTURE_THRESHOLD_PCT"] = os.getenv("MOISTURE_THRESHOLD_PCT", "12")
    app.config["RECORD_HASH_MODE"] = os.getenv("RECORD_HASH_MODE", "content")

    # ------------------------------
    # Links
    # ------------------------------
    app.config["PUBLIC_BASE_URL"] = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000")
    app.config["QR_SERVICE_URL"] = os.getenv(
        "QR_SERVICE_URL", "https://api.qrserver.com/v1/create-qr-code/"
    )

    # ------------------------------
    # Pagination
    # ------------------------------
    app.config["DEFAULT_PAGE_SIZE"] = os.getenv("DEFAULT_PAGE_SIZE", "50")
    app.config["MAX_PAGE_SIZE"] = os.getenv("MAX_PAGE_SIZE", "200")
    app.config["CHAIN_PAGE_SIZE"] = os.getenv("CHAIN_PAGE_SIZE", "100")
    app.config["CHAIN_MAX_PAGE_SIZE"] = os.getenv("CHAIN_MAX_PAGE_SIZE", "500")

    if overrides:
        app.config.update(overrides)

    settings = Settings.from_config(app.config)
    app.extensions["herbtrace_settings"] = settings

    app.logger.info(
        "Config loaded (hash mode=%s, moisture threshold=%s%%)",
        settings.record_hash_mode,
        settings.moisture_threshold_pct,
    )
    return settings


def current_settings() -> Settings:
    return current_app.extensions["herbtrace_settings"]
