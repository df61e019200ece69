"""
Centralized configuration for the register and the proxy service.

Application modules receive a Settings instance instead of calling
os.getenv() themselves. The logger reads DEBUG and POS_LOG_FILE directly
since it is set up at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_SCAN_FORMATS = ("EAN13", "EAN8", "UPCA", "UPCE", "CODE128", "CODE39")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_formats(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    formats = tuple(f.strip().upper() for f in raw.split(",") if f.strip())
    return formats or DEFAULT_SCAN_FORMATS


@dataclass(frozen=True)
class Settings:
    # proxy side
    backend_url: str = "http://localhost:8000"

    # register side
    proxy_url: str = "http://localhost:3000"
    store_code: str = "30"
    pos_number: str = "90"
    employee_code: str = "9999999999"
    tax_code: str = "10"
    camera_index: int = 0
    scan_formats: Tuple[str, ...] = field(default=DEFAULT_SCAN_FORMATS)
    db_path: str = "data/journal.sqlite"

    # shared
    http_timeout: float = 10.0
    log_file: Optional[str] = None
    debug: bool = False


def load_settings() -> Settings:
    """Build Settings from the environment, reading a .env file first if present."""
    load_dotenv()
    return Settings(
        backend_url=(
            os.getenv("BACKEND_URL") or os.getenv("API_URL") or Settings.backend_url
        ).rstrip("/"),
        proxy_url=os.getenv("POS_PROXY_URL", Settings.proxy_url).rstrip("/"),
        store_code=os.getenv("POS_STORE_CODE", Settings.store_code),
        pos_number=os.getenv("POS_NUMBER", Settings.pos_number),
        employee_code=os.getenv("POS_EMPLOYEE_CODE", Settings.employee_code),
        tax_code=os.getenv("POS_TAX_CODE", Settings.tax_code),
        camera_index=_env_int("POS_CAMERA_INDEX", Settings.camera_index),
        scan_formats=_env_formats("POS_SCAN_FORMATS"),
        db_path=os.getenv("POS_DB_PATH", Settings.db_path),
        http_timeout=_env_float("POS_HTTP_TIMEOUT", Settings.http_timeout),
        log_file=os.getenv("POS_LOG_FILE") or None,
        debug=bool(os.getenv("DEBUG")),
    )
