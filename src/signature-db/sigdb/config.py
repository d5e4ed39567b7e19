import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.openchain.xyz"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_DISPLAY_LIMIT = 50


@dataclass
class Config:
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 10
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    display_limit: int = DEFAULT_DISPLAY_LIMIT


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default).strip()
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw}'.") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got '{raw}'.")
    return value


def load_config(env_file: Optional[Path] = None) -> Config:
    """Load configuration from environment variables (and an optional .env file)."""
    if env_file is not None:
        if env_file.exists():
            load_dotenv(env_file)
    else:
        load_dotenv()

    base_url = os.getenv("OPENCHAIN_API_URL", DEFAULT_BASE_URL).strip().rstrip("/")
    if not base_url:
        base_url = DEFAULT_BASE_URL

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"LOG_LEVEL '{log_level}' is not a valid logging level.")

    return Config(
        base_url=base_url,
        request_timeout=_env_number("REQUEST_TIMEOUT", "10", float),
        host=os.getenv("HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
        port=_env_number("PORT", str(DEFAULT_PORT), int),
        log_level=log_level,
        display_limit=_env_number("RESULT_DISPLAY_LIMIT", str(DEFAULT_DISPLAY_LIMIT), int),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
