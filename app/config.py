"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class ImportSettings:
    """
    Runtime settings for component and field weld imports.
    """

    batch_size: int = 100
    max_rows: int = 10_000
    max_file_bytes: int = 5 * 1024 * 1024
    max_validation_errors: int = 10_000
    max_quantity: int = 10_000
    log_validation_errors: bool = True


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """
    Return cached import settings from environment variables.
    """

    return ImportSettings(
        batch_size=max(1, _get_int_env("IMPORT_BATCH_SIZE", 100)),
        max_rows=max(1, _get_int_env("IMPORT_MAX_ROWS", 10_000)),
        max_file_bytes=max(1, _get_int_env("IMPORT_MAX_FILE_BYTES", 5 * 1024 * 1024)),
        max_validation_errors=max(1, _get_int_env("IMPORT_MAX_VALIDATION_ERRORS", 10_000)),
        max_quantity=max(1, _get_int_env("IMPORT_MAX_QUANTITY", 10_000)),
        log_validation_errors=_get_bool_env("IMPORT_LOG_VALIDATION_ERRORS", True),
    )
