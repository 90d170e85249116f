#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings

from .constants import (
    QUEUE_CONCURRENCY_LIMIT,
    QUEUE_RATE_LIMIT,
    QUEUE_WINDOW_MS,
    QUEUE_SECONDS_PER_POSITION,
    RETRY_MAX_ATTEMPTS,
    RETRY_BASE_DELAY_MS,
    RETRY_JITTER_MS,
    GEMINI_DEFAULT_MODEL,
    REQUEST_TIMEOUT_SECONDS,
    LOG_LEVEL,
    LOG_FILE,
)


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings"""

    # ========== API Keys ==========
    gemini_api_key: Optional[str] = None

    # ========== Model ==========
    gemini_model: str = GEMINI_DEFAULT_MODEL

    # ========== Admission Queue ==========
    queue_concurrency_limit: int = QUEUE_CONCURRENCY_LIMIT
    queue_rate_limit: int = QUEUE_RATE_LIMIT
    queue_window_ms: int = QUEUE_WINDOW_MS
    queue_seconds_per_position: int = QUEUE_SECONDS_PER_POSITION

    # ========== Retry / Backoff ==========
    retry_max_attempts: int = RETRY_MAX_ATTEMPTS
    retry_base_delay_ms: int = RETRY_BASE_DELAY_MS
    retry_jitter_ms: int = RETRY_JITTER_MS

    # ========== API ==========
    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS

    # ========== Logging ==========
    log_level: str = LOG_LEVEL
    log_file: str = LOG_FILE  # empty disables the file handler

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env that aren't defined in model


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance (one per process)."""
    return Settings()
