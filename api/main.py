#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI Web Server - REST API for Letter Translator.

Usage:
    # Start server
    uvicorn api.main:app --host 0.0.0.0 --port 8000

    # Or run directly
    python -m api.main

Key Endpoints:
    POST /api/translate - Transcribe + translate a scanned letter
    GET /api/queue/status - Admission queue snapshot
    GET /health - Liveness probe

Configuration:
    Environment variables (or .env):
    - GEMINI_API_KEY: Google Gemini API key
    - QUEUE_RATE_LIMIT / QUEUE_WINDOW_MS: AI call rate limit
    - RETRY_MAX_ATTEMPTS / RETRY_BASE_DELAY_MS: backoff policy
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ai_providers.gemini_provider import GeminiLetterProvider
from api.translate_routes import router as translate_router
from config.logging_config import get_logger
from config.settings import get_settings
from core.admission_queue import AdmissionQueue, QueueConfig
from core.backoff import BackoffExecutor, RetryPolicy
from core.letter_translator import LetterTranslator

logger = get_logger(__name__)


def build_translator(settings) -> LetterTranslator:
    """Wire the single process-wide queue, retry policy and provider."""
    queue = AdmissionQueue(QueueConfig.from_settings(settings))
    executor = BackoffExecutor(RetryPolicy.from_settings(settings))
    provider = GeminiLetterProvider.from_settings(settings)
    return LetterTranslator(provider, queue, executor)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared translator once per process."""
    settings = get_settings()
    app.state.translator = build_translator(settings)
    app.state.request_timeout = settings.request_timeout_seconds
    logger.info(
        f"Startup: admission queue ready (concurrency={settings.queue_concurrency_limit}, "
        f"rate={settings.queue_rate_limit}/{settings.queue_window_ms}ms)"
    )
    if not settings.gemini_api_key:
        logger.warning("Startup: GEMINI_API_KEY is not set, translations will fail")
    yield


app = FastAPI(
    title="Letter Translator API",
    description="Queued transcription and translation of handwritten letters",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(translate_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


def main():
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
