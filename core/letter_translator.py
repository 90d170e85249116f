#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LetterTranslator - queued, retried AI transcription of scanned letters
"""

import asyncio
import time
from typing import Optional

from ai_providers.base import BaseLetterProvider, LetterRequest, TranslationResult
from config.logging_config import get_logger
from core.admission_queue import AdmissionQueue, PositionCallback, SubmitResult
from core.backoff import BackoffExecutor
from core.errors import is_busy_error

logger = get_logger(__name__)


class LetterTranslator:
    """
    Every provider call goes through the shared AdmissionQueue; inside the
    queue slot the call is retried by the BackoffExecutor.

    Usage:
        translator = LetterTranslator(provider, queue, BackoffExecutor())
        result = await translator.translate(request, on_position=show_position)
    """

    def __init__(
        self,
        provider: BaseLetterProvider,
        queue: AdmissionQueue,
        executor: Optional[BackoffExecutor] = None,
    ):
        self.provider = provider
        self.queue = queue
        self.executor = executor or BackoffExecutor()

    def submit(
        self,
        request: LetterRequest,
        on_position: Optional[PositionCallback] = None,
    ) -> SubmitResult:
        """Queue a letter; returns the pending result and queue position."""
        label = f"letter[{len(request.images)} page(s), {request.source_language}]"

        async def task() -> TranslationResult:
            return await self.executor.execute(lambda: self.provider.generate(request), label=label)

        return self.queue.submit(task, on_position=on_position)

    async def translate(
        self,
        request: LetterRequest,
        on_position: Optional[PositionCallback] = None,
        timeout: Optional[float] = None,
    ) -> TranslationResult:
        """
        Submit and wait for the result.

        Args:
            request: Letter pages and language hints
            on_position: Called synchronously with the queue position
            timeout: Give up after this many seconds (withdraws the entry)

        Raises:
            asyncio.TimeoutError: if ``timeout`` elapsed first
            UpstreamError: terminal failure or RetriesExhaustedError
        """
        start = time.time()
        submitted = self.submit(request, on_position=on_position)
        logger.info(
            f"Letter queued at position {submitted.position} "
            f"(~{self.queue.estimate_wait_seconds(submitted.position):.0f}s)"
        )

        try:
            if timeout is not None:
                result = await asyncio.wait_for(submitted.result, timeout=timeout)
            else:
                result = await submitted.result
        except asyncio.TimeoutError:
            logger.warning(f"Letter abandoned after {timeout}s in queue/processing")
            raise
        except Exception as e:
            kind = "busy" if is_busy_error(e) else "failed"
            logger.error(f"Letter translation {kind} after {time.time() - start:.1f}s: {e}")
            raise

        logger.info(
            f"Letter translated in {time.time() - start:.1f}s "
            f"(language={result.detected_language}, confidence={result.confidence_score})"
        )
        return result
