"""
Pytest configuration and shared fixtures for Letter Translator tests.
"""
import asyncio
import sys
from pathlib import Path
from typing import List

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ai_providers.base import BaseLetterProvider, AIConfig, LetterImage, LetterRequest, TranslationResult
from core.backoff import BackoffExecutor, RetryPolicy


# ============================================================================
# Helpers
# ============================================================================

class RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays"""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)
        await asyncio.sleep(0)


class FakeClock:
    """Manually advanced monotonic clock (seconds)"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FixedRandom:
    """random.Random stand-in with a constant random()"""

    def __init__(self, value: float = 0.5):
        self.value = value

    def random(self) -> float:
        return self.value


class ScriptedProvider(BaseLetterProvider):
    """Provider that replays a list of outcomes (exceptions are raised)"""

    def __init__(self, outcomes=None):
        super().__init__(AIConfig(api_key="test", model="fake-model"))
        self.outcomes = list(outcomes or [])
        self.calls = 0

    async def generate(self, request: LetterRequest) -> TranslationResult:
        self.calls += 1
        outcome = self.outcomes.pop(0) if self.outcomes else sample_result()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def sample_result() -> TranslationResult:
    return TranslationResult(
        transcription="ప్రియమైన స్పాన్సర్",
        translation="Dear Sponsor, I am doing well.",
        detected_language="Telugu",
        confidence_score=0.92,
        header_info={"childId": "01157711", "childName": "Srivalli"},
    )


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_executor(recording_sleep) -> BackoffExecutor:
    """Executor with default policy that never actually waits."""
    return BackoffExecutor(RetryPolicy(), sleep=recording_sleep, rng=FixedRandom(0.5))


@pytest.fixture
def letter_request() -> LetterRequest:
    return LetterRequest(
        images=[LetterImage(data=b"\x89PNG fake page", mime_type="image/png")],
        source_language="Telugu",
        target_language="English",
    )
