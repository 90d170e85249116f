"""
AI Providers Package
Letter Translator - upstream model access

Usage:
    from ai_providers import GeminiLetterProvider, LetterRequest, LetterImage

    provider = GeminiLetterProvider.from_settings(get_settings())
    result = await provider.generate(
        LetterRequest(images=[LetterImage(data=png_bytes, mime_type="image/png")])
    )
    print(result.translation)
"""

from .base import (
    BaseLetterProvider,
    AIConfig,
    LetterImage,
    LetterRequest,
    TranslationResult,
)

from .gemini_provider import GeminiLetterProvider, parse_letter_payload

__all__ = [
    # Base classes
    "BaseLetterProvider",
    "AIConfig",
    "LetterImage",
    "LetterRequest",
    "TranslationResult",

    # Providers
    "GeminiLetterProvider",
    "parse_letter_payload",
]

__version__ = "1.0.0"
