"""
Google Gemini Provider
Letter Translator - handwritten letter transcription + translation
"""

import json
import re
from typing import Optional, List, Dict, Any

import google.generativeai as genai

from config.constants import (
    GEMINI_DEFAULT_MODEL,
    GEMINI_TOP_P,
    GEMINI_TOP_K,
    GEMINI_STOP_SEQUENCE,
)
from config.logging_config import get_logger
from core.errors import TerminalUpstreamError, wrap_upstream_error

from .base import (
    BaseLetterProvider,
    AIConfig,
    LetterRequest,
    TranslationResult,
)

logger = get_logger(__name__)

_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')

LETTER_PROMPT = """You are an expert archivist of handwritten sponsorship letters.
{language_hint}
Read ALL images as ONE continuous letter.
1. Transcribe every handwritten detail exactly as written, in its original language.
2. Translate the full text into clear, modern {target_language}, in the first person of the writer.
3. Identify the original language.
Do not summarize, skip or repeat content. Append {stop} at the end of the translation.

Return JSON:
{{
  "headerInfo": {{"childId": "...", "childName": "...", "date": "..."}},
  "transcription": "...",
  "translation": "...",
  "detectedLanguage": "...",
  "confidenceScore": 0.9
}}"""


def build_prompt(request: LetterRequest) -> str:
    if request.source_language and request.source_language != "Auto-Detect":
        language_hint = f"The document is in {request.source_language}."
    else:
        language_hint = "Identify the original language."
    return LETTER_PROMPT.format(
        language_hint=language_hint,
        target_language=request.target_language,
        stop=GEMINI_STOP_SEQUENCE,
    )


def parse_letter_payload(text: str) -> TranslationResult:
    """
    Parse the model's JSON answer.

    Strips the termination token and force-closes output that was cut off
    mid-string or mid-object before parsing.

    Raises:
        TerminalUpstreamError: if the text is still not a JSON object, or
            confidenceScore / headerInfo have the wrong shape
    """
    text = (text or "").replace(GEMINI_STOP_SEQUENCE, "").strip()
    if text and not text.endswith("}"):
        # odd number of unescaped quotes: cut off inside a string
        if len(_UNESCAPED_QUOTE.findall(text)) % 2:
            text += '"}'
        else:
            text += "}"

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise TerminalUpstreamError(f"Could not parse model response: {e}") from e
    if not isinstance(payload, dict):
        raise TerminalUpstreamError("Model response is not a JSON object")

    confidence = payload.get("confidenceScore")
    try:
        confidence = float(confidence) if confidence is not None else None
    except (TypeError, ValueError) as e:
        raise TerminalUpstreamError(f"Invalid confidenceScore in model response: {confidence!r}") from e

    language = payload.get("detectedLanguage")
    header_info = payload.get("headerInfo") or {}
    if not isinstance(header_info, dict):
        raise TerminalUpstreamError("Model response headerInfo is not a JSON object")

    return TranslationResult(
        transcription=str(payload.get("transcription") or ""),
        translation=str(payload.get("translation") or "").strip(),
        detected_language=str(language) if language is not None else None,
        confidence_score=confidence,
        header_info=header_info,
    )


class GeminiLetterProvider(BaseLetterProvider):
    """
    Google Gemini vision provider

    Sends all page images in one request with a JSON response mime type.
    Client-library errors are re-raised as Transient/TerminalUpstreamError.
    """

    DEFAULT_MODEL = GEMINI_DEFAULT_MODEL

    @classmethod
    def from_settings(cls, settings) -> 'GeminiLetterProvider':
        return cls(AIConfig(api_key=settings.gemini_api_key, model=settings.gemini_model))

    def initialize(self) -> None:
        """Initialize Gemini client"""
        if not self.config.api_key:
            raise TerminalUpstreamError("Gemini API Key is missing on the server.")

        genai.configure(api_key=self.config.api_key)
        self._client = genai.GenerativeModel(
            model_name=self.config.model or self.DEFAULT_MODEL,
            generation_config={
                "response_mime_type": "application/json",
                "temperature": self.config.temperature,
                "top_p": GEMINI_TOP_P,
                "top_k": GEMINI_TOP_K,
                "max_output_tokens": self.config.max_tokens,
                "stop_sequences": [GEMINI_STOP_SEQUENCE],
            },
        )

    def _build_contents(self, request: LetterRequest) -> List[Any]:
        parts: List[Any] = [build_prompt(request)]
        for image in request.images:
            parts.append({"mime_type": image.mime_type, "data": image.data})
        return parts

    async def generate(self, request: LetterRequest) -> TranslationResult:
        """Single upstream call; retries belong to the caller."""
        if not self._client:
            self.initialize()

        try:
            response = await self._client.generate_content_async(self._build_contents(request))
            text = response.text
        except Exception as e:
            raise wrap_upstream_error(e) from e

        usage: Optional[Dict[str, int]] = None
        if getattr(response, "usage_metadata", None):
            usage = {
                "input_tokens": response.usage_metadata.prompt_token_count,
                "output_tokens": response.usage_metadata.candidates_token_count,
            }
        logger.debug(f"Gemini response received ({len(text)} chars, usage={usage})")

        return parse_letter_payload(text)
