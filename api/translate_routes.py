"""
Translation API Routes

POST /api/translate      - queue a letter for transcription + translation
GET  /api/queue/status   - admission queue snapshot for UI feedback
"""

import asyncio
import base64
import binascii
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ai_providers.base import LetterImage, LetterRequest
from config.constants import BUSY_ERROR_CODE, MAX_IMAGES_PER_LETTER
from config.logging_config import get_logger
from core.errors import UpstreamError, is_busy_error, user_message
from core.letter_translator import LetterTranslator

logger = get_logger(__name__)


# =========================================
# Pydantic Models
# =========================================

class ImagePayload(BaseModel):
    """One base64-encoded page"""
    data: str = Field(..., description="Base64 image bytes")
    mime_type: str = Field(default="image/jpeg", description="Image MIME type")


class TranslateRequest(BaseModel):
    """Letter translation request"""
    images: List[ImagePayload] = Field(..., min_length=1, max_length=MAX_IMAGES_PER_LETTER)
    source_language: str = Field(default="Auto-Detect", description="Language hint")
    target_language: str = Field(default="English", description="Translation language")


class TranslateResponse(BaseModel):
    """Structured transcription + translation"""
    transcription: str
    translation: str
    detected_language: Optional[str] = None
    confidence_score: Optional[float] = None
    header_info: Dict[str, Any] = Field(default_factory=dict)
    queue_position: int


class QueueStatusResponse(BaseModel):
    """Queue snapshot"""
    pending: int
    active: int
    count_in_window: int
    is_paused: bool
    estimated_wait_seconds: float


# =========================================
# Dependencies
# =========================================

def get_translator(request: Request) -> LetterTranslator:
    """The process-wide translator created at startup"""
    translator = getattr(request.app.state, "translator", None)
    if translator is None:
        raise HTTPException(status_code=503, detail="Translator not initialized")
    return translator


def get_request_timeout(request: Request) -> Optional[float]:
    return getattr(request.app.state, "request_timeout", None)


def _decode_images(payload: TranslateRequest) -> List[LetterImage]:
    images = []
    for index, image in enumerate(payload.images):
        try:
            data = base64.b64decode(image.data, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=422, detail=f"Image {index + 1} is not valid base64")
        images.append(LetterImage(data=data, mime_type=image.mime_type))
    return images


# =========================================
# Router
# =========================================

router = APIRouter(prefix="/api", tags=["Translation"])


@router.post("/translate", response_model=TranslateResponse)
async def translate_letter(
    payload: TranslateRequest,
    response: Response,
    translator: LetterTranslator = Depends(get_translator),
    timeout: Optional[float] = Depends(get_request_timeout),
):
    """
    Transcribe and translate a scanned letter.

    The call waits in the shared admission queue; the position it was given
    is returned in the body and in the X-Queue-Position header.
    """
    try:
        letter = LetterRequest(
            images=_decode_images(payload),
            source_language=payload.source_language,
            target_language=payload.target_language,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    positions: List[int] = []
    try:
        result = await translator.translate(letter, on_position=positions.append, timeout=timeout)
    except asyncio.TimeoutError:
        return JSONResponse(status_code=504, content={"error": "Translation timed out, please retry."})
    except UpstreamError as e:
        if is_busy_error(e):
            return JSONResponse(
                status_code=429,
                content={"error": user_message(e), "code": BUSY_ERROR_CODE},
                headers={"X-Queue-Position": str(positions[0])},
            )
        logger.error(f"Translation failed: {e}")
        return JSONResponse(status_code=500, content={"error": user_message(e)})
    except Exception as e:
        logger.exception(f"Translation failed with unexpected error: {e!r}")
        return JSONResponse(status_code=500, content={"error": user_message(e)})

    response.headers["X-Queue-Position"] = str(positions[0])
    return TranslateResponse(queue_position=positions[0], **result.to_dict())


@router.get("/queue/status", response_model=QueueStatusResponse)
async def queue_status(translator: LetterTranslator = Depends(get_translator)):
    """Current queue depth, rate window usage and wait estimate"""
    return QueueStatusResponse(**translator.queue.status().to_dict())
