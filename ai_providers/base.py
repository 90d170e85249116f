"""
Base Letter Provider - Abstract Interface
Letter Translator - upstream "generate" collaborator
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field, asdict

from config.constants import MAX_IMAGES_PER_LETTER, GEMINI_TEMPERATURE


@dataclass
class LetterImage:
    """One scanned page"""
    data: bytes
    mime_type: str = "image/jpeg"


@dataclass
class LetterRequest:
    """A letter to transcribe and translate (1-3 pages read as one letter)"""
    images: List[LetterImage]
    source_language: str = "Auto-Detect"
    target_language: str = "English"

    def __post_init__(self):
        if not self.images:
            raise ValueError("At least one image is required")
        if len(self.images) > MAX_IMAGES_PER_LETTER:
            raise ValueError(
                f"At most {MAX_IMAGES_PER_LETTER} images per letter, got {len(self.images)}"
            )


@dataclass
class TranslationResult:
    """Structured model output"""
    transcription: str
    translation: str
    detected_language: Optional[str] = None
    confidence_score: Optional[float] = None
    header_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AIConfig:
    """Provider configuration"""
    api_key: Optional[str]
    model: str
    max_tokens: int = 8192
    temperature: float = GEMINI_TEMPERATURE


class BaseLetterProvider(ABC):
    """
    Abstract base class for letter transcription providers.

    Implementations must raise core.errors.UpstreamError subclasses so the
    backoff layer can tell transient failures from terminal ones.
    """

    def __init__(self, config: AIConfig):
        self.config = config
        self._client = None

    @abstractmethod
    async def generate(self, request: LetterRequest) -> TranslationResult:
        """
        Transcribe and translate a letter.

        Args:
            request: Page images and language hints

        Returns:
            TranslationResult parsed from the model response
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} model={self.config.model}>"
