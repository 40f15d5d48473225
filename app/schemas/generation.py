"""Pydantic schemas for flashcard generation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings
from app.utils.text_normalizer import normalize_text

DEFAULT_MODEL = "openai/gpt-4o-mini"


class GenerationRequest(BaseModel):
    """Body of ``POST /v1/generations``."""

    model_config = ConfigDict(extra="ignore")

    source_text: str = Field(
        ...,
        description="Text to generate flashcards from (1000 to 50000 characters).",
    )
    model: str = Field(
        DEFAULT_MODEL,
        description="Model used for generation. Must be one of the supported models.",
    )

    @field_validator("source_text")
    @classmethod
    def _check_source_text(cls, value: str) -> str:
        text = normalize_text(value)
        min_chars = settings.app.min_source_chars
        max_chars = settings.app.max_source_chars
        if len(text) < min_chars:
            raise ValueError(f"Source text must be at least {min_chars} characters")
        if len(text) > max_chars:
            raise ValueError(f"Source text must not exceed {max_chars} characters")
        return text

    @field_validator("model")
    @classmethod
    def _check_model(cls, value: str) -> str:
        if value not in settings.app.supported_models:
            raise ValueError(
                f"Unsupported model. Supported models: {', '.join(settings.app.supported_models)}"
            )
        return value


class FlashcardCandidate(BaseModel):
    """One flashcard as produced by the model."""

    front: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Question or prompt shown on the front of the card.",
    )
    back: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Answer shown on the back of the card.",
    )


class FlashcardsOutput(BaseModel):
    """Schema the model output is validated against."""

    flashcards: list[FlashcardCandidate] = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Generated flashcards, one object per card.",
    )


class GeneratedFlashcard(BaseModel):
    front: str
    back: str
    source: Literal["ai-full"] = "ai-full"


class GenerationResponse(BaseModel):
    """Flashcard proposals returned to the client (not persisted)."""

    model: str = Field(..., description="Model that produced the flashcards.")
    source_text_hash: str = Field(..., description="MD5 hex digest of the source text.")
    source_text_length: int = Field(..., description="Length of the source text.")
    generated_count: int = Field(..., ge=0, description="Number of flashcards returned.")
    generation_duration_ms: int = Field(..., ge=0, description="Time spent generating.")
    flashcards: list[GeneratedFlashcard]
