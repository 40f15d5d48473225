"""Flashcard generation service.

Turns a validated source text into flashcard proposals:
- Builds the flashcard prompt
- Calls the structured-generation client with the flashcards schema
- Shapes the response (hash, length, duration, cards tagged ``ai-full``)

Nothing is persisted; the client decides which proposals to keep.
"""

import hashlib
import logging
import time

from app.schemas.generation import (
    FlashcardsOutput,
    GeneratedFlashcard,
    GenerationRequest,
    GenerationResponse,
)
from app.services.ai.request_spec import MAX_USER_PROMPT_CHARS
from app.services.ai.service import AIService

logger = logging.getLogger(__name__)

# Room left in the user prompt for the instructions around the source text
PROMPT_OVERHEAD_CHARS = 1000
MAX_PROMPT_SOURCE_CHARS = MAX_USER_PROMPT_CHARS - PROMPT_OVERHEAD_CHARS

SYSTEM_PROMPT = (
    "You are an expert educator who writes study flashcards. "
    "Each flashcard has a short question or term on the front (max 200 characters) "
    "and a precise, self-contained answer on the back (max 500 characters). "
    "Only use facts stated in the source text. Respond with JSON only."
)


def _truncate(text: str, max_chars: int) -> tuple[str, bool]:
    """Truncate text to max_chars if needed.

    Returns:
        Tuple of (truncated_text, was_truncated).
    """
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars], True


def build_prompt(source_text: str) -> str:
    """Build the user prompt for flashcard generation.

    Args:
        source_text: Normalized source text.

    Returns:
        Formatted prompt string for the LLM.
    """
    return f"""
Create flashcards from the source text below.

RULES:
- Cover the most important facts, definitions and relationships
- One idea per card; avoid duplicates
- Keep the front under 200 characters and the back under 500 characters
- Write in the language of the source text

REQUIRED JSON STRUCTURE:
{{"flashcards": [{{"front": "question", "back": "answer"}}, ...]}}

SOURCE TEXT:
{source_text}
""".strip()


def hash_source_text(source_text: str) -> str:
    """MD5 digest identifying the source text (not a security hash)."""
    return hashlib.md5(source_text.encode("utf-8")).hexdigest()


class GenerationService:
    """Generates flashcard proposals through an ``AIService``."""

    def __init__(self, ai: AIService) -> None:
        self.ai = ai

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Generate flashcards for a validated request.

        Raises:
            DomainError: Any ``ai`` domain error raised by the client.
        """
        source_hash = hash_source_text(request.source_text)
        prompt_text, truncated = _truncate(request.source_text, MAX_PROMPT_SOURCE_CHARS)
        if truncated:
            logger.info(
                "generation.source_truncated",
                extra={
                    "source_text_hash": source_hash,
                    "source_text_length": len(request.source_text),
                    "prompt_chars": len(prompt_text),
                },
            )
        start = time.perf_counter()

        output = await self.ai.generate(
            system=SYSTEM_PROMPT,
            user=build_prompt(prompt_text),
            schema=FlashcardsOutput,
            model=request.model,
        )

        duration_ms = int((time.perf_counter() - start) * 1000)
        flashcards = [
            GeneratedFlashcard(front=card.front, back=card.back)
            for card in output.flashcards
        ]
        logger.info(
            "generation.completed",
            extra={
                "model": request.model,
                "source_text_hash": source_hash,
                "generated_count": len(flashcards),
                "duration_ms": duration_ms,
            },
        )
        return GenerationResponse(
            model=request.model,
            source_text_hash=source_hash,
            source_text_length=len(request.source_text),
            generated_count=len(flashcards),
            generation_duration_ms=duration_ms,
            flashcards=flashcards,
        )
