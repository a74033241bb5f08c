# =============================================================================
# lib/llm.py - Generative AI Client
# =============================================================================
# Thin wrapper for text generation. Gemini is reached through its
# OpenAI-compatible endpoint, so the regular OpenAI SDK is used.
#
# Usage:
#   from lib.llm import generate_text
#   text = generate_text(prompt, temperature=0.7, max_tokens=1024)
# =============================================================================

from __future__ import annotations

import logging

from openai import OpenAI, OpenAIError

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

# Lazy client initialization
_client: OpenAI | None = None


class LLMError(ApplicationError):
    """Raised when text generation fails or returns nothing."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="LLM_ERROR", **kwargs)


def get_client() -> OpenAI:
    """Get or create the OpenAI-compatible client."""
    global _client
    if _client is None:
        if not settings.GEMINI_API_KEY:
            raise LLMError(
                "GEMINI_API_KEY is not configured",
                suggestion="Set GEMINI_API_KEY in your .env file",
            )
        _client = OpenAI(
            api_key=settings.GEMINI_API_KEY,
            base_url=settings.GEMINI_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    return _client


def generate_text(
    prompt: str,
    temperature: float = 0.7,
    max_tokens: int = 1024,
    model: str | None = None,
) -> str:
    """
    Generate a single completion for a prompt.

    Args:
        prompt: Full prompt text (sent as one user message)
        temperature: Sampling temperature
        max_tokens: Output token cap
        model: Override for settings.GEMINI_MODEL

    Returns:
        Generated text, stripped

    Raises:
        LLMError: If the API call fails or returns no text
    """
    client = get_client()
    model = model or settings.GEMINI_MODEL

    try:
        response = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except OpenAIError as e:
        logger.error(f"Gemini API error: {e}")
        raise LLMError(f"Gemini API error: {e}", details={"model": model})

    text = response.choices[0].message.content if response.choices else None
    if not text or not text.strip():
        raise LLMError("No response text from Gemini", details={"model": model})

    logger.debug(f"Generated {len(text)} chars with {model}")
    return text.strip()
