"""
Token counting and usage tracking.

Approximates token counts from character length; no real tokenizer is used.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidArgument

CHARS_PER_TOKEN = 4


def estimate_tokens(text: Optional[str]) -> int:
    """Estimate the token count of a text.

    Uses ceil(characters / 4). Results are estimates, not tokenizer output.

    Args:
        text: Text to measure (None is treated as empty)

    Returns:
        Estimated token count, 0 for empty text
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def validate_token_count(value, name: str) -> int:
    """Reject negative, fractional or non-finite token counts.

    Raises:
        InvalidArgument: If the value is not a non-negative whole number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{name} must be a number, got {type(value).__name__}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidArgument(f"{name} must be finite")
        if not value.is_integer():
            raise InvalidArgument(f"{name} must be a whole number")
        value = int(value)
    if value < 0:
        raise InvalidArgument(f"{name} cannot be negative")
    return value


@dataclass(frozen=True)
class TokenUsage:
    """Token usage for one request.

    Prompt and completion tokens are billed at the generative model's rates,
    embedding tokens at the embedding model's rate.
    """
    prompt_tokens: int
    completion_tokens: int
    embedding_tokens: int = 0

    def __post_init__(self):
        """Validate counts are non-negative whole numbers."""
        object.__setattr__(self, "prompt_tokens", validate_token_count(self.prompt_tokens, "prompt_tokens"))
        object.__setattr__(self, "completion_tokens", validate_token_count(self.completion_tokens, "completion_tokens"))
        object.__setattr__(self, "embedding_tokens", validate_token_count(self.embedding_tokens, "embedding_tokens"))

    @property
    def total_tokens(self) -> int:
        """Total tokens used (prompt + completion + embedding)."""
        return self.prompt_tokens + self.completion_tokens + self.embedding_tokens
