"""Cheap token-cost approximation used to decide when the context needs compressing."""

from typing import (
    Callable,
    Sequence,
)

from toolpilot.core.schema import ConversationTurn

CHARS_PER_TOKEN = 4

TokenEstimator = Callable[[Sequence[ConversationTurn]], int]
"""Anything mapping a turn sequence to an approximate token count."""


def estimate_tokens(
    turns: Sequence[ConversationTurn], chars_per_token: int = CHARS_PER_TOKEN
) -> int:
    """Return the summed content length of *turns* divided by *chars_per_token*, floored."""
    total_chars = sum(len(turn.content) for turn in turns)
    return total_chars // chars_per_token
