"""Lightweight token estimation.

Uses a fixed chars-per-token ratio instead of a real tokenizer so that a
request can be sized without a round-trip to the backend. Every division
rounds *up*: we would rather split a little early than overflow the
context window.
"""

from __future__ import annotations

from collections.abc import Iterable

from .config import CHARS_PER_TOKEN


def line_tokens(line: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Return the estimated token count of a single line."""
    return -(-len(line) // chars_per_token)


def estimate_tokens(
    lines: str | Iterable[str], chars_per_token: int = CHARS_PER_TOKEN
) -> int:
    """Return ``ceil(total_chars / chars_per_token)`` for a string or a sequence of lines."""
    if isinstance(lines, str):
        total_chars = len(lines)
    else:
        total_chars = sum(len(line) for line in lines)
    return -(-total_chars // chars_per_token)


def truncate_to_tokens(
    text: str, max_tokens: int, chars_per_token: int = CHARS_PER_TOKEN
) -> str:
    """Truncate *text* so its estimate fits *max_tokens*, marking the cut with ``...``."""
    max_chars = max(max_tokens, 0) * chars_per_token
    if len(text) <= max_chars:
        return text
    return text[: max(max_chars - 3, 0)] + "..."
