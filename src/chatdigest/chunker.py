"""Split formatted chat lines into chunks that fit the backend's token budget."""

from __future__ import annotations

import logging

from .config import CHARS_PER_TOKEN, MIN_CHUNK_LINES, OVERLAP_LINES
from .tokens import estimate_tokens, line_tokens, truncate_to_tokens

logger = logging.getLogger(__name__)


def split_into_chunks(
    lines: list[str],
    usable_budget: int,
    min_chunk_lines: int = MIN_CHUNK_LINES,
    overlap_lines: int = OVERLAP_LINES,
    chars_per_token: int = CHARS_PER_TOKEN,
) -> list[list[str]]:
    """Partition *lines* into chunks of at most *usable_budget* estimated tokens.

    A chunk is only closed once it holds *min_chunk_lines* lines, so only the
    last chunk may be shorter. Each new chunk starts with the last
    *overlap_lines* lines of the previous one, so those lines appear twice.
    A single line larger than the whole budget is truncated to whatever
    budget remains in the current chunk.
    """
    if usable_budget < 1:
        raise ValueError(f"usable_budget must be positive, got {usable_budget}")
    if min_chunk_lines < 1 or overlap_lines < 0:
        raise ValueError(
            "min_chunk_lines must be >= 1 and overlap_lines >= 0, "
            f"got {min_chunk_lines} and {overlap_lines}"
        )
    if overlap_lines >= min_chunk_lines:
        raise ValueError(
            f"overlap_lines ({overlap_lines}) must be smaller than "
            f"min_chunk_lines ({min_chunk_lines})"
        )

    if not lines:
        return []

    if estimate_tokens(lines, chars_per_token) <= usable_budget:
        return [list(lines)]

    chunks: list[list[str]] = []
    current: list[str] = []
    current_tokens = 0

    for line in lines:
        tokens = line_tokens(line, chars_per_token)

        if current_tokens + tokens > usable_budget and len(current) >= min_chunk_lines:
            chunks.append(current)
            current = current[-overlap_lines:] if overlap_lines > 0 else []
            current_tokens = estimate_tokens(current, chars_per_token)

        if tokens > usable_budget:
            truncated = truncate_to_tokens(
                line, usable_budget - current_tokens, chars_per_token
            )
            logger.debug(
                "Truncated oversized line from %d to %d chars", len(line), len(truncated)
            )
            current.append(truncated)
            current_tokens += line_tokens(truncated, chars_per_token)
        else:
            current.append(line)
            current_tokens += tokens

    if current:
        chunks.append(current)

    logger.debug("Split %d lines into %d chunks", len(lines), len(chunks))
    return chunks
