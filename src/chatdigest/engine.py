"""Summary engine: fetch, format, size, then summarize directly or hierarchically."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import tzinfo

from .backends import MessageSource, SummaryBackend
from .chunker import split_into_chunks
from .config import (
    CHARS_PER_TOKEN,
    MIN_CHUNK_LINES,
    OVERLAP_LINES,
    REPLY_PREVIEW_CHARS,
    TOKEN_BUFFER,
)
from .errors import ConfigError, NoMessagesError
from .formatter import format_messages
from .models import (
    CountRange,
    MessageQuery,
    StoredMessage,
    SummaryPlan,
    TimeRange,
)
from .summarizer import combine_summaries, summarize_chunks
from .tokens import estimate_tokens

logger = logging.getLogger(__name__)

MS_PER_HOUR = 60 * 60 * 1000


class SummaryEngine:
    """Produce a digest of a chat range with a bounded-context backend.

    When the formatted messages fit the backend's usable budget (its max
    context minus *token_buffer*), one backend call does the job. Otherwise
    the lines are split into overlapping chunks, each chunk is summarized in
    order, and one last call merges the part summaries.
    """

    def __init__(
        self,
        source: MessageSource,
        backend: SummaryBackend,
        *,
        token_buffer: int = TOKEN_BUFFER,
        min_chunk_lines: int = MIN_CHUNK_LINES,
        overlap_lines: int = OVERLAP_LINES,
        preview_chars: int = REPLY_PREVIEW_CHARS,
        chars_per_token: int = CHARS_PER_TOKEN,
        tz: tzinfo | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if min_chunk_lines < 1:
            raise ConfigError(f"min_chunk_lines must be at least 1, got {min_chunk_lines}")
        if overlap_lines < 0:
            raise ConfigError(f"overlap_lines must not be negative, got {overlap_lines}")
        if overlap_lines >= min_chunk_lines:
            raise ConfigError(
                f"overlap_lines ({overlap_lines}) must be smaller than "
                f"min_chunk_lines ({min_chunk_lines})"
            )

        self.source = source
        self.backend = backend
        self.token_buffer = token_buffer
        self.min_chunk_lines = min_chunk_lines
        self.overlap_lines = overlap_lines
        self.preview_chars = preview_chars
        self.chars_per_token = chars_per_token
        self.tz = tz
        self.clock = clock

    @property
    def usable_budget(self) -> int:
        """Tokens left for chat lines. Raises ConfigError if nothing is left."""
        max_context = self.backend.get_max_context_tokens()
        budget = max_context - self.token_buffer
        if budget < 1:
            raise ConfigError(
                f"Model context of {max_context} tokens leaves no room for messages "
                f"after the {self.token_buffer}-token buffer"
            )
        return budget

    def generate_summary(self, chat_id: int, message_range: TimeRange | CountRange) -> str:
        """Return a digest of *message_range* in chat *chat_id*.

        Raises NoMessagesError when the range is empty and ConfigError when
        the backend's context is no larger than the token buffer. Backend
        errors propagate unchanged.
        """
        budget = self.usable_budget
        messages = self.fetch_messages(chat_id, message_range)
        lines = self.format_messages(messages)

        token_count = self.estimate_tokens(lines)
        logger.debug(
            "Chat %s: %d messages, ~%d tokens, budget %d",
            chat_id, len(lines), token_count, budget,
        )

        if token_count > budget:
            logger.info(
                "Chat %s: %d tokens exceed budget %d, summarizing hierarchically",
                chat_id, token_count, budget,
            )
            return self.hierarchical_summarize(lines)

        logger.info("Chat %s: summarizing %d messages directly", chat_id, len(lines))
        return self.backend.summarize(lines)

    def plan(self, chat_id: int, message_range: TimeRange | CountRange) -> SummaryPlan:
        """Describe what generate_summary would do, without any summarize call."""
        budget = self.usable_budget
        messages = self.fetch_messages(chat_id, message_range)
        lines = self.format_messages(messages)
        token_count = self.estimate_tokens(lines)

        if token_count <= budget:
            chunk_count = 1
        else:
            chunk_count = len(self.split_into_chunks(lines, budget))

        return SummaryPlan(
            message_count=len(messages),
            estimated_tokens=token_count,
            usable_budget=budget,
            chunk_count=chunk_count,
            strategy="hierarchical" if chunk_count > 1 else "direct",
        )

    def build_query(self, chat_id: int, message_range: TimeRange | CountRange) -> MessageQuery:
        if isinstance(message_range, TimeRange):
            now = int(self.clock() * 1000)
            return MessageQuery(
                chat_id=chat_id,
                start_time=now - int(message_range.value * MS_PER_HOUR),
                end_time=now,
            )
        return MessageQuery(chat_id=chat_id, limit=message_range.value)

    def fetch_messages(
        self, chat_id: int, message_range: TimeRange | CountRange
    ) -> list[StoredMessage]:
        """Retrieve the range oldest first. Raises NoMessagesError if it is empty."""
        query = self.build_query(chat_id, message_range)
        messages = self.source.query(query)

        if not messages:
            raise NoMessagesError()

        # Count queries come back newest first
        return sorted(messages, key=lambda m: (m.timestamp, m.message_id))

    def format_messages(self, messages: list[StoredMessage]) -> list[str]:
        return format_messages(messages, preview_chars=self.preview_chars, tz=self.tz)

    def estimate_tokens(self, lines: list[str]) -> int:
        return estimate_tokens(lines, self.chars_per_token)

    def split_into_chunks(self, lines: list[str], budget: int | None = None) -> list[list[str]]:
        return split_into_chunks(
            lines,
            self.usable_budget if budget is None else budget,
            min_chunk_lines=self.min_chunk_lines,
            overlap_lines=self.overlap_lines,
            chars_per_token=self.chars_per_token,
        )

    def hierarchical_summarize(self, lines: list[str]) -> str:
        chunks = self.split_into_chunks(lines)

        if len(chunks) == 1:
            return self.backend.summarize(chunks[0])

        logger.info("Summarizing %d chunks", len(chunks))
        summaries = summarize_chunks(self.backend, chunks)
        return combine_summaries(self.backend, summaries)
