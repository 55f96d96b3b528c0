"""Collaborator contracts the summary engine depends on.

Implementations are passed into :class:`chatdigest.engine.SummaryEngine`
at construction time, so tests and alternative providers can be swapped in
without touching the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import MessageQuery, StoredMessage, SummarizeOptions


class MessageSource(ABC):
    """Retrieval service the engine reads chat messages from."""

    @abstractmethod
    def query(self, query: MessageQuery) -> list[StoredMessage]:
        """Return messages for *query*.

        Time queries return messages with ``start_time <= timestamp <= end_time``
        in ascending order. Count queries return the ``limit`` most recent
        messages; implementations may return them newest first.
        """


class SummaryBackend(ABC):
    """Text-generation service with a bounded input context."""

    @abstractmethod
    def summarize(self, lines: list[str], options: SummarizeOptions | None = None) -> str:
        """Return a summary of *lines*. Any failure is raised, never returned."""

    @abstractmethod
    def get_max_context_tokens(self) -> int:
        """Return the model's maximum input context in tokens."""
