"""Per-chunk summarization and the final merge of chunk summaries."""

from __future__ import annotations

import logging

from .backends import SummaryBackend

logger = logging.getLogger(__name__)

COMBINE_PREAMBLE = [
    "The following are summaries of different parts of a long conversation.",
    "Please combine them into a single cohesive summary that captures all key topics and discussions.",
    "",
]


def summarize_chunks(backend: SummaryBackend, chunks: list[list[str]]) -> list[str]:
    """Summarize each chunk in order, returning ``Part i: ...`` labeled summaries.

    Calls are made one at a time; a failure on any chunk propagates and the
    summaries collected so far are dropped.
    """
    total = len(chunks)
    summaries: list[str] = []

    for number, chunk in enumerate(chunks, 1):
        logger.debug("Summarizing part %d of %d (%d lines)", number, total, len(chunk))
        summary = backend.summarize([f"[Part {number} of {total}]", *chunk])
        summaries.append(f"Part {number}: {summary}")

    return summaries


def combine_summaries(backend: SummaryBackend, summaries: list[str]) -> str:
    """Merge labeled chunk summaries into one digest with a single backend call."""
    logger.debug("Combining %d part summaries", len(summaries))
    return backend.summarize([*COMBINE_PREAMBLE, *summaries])
