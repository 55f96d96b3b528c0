"""Render stored messages as single human-readable lines for the LLM."""

from __future__ import annotations

from datetime import datetime, tzinfo

from .config import REPLY_PREVIEW_CHARS
from .models import StoredMessage


def _format_time(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz).strftime("%H:%M")


def _preview(text: str, max_chars: int) -> str:
    """Cap *text* at *max_chars* characters, ellipsis included."""
    if len(text) <= max_chars:
        return text
    return text[: max(max_chars - 3, 0)] + "..."


def _author(message: StoredMessage) -> str:
    if message.forward_from_name:
        return f"{message.username} (fwd from {message.forward_from_name})"
    return message.username


def format_message(
    message: StoredMessage,
    by_id: dict[int, StoredMessage],
    preview_chars: int = REPLY_PREVIEW_CHARS,
    tz: tzinfo | None = None,
) -> str:
    """Format one message, resolving its reply target against *by_id*."""
    speaker = message.username
    if message.forward_from_name:
        speaker += f" forwarded from {message.forward_from_name}"

    if message.reply_to_message_id is not None:
        target = by_id.get(message.reply_to_message_id)
        if target is not None:
            preview = _preview(target.text, preview_chars)
            speaker += f' (replying to {_author(target)}: "{preview}")'
        else:
            speaker += " (reply)"

    line = f"[{_format_time(message.timestamp, tz)}] {speaker}: {message.text}"

    if message.thread_id is not None:
        line = f"[Topic {message.thread_id}] {line}"

    return line


def format_messages(
    messages: list[StoredMessage],
    preview_chars: int = REPLY_PREVIEW_CHARS,
    tz: tzinfo | None = None,
) -> list[str]:
    """Format messages one line each, keeping their order.

    Reply previews only resolve against messages in the same list; a reply
    whose target fell outside the retrieved range is marked ``(reply)``.
    """
    by_id = {m.message_id: m for m in messages}
    return [format_message(m, by_id, preview_chars=preview_chars, tz=tz) for m in messages]
