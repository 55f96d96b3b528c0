"""Parse Telegram Desktop JSON exports into chats of stored messages."""

from __future__ import annotations

import logging
import re
from typing import Any

from .models import Chat, StoredMessage

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)$")


def _extract_text(text: Any) -> str:
    """Flatten Telegram's text field, which is a string or a list of strings and entity dicts."""
    if isinstance(text, str):
        return text.strip()
    if isinstance(text, list):
        parts: list[str] = []
        for part in text:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict):
                parts.append(str(part.get("text", "")))
        return "".join(parts).strip()
    return ""


def _parse_user_id(from_id: Any) -> int:
    """Turn ``"user123"`` / ``"channel456"`` into 123 / 456."""
    if isinstance(from_id, int):
        return from_id
    if isinstance(from_id, str):
        match = _DIGITS.search(from_id)
        if match:
            return int(match.group(1))
    return 0


def _parse_timestamp_ms(msg: dict[str, Any]) -> int | None:
    unixtime = msg.get("date_unixtime")
    if unixtime is None:
        return None
    try:
        return int(unixtime) * 1000
    except (TypeError, ValueError):
        return None


def parse_message(msg: dict[str, Any], chat_id: int) -> StoredMessage | None:
    """Parse one export entry. Returns None for service messages, commands and media without text."""
    if msg.get("type") != "message":
        return None

    text = _extract_text(msg.get("text"))
    if not text or text.startswith("/"):
        return None

    if "photo" in msg:
        text = f"[Photo] {text}"
    elif "media_type" in msg or "file" in msg:
        text = f"[Media] {text}"

    message_id = msg.get("id")
    timestamp = _parse_timestamp_ms(msg)
    if message_id is None or timestamp is None:
        logger.debug("Chat %s: skipping message without id or date", chat_id)
        return None

    return StoredMessage(
        chat_id=chat_id,
        timestamp=timestamp,
        message_id=int(message_id),
        user_id=_parse_user_id(msg.get("from_id")),
        username=msg.get("from") or "Unknown",
        text=text,
        reply_to_message_id=msg.get("reply_to_message_id"),
        forward_from_name=msg.get("forwarded_from") or None,
    )


def parse_chat(data: dict[str, Any]) -> Chat | None:
    """Parse a single exported chat.

    Returns None if the chat cannot be parsed or holds no text messages.
    """
    chat_id = data.get("id")
    title = data.get("name") or "Untitled"
    raw_messages = data.get("messages")

    if chat_id is None or not isinstance(raw_messages, list):
        logger.warning("Skipping chat '%s' with missing id or messages", title)
        return None

    messages: list[StoredMessage] = []
    for raw in raw_messages:
        msg = parse_message(raw, int(chat_id))
        if msg is not None:
            messages.append(msg)

    if not messages:
        logger.debug("Chat '%s' has no text messages, skipping", title)
        return None

    messages.sort(key=lambda m: (m.timestamp, m.message_id))

    return Chat(
        id=int(chat_id),
        title=title,
        type=data.get("type"),
        messages=messages,
        message_count=len(messages),
    )


def parse_export(data: dict[str, Any]) -> list[Chat]:
    """Parse a ``result.json`` from a single-chat or a full-account export."""
    if isinstance(data.get("chats"), dict):
        raw_chats = data["chats"].get("list", [])
    else:
        raw_chats = [data]

    chats: list[Chat] = []

    for chat_dict in raw_chats:
        try:
            chat = parse_chat(chat_dict)
            if chat is not None:
                chats.append(chat)
        except Exception:
            title = chat_dict.get("name", "unknown")
            logger.warning("Failed to parse chat '%s'", title, exc_info=True)

    return chats
