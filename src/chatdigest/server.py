"""FastMCP server exposing chat summaries as tools."""

from __future__ import annotations

import logging
import sys
from datetime import datetime

from mcp.server.fastmcp import FastMCP

from .config import DATA_DIR, SQLITE_PATH
from .engine import SummaryEngine
from .errors import BackendError, ChatDigestError, InvalidRangeError, NoMessagesError
from .llm import create_backend
from .ranges import describe_range, parse_range
from .storage import MessageStore

# Logging to stderr only: stdout is the MCP JSON-RPC transport
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "chatdigest",
    instructions=(
        "Summarize the user's imported Telegram group chats. "
        "Use list_chats to find a chat id, then summarize_chat with a time window "
        "('2h', '30m') or a message count ('50'). "
        "Use get_stats for an overview of the imported data."
    ),
)

# Singletons, reused across tool calls
_store: MessageStore | None = None
_engine: SummaryEngine | None = None


def _get_store() -> MessageStore:
    global _store
    if _store is None:
        _store = MessageStore(SQLITE_PATH)
    return _store


def _get_engine() -> SummaryEngine:
    global _engine
    if _engine is None:
        _engine = SummaryEngine(_get_store(), create_backend())
    return _engine


def _format_ts(ts_ms: int | None) -> str:
    if ts_ms is None:
        return "Unknown date"
    return datetime.fromtimestamp(ts_ms / 1000).strftime("%Y-%m-%d %H:%M")


def _check_data_exists() -> str | None:
    """Return an error message if no data has been imported."""
    if not SQLITE_PATH.exists():
        return (
            "No chat data found. Please import a Telegram export first:\n"
            "  chatdigest import ~/Downloads/ChatExport/result.json"
        )
    return None


@mcp.tool()
def summarize_chat(chat_id: int, last: str = "24h") -> str:
    """Summarize recent messages of an imported chat.

    Args:
        chat_id: The chat id (from list_chats)
        last: Time window like '2h' or '30m', or a message count like '50' (default '24h')
    """
    err = _check_data_exists()
    if err:
        return err

    try:
        message_range = parse_range(last)
    except InvalidRangeError as e:
        return str(e)

    try:
        summary = _get_engine().generate_summary(chat_id, message_range)
    except NoMessagesError:
        return f"No messages in chat {chat_id} for the {describe_range(message_range)}."
    except BackendError as e:
        logger.warning("Summary for chat %s failed: %s", chat_id, e)
        return f"Summarization failed: {e}"
    except ChatDigestError as e:
        return str(e)

    return f"# Summary of the {describe_range(message_range)}\n\n{summary}"


@mcp.tool()
def list_chats(limit: int = 20, offset: int = 0) -> str:
    """Browse imported chats, most recently active first.

    Args:
        limit: Maximum results (default 20)
        offset: Skip this many results (for pagination)
    """
    err = _check_data_exists()
    if err:
        return err

    chats = _get_store().list_chats(limit=limit, offset=offset)
    if not chats:
        return "No chats found."

    lines = [f"Chats (showing {offset + 1}–{offset + len(chats)}):\n"]
    for i, c in enumerate(chats, offset + 1):
        lines.append(f"{i}. **{c['title']}**")
        lines.append(
            f"   ID: `{c['id']}` | {c['message_count']} msgs | "
            f"Last message: {_format_ts(c['last_timestamp'])}"
        )

    if len(chats) == limit:
        lines.append(f"\nMore available — use offset={offset + limit} to see the next page.")

    return "\n".join(lines)


@mcp.tool()
def get_stats() -> str:
    """Get statistics about the imported chats.

    Shows total chats, messages, date range, and most active senders.
    """
    err = _check_data_exists()
    if err:
        return err

    stats = _get_store().get_stats()
    size_mb = SQLITE_PATH.stat().st_size / (1024 * 1024)

    lines = [
        "# chatdigest Statistics",
        "",
        f"- **Chats**: {stats['total_chats']:,}",
        f"- **Messages**: {stats['total_messages']:,}",
        f"- **Avg messages/chat**: {stats['avg_messages_per_chat']}",
        f"- **Storage used**: {size_mb:.1f} MB",
        "",
    ]

    if stats["date_range_start"]:
        lines.append(f"- **Date range**: {stats['date_range_start']} → {stats['date_range_end']}")
        lines.append("")

    if stats["top_senders"]:
        lines.append("## Most active senders:")
        for u in stats["top_senders"]:
            lines.append(f"- {u['username']}: {u['count']:,} messages")

    lines.append(f"\n*Data stored in: {DATA_DIR}*")
    return "\n".join(lines)
