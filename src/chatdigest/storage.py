"""SQLite storage for imported chats and their messages."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from .backends import MessageSource
from .models import Chat, MessageQuery, StoredMessage

_MESSAGE_COLUMNS = (
    "chat_id, message_id, timestamp, user_id, username, text, "
    "reply_to_message_id, thread_id, forward_from_name"
)


class MessageStore(MessageSource):
    """SQLite-backed message store, queried by time window or message count."""

    def __init__(self, db_path: Path):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._migrate()

    def _migrate(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS chats (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                type TEXT,
                message_count INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS messages (
                chat_id INTEGER NOT NULL,
                message_id INTEGER NOT NULL,
                timestamp INTEGER NOT NULL,
                user_id INTEGER NOT NULL DEFAULT 0,
                username TEXT NOT NULL,
                text TEXT NOT NULL,
                reply_to_message_id INTEGER,
                thread_id INTEGER,
                forward_from_name TEXT,
                PRIMARY KEY (chat_id, message_id),
                FOREIGN KEY (chat_id) REFERENCES chats(id)
            );

            CREATE INDEX IF NOT EXISTS idx_messages_chat_time
                ON messages(chat_id, timestamp);

            CREATE TABLE IF NOT EXISTS import_metadata (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                import_time TEXT NOT NULL,
                file_path TEXT,
                chats_imported INTEGER,
                messages_imported INTEGER
            );
        """)
        self.conn.commit()

    def chat_exists(self, chat_id: int) -> bool:
        row = self.conn.execute("SELECT 1 FROM chats WHERE id = ?", (chat_id,)).fetchone()
        return row is not None

    def upsert_chat(self, chat: Chat):
        """Insert or replace a chat and all of its messages."""
        self.conn.execute("DELETE FROM messages WHERE chat_id = ?", (chat.id,))
        self.conn.execute("DELETE FROM chats WHERE id = ?", (chat.id,))

        self.conn.execute(
            "INSERT INTO chats (id, title, type, message_count) VALUES (?, ?, ?, ?)",
            (chat.id, chat.title, chat.type, chat.message_count),
        )
        self.add_messages(chat.messages, commit=False)
        self.conn.commit()

    def add_messages(self, messages: list[StoredMessage], commit: bool = True):
        self.conn.executemany(
            f"INSERT OR REPLACE INTO messages ({_MESSAGE_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (m.chat_id, m.message_id, m.timestamp, m.user_id, m.username, m.text,
                 m.reply_to_message_id, m.thread_id, m.forward_from_name)
                for m in messages
            ],
        )
        if commit:
            self.conn.commit()

    def query(self, query: MessageQuery) -> list[StoredMessage]:
        """Return messages for *query*.

        Time-bounded queries come back oldest first. A pure count query returns
        the ``limit`` most recent messages, newest first.
        """
        clauses = ["chat_id = ?"]
        params: list[int] = [query.chat_id]

        if query.start_time is not None:
            clauses.append("timestamp >= ?")
            params.append(query.start_time)
        if query.end_time is not None:
            clauses.append("timestamp <= ?")
            params.append(query.end_time)

        is_count_query = (
            query.limit is not None and query.start_time is None and query.end_time is None
        )
        order = "DESC" if is_count_query else "ASC"

        sql = (
            f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE {' AND '.join(clauses)} "
            f"ORDER BY timestamp {order}, message_id {order}"
        )
        if query.limit is not None:
            sql += " LIMIT ?"
            params.append(query.limit)

        rows = self.conn.execute(sql, params).fetchall()
        return [StoredMessage(**dict(r)) for r in rows]

    def list_chats(self, limit: int = 20, offset: int = 0) -> list[dict]:
        """List chats with their message count and last activity, most recent first."""
        rows = self.conn.execute(
            """SELECT c.id, c.title, c.type, COUNT(m.message_id) AS message_count,
                      MIN(m.timestamp) AS first_timestamp, MAX(m.timestamp) AS last_timestamp
               FROM chats c
               LEFT JOIN messages m ON m.chat_id = c.id
               GROUP BY c.id
               ORDER BY last_timestamp DESC
               LIMIT ? OFFSET ?""",
            (limit, offset),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_stats(self) -> dict:
        """Get overall database statistics."""
        chat_count = self.conn.execute("SELECT COUNT(*) FROM chats").fetchone()[0]
        msg_count = self.conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]

        date_range = self.conn.execute(
            "SELECT MIN(timestamp), MAX(timestamp) FROM messages"
        ).fetchone()

        senders = self.conn.execute(
            """SELECT username, COUNT(*) AS cnt FROM messages
               GROUP BY username ORDER BY cnt DESC LIMIT 10"""
        ).fetchall()

        return {
            "total_chats": chat_count,
            "total_messages": msg_count,
            "date_range_start": _format_ts(date_range[0]),
            "date_range_end": _format_ts(date_range[1]),
            "top_senders": [{"username": r[0], "count": r[1]} for r in senders],
            "avg_messages_per_chat": round(msg_count / chat_count, 1) if chat_count else 0,
        }

    def record_import(self, file_path: str, chats: int, messages: int):
        self.conn.execute(
            "INSERT INTO import_metadata (import_time, file_path, chats_imported, messages_imported) VALUES (?, ?, ?, ?)",
            (datetime.now(timezone.utc).isoformat(), file_path, chats, messages),
        )
        self.conn.commit()

    def close(self):
        self.conn.close()


def _format_ts(ts_ms: int | None) -> str | None:
    if ts_ms is None:
        return None
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
