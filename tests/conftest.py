from datetime import datetime, timezone

import pytest

from chatdigest.backends import MessageSource, SummaryBackend
from chatdigest.models import MessageQuery, StoredMessage, SummarizeOptions

BASE_TS = int(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc).timestamp() * 1000)


def make_message(message_id: int, text: str = "hello", minute: int = 0, **kwargs) -> StoredMessage:
    fields = {
        "chat_id": -100,
        "timestamp": BASE_TS + minute * 60_000,
        "message_id": message_id,
        "user_id": 1,
        "username": "alice",
        "text": text,
    }
    fields.update(kwargs)
    return StoredMessage(**fields)


class FakeSource(MessageSource):
    """In-memory message source that records every query."""

    def __init__(self, messages=None, newest_first_on_count=True):
        self.messages = list(messages or [])
        self.newest_first_on_count = newest_first_on_count
        self.queries: list[MessageQuery] = []

    def query(self, query: MessageQuery) -> list[StoredMessage]:
        self.queries.append(query)
        result = sorted(self.messages, key=lambda m: m.timestamp)
        if query.start_time is not None:
            result = [m for m in result if m.timestamp >= query.start_time]
        if query.end_time is not None:
            result = [m for m in result if m.timestamp <= query.end_time]
        if query.limit is not None:
            result = result[-query.limit:]
            if self.newest_first_on_count:
                result.reverse()
        return result


class FakeBackend(SummaryBackend):
    """Records every summarize call and answers ``summary <n>``."""

    def __init__(self, max_context_tokens=4096, fail_on_call=None, error=None):
        self.max_context_tokens = max_context_tokens
        self.fail_on_call = fail_on_call
        self.error = error or RuntimeError("backend down")
        self.calls: list[list[str]] = []

    def summarize(self, lines: list[str], options: SummarizeOptions | None = None) -> str:
        self.calls.append(list(lines))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise self.error
        return f"summary {len(self.calls)}"

    def get_max_context_tokens(self) -> int:
        return self.max_context_tokens


@pytest.fixture()
def backend():
    return FakeBackend()
