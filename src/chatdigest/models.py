"""Data models for stored messages, ranges and queries."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class StoredMessage(BaseModel):
    chat_id: int
    timestamp: int  # ms since epoch
    message_id: int
    user_id: int = 0
    username: str
    text: str
    reply_to_message_id: int | None = None
    thread_id: int | None = None
    forward_from_name: str | None = None


class TimeRange(BaseModel):
    """The last ``value`` hours of a chat."""

    model_config = ConfigDict(frozen=True)

    type: Literal["time"] = "time"
    value: float = Field(gt=0)


class CountRange(BaseModel):
    """The last ``value`` messages of a chat."""

    model_config = ConfigDict(frozen=True)

    type: Literal["count"] = "count"
    value: int = Field(gt=0)


MessageRange = Annotated[Union[TimeRange, CountRange], Field(discriminator="type")]

MessageRangeAdapter: TypeAdapter[TimeRange | CountRange] = TypeAdapter(MessageRange)


class MessageQuery(BaseModel):
    chat_id: int
    start_time: int | None = None
    end_time: int | None = None
    limit: int | None = None


class SummarizeOptions(BaseModel):
    max_tokens: int | None = None
    temperature: float | None = None


class Chat(BaseModel):
    id: int
    title: str
    type: str | None = None
    messages: list[StoredMessage] = []
    message_count: int = 0


class SummaryPlan(BaseModel):
    """What a summary request would do, without calling the backend."""

    message_count: int
    estimated_tokens: int
    usable_budget: int
    chunk_count: int
    strategy: Literal["direct", "hierarchical"]
