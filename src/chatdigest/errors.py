"""Exception types raised by chatdigest."""

from __future__ import annotations


class ChatDigestError(Exception):
    """Base class for all chatdigest errors."""


class NoMessagesError(ChatDigestError):
    """The requested range holds no messages, so there is nothing to summarize."""

    def __init__(self, message: str = "No messages found in the requested range."):
        super().__init__(message)


class BackendError(ChatDigestError):
    """The text-generation backend failed to produce a summary."""

    def __init__(self, message: str, provider: str = "openai"):
        super().__init__(message)
        self.provider = provider


class InvalidRangeError(ChatDigestError, ValueError):
    """A message range string could not be parsed."""


class ConfigError(ChatDigestError):
    """Configuration is missing or malformed."""
