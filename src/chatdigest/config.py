"""Central configuration for paths, engine constants and the LLM backend."""

import os
from pathlib import Path

from .errors import ConfigError


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


# Data directory, override with CHATDIGEST_DATA_DIR env var
DATA_DIR = Path(
    os.environ.get("CHATDIGEST_DATA_DIR", str(Path.home() / ".chatdigest"))
)

# Database path
SQLITE_PATH = DATA_DIR / "messages.db"

# Token estimation: fixed approximation, no tokenizer round-trip
CHARS_PER_TOKEN = 4

# Engine parameters
TOKEN_BUFFER = _env_int("CHATDIGEST_TOKEN_BUFFER", 1000)  # Reserved for instructions + response
MIN_CHUNK_LINES = _env_int("CHATDIGEST_MIN_CHUNK_LINES", 5)  # Only the last chunk may be shorter
OVERLAP_LINES = _env_int("CHATDIGEST_OVERLAP_LINES", 2)  # Carried into the next chunk
REPLY_PREVIEW_CHARS = _env_int("CHATDIGEST_REPLY_PREVIEW_CHARS", 50)

# Message ranges
DEFAULT_SUMMARY_HOURS = 24
MAX_TIME_HOURS = 168  # 1 week
MAX_COUNT = 10_000

# LLM backend: "openai" or "bedrock"
PROVIDER = os.environ.get("CHATDIGEST_PROVIDER", "openai").strip().lower()
DEFAULT_MAX_TOKENS = _env_int("CHATDIGEST_MAX_TOKENS", 500)
DEFAULT_TEMPERATURE = _env_float("CHATDIGEST_TEMPERATURE", 0.3)
REQUEST_TIMEOUT = _env_float("CHATDIGEST_REQUEST_TIMEOUT", 30.0)  # seconds

# OpenAI
OPENAI_MODEL = os.environ.get("CHATDIGEST_MODEL", "gpt-4o-mini")
MAX_CONTEXT_TOKENS = _env_int("CHATDIGEST_MAX_CONTEXT_TOKENS", 4096)

# AWS Bedrock (Claude 3 Haiku)
BEDROCK_MODEL = os.environ.get(
    "CHATDIGEST_BEDROCK_MODEL", "anthropic.claude-3-haiku-20240307-v1:0"
)
BEDROCK_MAX_CONTEXT_TOKENS = _env_int("CHATDIGEST_BEDROCK_MAX_CONTEXT_TOKENS", 8192)
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
