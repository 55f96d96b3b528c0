"""Summarize chat lines with a hosted LLM (OpenAI or AWS Bedrock)."""

from __future__ import annotations

import logging
import os

import boto3
import openai
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from openai import OpenAI

from .backends import SummaryBackend
from .config import (
    AWS_REGION,
    BEDROCK_MAX_CONTEXT_TOKENS,
    BEDROCK_MODEL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    MAX_CONTEXT_TOKENS,
    OPENAI_MODEL,
    PROVIDER,
    REQUEST_TIMEOUT,
)
from .errors import BackendError, ConfigError
from .models import SummarizeOptions

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful assistant that summarizes group chat conversations.

Language:
- Identify the language of the messages and write the whole summary in it, headers included.

Attribution:
- Use participant names when describing who said, proposed, or did something.
- For forwarded messages (marked "forwarded from X"), attribute the content to the original author X.
- Input marked "[Part i of N]" is one slice of a longer conversation; summarize only that slice.

Format:
1. Start with a brief overview (1-2 sentences).
2. List the main topics discussed as bullet points, with key points, who proposed them and any decisions made.
3. End with an "Open Questions" section listing unresolved questions. Omit it if there are none.

Be concise but keep every important decision and action item."""

USER_PROMPT_PREFIX = "Please summarize the following chat conversation:\n\n"

GENERIC_FAILURE = "Unable to generate summary. Please try again later."
CONTEXT_TOO_LONG = (
    "The conversation is too long to summarize at once. Please try a shorter range."
)


def build_user_prompt(lines: list[str]) -> str:
    return USER_PROMPT_PREFIX + "\n".join(lines)


def _resolve(options: SummarizeOptions | None, max_tokens: int, temperature: float):
    options = options or SummarizeOptions()
    return (
        options.max_tokens if options.max_tokens is not None else max_tokens,
        options.temperature if options.temperature is not None else temperature,
    )


def _openai_error_message(e: openai.OpenAIError) -> str:
    """Map an SDK error to a message that is safe to show users."""
    # APITimeoutError subclasses APIConnectionError
    if isinstance(e, openai.APITimeoutError):
        return "Request timed out. Please try again."
    if isinstance(e, openai.APIConnectionError):
        return "Unable to connect to OpenAI. Please check your internet connection."
    if isinstance(e, openai.AuthenticationError):
        return "Authentication failed. Check the OPENAI_API_KEY setting."
    if isinstance(e, openai.RateLimitError):
        return "Too many requests. Please wait a moment and try again."
    if isinstance(e, openai.InternalServerError):
        return "OpenAI service is temporarily unavailable. Please try again later."
    if isinstance(e, openai.BadRequestError):
        if getattr(e, "code", None) == "context_length_exceeded":
            return CONTEXT_TOO_LONG
        return "Unable to process the request. Please try again."
    return GENERIC_FAILURE


class OpenAISummaryBackend(SummaryBackend):
    """Summarize lines with a single chat completion per call."""

    def __init__(
        self,
        model: str = OPENAI_MODEL,
        api_key: str | None = None,
        max_context_tokens: int = MAX_CONTEXT_TOKENS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = REQUEST_TIMEOUT,
        client: OpenAI | None = None,
    ) -> None:
        """Configure model and generation defaults.

        Args:
            model: OpenAI model name to use.
            api_key: API key (defaults to env OPENAI_API_KEY).
            max_context_tokens: Input context size the engine sizes chunks against.
            max_tokens: Default completion length.
            temperature: Default sampling temperature.
            timeout: Per-request timeout in seconds.
            client: Preconfigured client, mainly for tests.
        """
        self.model = model
        self.max_context_tokens = max_context_tokens
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise ConfigError(
                    "OPENAI_API_KEY is not set. Export it or pass api_key explicitly."
                )
            self._client = OpenAI(api_key=self._api_key, timeout=self.timeout)
        return self._client

    def get_max_context_tokens(self) -> int:
        return self.max_context_tokens

    def summarize(self, lines: list[str], options: SummarizeOptions | None = None) -> str:
        max_tokens, temperature = _resolve(options, self.max_tokens, self.temperature)

        logger.debug("Requesting summary of %d lines from %s", len(lines), self.model)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(lines)},
                ],
            )
        except openai.OpenAIError as e:
            # Status and code only, the raw message may echo request details
            logger.warning(
                "OpenAI request failed: %s (status=%s, code=%s)",
                type(e).__name__,
                getattr(e, "status_code", None),
                getattr(e, "code", None),
            )
            raise BackendError(_openai_error_message(e)) from e

        if not response.choices:
            raise BackendError("OpenAI returned no choices")

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise BackendError("OpenAI returned an empty summary")
        return content


_BEDROCK_ERRORS = {
    "AccessDeniedException": "Access to the Bedrock model was denied. Check the AWS permissions.",
    "UnrecognizedClientException": "AWS authentication failed. Check the AWS credentials.",
    "ThrottlingException": "Too many requests. Please wait a moment and try again.",
    "ServiceUnavailableException": "AWS Bedrock is temporarily unavailable. Please try again later.",
    "ModelTimeoutException": "Request timed out. Please try again.",
    "ModelNotReadyException": "The Bedrock model is not ready yet. Please try again later.",
    "ResourceNotFoundException": "The configured Bedrock model was not found.",
}


def _bedrock_error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        code = error.get("Code", "")
        if code == "ValidationException" and "too long" in error.get("Message", "").lower():
            return CONTEXT_TOO_LONG
        return _BEDROCK_ERRORS.get(code, GENERIC_FAILURE)
    if isinstance(e, NoCredentialsError):
        return "AWS credentials are not configured."
    return "Unable to reach AWS Bedrock. Please check your internet connection."


class BedrockSummaryBackend(SummaryBackend):
    """Summarize lines with the Bedrock Converse API (Claude 3 Haiku by default)."""

    def __init__(
        self,
        model: str = BEDROCK_MODEL,
        region: str | None = None,
        max_context_tokens: int = BEDROCK_MAX_CONTEXT_TOKENS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = REQUEST_TIMEOUT,
        client=None,
    ) -> None:
        self.model = model
        self.region = region or AWS_REGION
        self.max_context_tokens = max_context_tokens
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=self.region,
                config=Config(connect_timeout=self.timeout, read_timeout=self.timeout),
            )
        return self._client

    def get_max_context_tokens(self) -> int:
        return self.max_context_tokens

    def summarize(self, lines: list[str], options: SummarizeOptions | None = None) -> str:
        max_tokens, temperature = _resolve(options, self.max_tokens, self.temperature)

        logger.debug("Requesting summary of %d lines from %s", len(lines), self.model)
        try:
            response = self.client.converse(
                modelId=self.model,
                system=[{"text": SYSTEM_PROMPT}],
                messages=[
                    {"role": "user", "content": [{"text": build_user_prompt(lines)}]},
                ],
                inferenceConfig={"maxTokens": max_tokens, "temperature": temperature},
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning("Bedrock request failed: %s", type(e).__name__)
            raise BackendError(_bedrock_error_message(e), provider="bedrock") from e

        content = response.get("output", {}).get("message", {}).get("content") or []
        text = "".join(block.get("text", "") for block in content).strip()
        if not text:
            raise BackendError("Bedrock returned an empty summary", provider="bedrock")
        return text


_BACKENDS = {
    "openai": OpenAISummaryBackend,
    "bedrock": BedrockSummaryBackend,
}


def create_backend(provider: str | None = None, **kwargs) -> SummaryBackend:
    """Build the backend named by *provider* (default: CHATDIGEST_PROVIDER).

    Keyword arguments are passed to the backend constructor.
    """
    name = (provider or PROVIDER).strip().lower()
    try:
        backend_cls = _BACKENDS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown provider {name!r}. Choose one of: {', '.join(sorted(_BACKENDS))}"
        ) from None
    logger.debug("Using %s backend", name)
    return backend_cls(**kwargs)
