"""Remote text extraction through the Gemini API.

The SDK client is created lazily and held by a ``ClientHandle`` shared by every
chunk task of the process. Creation is an idempotent check-and-create; a forced
reset simply drops the current client so the next caller builds a fresh one.
Concurrent resets and re-creations are harmless: the last writer wins and
every writer produces an equivalent client.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import TYPE_CHECKING, Any

from google import genai
from google.genai import types

from gemini_extract.constants import (
    CHUNK_PROMPT,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MIME_TYPE,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    MIN_API_KEY_LENGTH,
    PLACEHOLDER_API_KEY,
)
from gemini_extract.exceptions import APIError, ClientInitError

if TYPE_CHECKING:
    from gemini_extract.config import FrozenConfig

log = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]


def is_valid_api_key(api_key: str | None) -> bool:
    """Reject missing, placeholder and implausibly short keys."""
    return (
        api_key is not None
        and api_key != PLACEHOLDER_API_KEY
        and len(api_key) >= MIN_API_KEY_LENGTH
    )


def _default_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


class ClientHandle:
    """Process-wide holder for the lazily created SDK client."""

    def __init__(
        self, api_key: str | None, factory: ClientFactory | None = None
    ) -> None:
        self._api_key = api_key
        self._factory = factory or _default_factory
        self._client: Any | None = None

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    def get(self) -> Any:
        """Return the current client, creating it on first use.

        Raises:
            ClientInitError: If no usable API key is configured or the SDK
                refuses to build a client.
        """
        if self._client is not None:
            return self._client
        if not is_valid_api_key(self._api_key):
            raise ClientInitError(
                "Gemini API key is missing or invalid. "
                "Set GEMINI_API_KEY to a valid key."
            )
        try:
            client = self._factory(str(self._api_key))
        except Exception as e:
            raise ClientInitError(f"Failed to initialize Gemini client: {e}") from e
        self._client = client
        log.debug("Gemini client initialized")
        return client

    def reset(self) -> None:
        """Drop the current client so the next ``get()`` re-creates it."""
        if self._client is not None:
            log.info("Resetting Gemini client")
        self._client = None


class RemoteExtractor:
    """Sends one chunk to the model and returns the text it extracted."""

    def __init__(
        self,
        handle: ClientHandle,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    ) -> None:
        self.handle = handle
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    @classmethod
    def from_config(
        cls, config: FrozenConfig, factory: ClientFactory | None = None
    ) -> RemoteExtractor:
        return cls(
            ClientHandle(config.api_key, factory),
            model=config.model,
            temperature=config.temperature,
            max_output_tokens=config.max_output_tokens,
        )

    def ensure_ready(self) -> None:
        """Initialize the client eagerly; raises ``ClientInitError`` on failure."""
        self.handle.get()

    def reset(self) -> None:
        self.handle.reset()

    def check_credentials(self) -> bool:
        """Startup check: report whether remote extraction is usable."""
        try:
            self.ensure_ready()
        except ClientInitError as e:
            log.warning("Remote extraction unavailable: %s", e)
            return False
        log.info("Gemini client ready (model=%s)", self.model)
        return True

    async def extract(
        self,
        chunk_bytes: bytes | memoryview,
        mime_type: str | None,
        *,
        ordinal: int = 1,
        total: int = 1,
    ) -> str:
        """Extract text from one chunk.

        Returns:
            The model's text, verbatim.

        Raises:
            ClientInitError: If the client cannot be created.
            APIError: If the response carries no text at all.
            Exception: Whatever the SDK raises for transport or quota errors.
        """
        client = self.handle.get()
        prompt = CHUNK_PROMPT.format(ordinal=ordinal, total=total)
        contents = [
            prompt,
            types.Part.from_bytes(
                data=bytes(chunk_bytes),
                mime_type=mime_type or DEFAULT_MIME_TYPE,
            ),
        ]
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )

        response = await client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=config,
        )

        text = getattr(response, "text", None)
        if text is None:
            raise APIError(
                f"Malformed response for chunk {ordinal}/{total}: no text returned"
            )
        log.debug(
            "Chunk %d/%d extracted (%d characters)", ordinal, total, len(text)
        )
        return text
