"""Generation strategies and the fallback chain that drives them.

The generation API is reached through an ordered list of strategies that all
implement the same capability, ``generate(prompt, images) -> GenerationResult``:

``sdk``
    The official ``google-genai`` client, asking for both text and image
    modalities.  The only strategy that can send input images and return a
    generated image.
``rest``
    A direct JSON POST to the REST endpoint through :class:`TransportAdapter`.
    Text only.
``curl``
    A ``curl`` subprocess, the dependency-free last resort.  Text only.

:class:`GenerationClient` runs the first strategy with the prompt and all
images.  If it raises anything (network, auth, malformed response, SDK error)
the remaining strategies are tried once each, in order, with the images
dropped and a short suffix appended to the prompt.  The first success wins.
There is no backoff and no retry count beyond that single pass.

:class:`~naturalps.core.errors.StorageError` is the exception to the rule:
failing to persist a generated image aborts the request instead of
triggering a fallback.

Usage
-----
::

    from naturalps.core.config import config
    from naturalps.core.generation import GenerationClient

    client = GenerationClient.from_config(config)
    result = client.generate("a red circle")
"""

from __future__ import annotations

import base64
import json
import logging
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence

from google import genai
from google.genai import types

from naturalps.core.config import NaturalPSConfig
from naturalps.core.errors import (
    EmptyApiResponseError,
    GenerationFailedError,
    NaturalPSError,
    StorageError,
    TransportError,
)
from naturalps.core.models import GenerationResult, InlineImagePart
from naturalps.core.storage import TempStorage, extension_for
from naturalps.core.transport import TransportAdapter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# REST payload helpers shared by the rest and curl strategies.
# ---------------------------------------------------------------------------


def build_rest_payload(
    prompt: str,
    images: Sequence[InlineImagePart] = (),
    generation_config: dict | None = None,
) -> dict:
    """Build a ``generateContent`` request body.

    Args:
        prompt: Text prompt, always the first part.
        images: Inline images appended after the prompt, in order.
        generation_config: Optional ``generationConfig`` block.

    Returns:
        JSON-serialisable request body.
    """
    payload: dict = {
        "contents": [{"parts": [{"text": prompt}, *(image.to_rest() for image in images)]}]
    }
    if generation_config:
        payload["generationConfig"] = generation_config
    return payload


def first_candidate_text(data: dict) -> str | None:
    """Extract the first candidate's first text part from a REST response.

    Raises:
        TransportError: If the API returned an error object.
        EmptyApiResponseError: If the response has no candidates.
    """
    if not isinstance(data, dict):
        raise TransportError(f"Unexpected API response type: {type(data).__name__}")

    error = data.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else error
        raise TransportError(f"API returned an error: {message}")

    candidates = data.get("candidates") or []
    if not candidates:
        logger.error(f"API response has no candidates: {json.dumps(data)[:500]}")
        raise EmptyApiResponseError("API response contained no candidates")

    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return None
    return parts[0].get("text")


# ---------------------------------------------------------------------------
# Strategies.
# ---------------------------------------------------------------------------


class GenerationStrategy(ABC):
    """One way of calling the generation API.

    Attributes:
        name: Registry key, also used in configuration and logs.
        supports_images: Whether the strategy can send inline images.
    """

    name: str = "base"
    supports_images: bool = False

    def __init__(
        self,
        config: NaturalPSConfig,
        transport: TransportAdapter,
        storage: TempStorage,
    ) -> None:
        self.config = config
        self.transport = transport
        self.storage = storage

    @abstractmethod
    def generate(self, prompt: str, images: Sequence[InlineImagePart] = ()) -> GenerationResult:
        """Generate content for *prompt* and optional *images*."""

    def generation_config(self) -> dict:
        return {
            "temperature": self.config.temperature,
            "topK": self.config.top_k,
            "topP": self.config.top_p,
            "maxOutputTokens": self.config.max_output_tokens,
        }

    def endpoint(self, model: str) -> str:
        return f"{self.config.api_base_url.rstrip('/')}/v1beta/models/{model}:generateContent"


class SdkStrategy(GenerationStrategy):
    """Primary strategy built on the official ``google-genai`` client.

    The SDK client is created lazily on first use so that the application can
    start without an API key.  A pre-built client may be injected for tests.
    """

    name = "sdk"
    supports_images = True

    def __init__(
        self,
        config: NaturalPSConfig,
        transport: TransportAdapter,
        storage: TempStorage,
        client: genai.Client | None = None,
    ) -> None:
        super().__init__(config, transport, storage)
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                api_key=self.config.google_api_key,
                http_options=self.transport.http_options(),
            )
        return self._client

    def generate(self, prompt: str, images: Sequence[InlineImagePart] = ()) -> GenerationResult:
        if images:
            logger.info(f"Generating from description and {len(images)} image(s)")
            contents: str | list = [
                prompt,
                *(
                    types.Part.from_bytes(data=image.raw_bytes(), mime_type=image.mime_type)
                    for image in images
                ),
            ]
        else:
            logger.info("Generating from description only")
            contents = prompt

        response = self.client.models.generate_content(
            model=self.config.primary_model,
            contents=contents,
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )

        if not response.candidates:
            raise EmptyApiResponseError("API response contained no candidates")

        result = GenerationResult(strategy=self.name)
        content = response.candidates[0].content
        parts = (content.parts if content else None) or []

        for part in parts:
            if part.text:
                logger.info("Received text response")
                result.text = part.text
            elif part.inline_data and part.inline_data.data:
                logger.info("Received image response")
                result.image_url = self._persist_image(
                    part.inline_data.data, part.inline_data.mime_type or "image/png"
                )

        return result

    def _persist_image(self, data: bytes | str, mime_type: str) -> str:
        """Decode a generated image, stage it in scratch and promote it."""
        if isinstance(data, str):
            data = base64.b64decode(data)

        scratch_path = self.storage.write_scratch(data, suffix=extension_for(mime_type) or ".png")
        try:
            return self.storage.promote_to_public(scratch_path, mime_type)
        finally:
            self.storage.discard(scratch_path)


class RestStrategy(GenerationStrategy):
    """Direct REST call through the shared :class:`TransportAdapter`."""

    name = "rest"

    def generate(self, prompt: str, images: Sequence[InlineImagePart] = ()) -> GenerationResult:
        logger.info(f"Calling {self.config.fallback_model} over REST")
        response = self.transport.post_json(
            self.endpoint(self.config.fallback_model),
            build_rest_payload(prompt, images, self.generation_config()),
            params={"key": self.config.google_api_key or ""},
        )
        if not response.ok:
            raise TransportError(f"API request failed with status {response.status}: {response.text()[:500]}")

        return GenerationResult(text=first_candidate_text(response.json()), strategy=self.name)


class CurlStrategy(GenerationStrategy):
    """Last-resort strategy that shells out to ``curl``.

    The request body is passed on stdin.  ``--insecure`` is only added when
    TLS verification is disabled in the configuration.  Never returns an
    image.
    """

    name = "curl"

    def build_command(self) -> list[str]:
        command = [
            self.config.curl_binary,
            "-sS",
            "-X",
            "POST",
            self.endpoint(self.config.fallback_model),
            "-H",
            "Content-Type: application/json",
            "-H",
            f"x-goog-api-key: {self.config.google_api_key or ''}",
            "--max-time",
            str(int(self.transport.timeout)),
            "--data-binary",
            "@-",
        ]
        if not self.transport.verify:
            command.insert(1, "--insecure")
        return command

    def generate(self, prompt: str, images: Sequence[InlineImagePart] = ()) -> GenerationResult:
        logger.info("Calling the generation API with curl")
        payload = build_rest_payload(prompt, images, self.generation_config())

        try:
            completed = subprocess.run(
                self.build_command(),
                input=json.dumps(payload),
                capture_output=True,
                text=True,
                timeout=self.transport.timeout + 5,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise TransportError(f"curl invocation failed: {e}") from e

        if completed.returncode != 0:
            raise TransportError(
                f"curl exited with status {completed.returncode}: {completed.stderr.strip()}"
            )
        if completed.stderr.strip():
            logger.warning(f"curl reported: {completed.stderr.strip()}")

        stdout = completed.stdout.strip()
        if not stdout:
            raise EmptyApiResponseError("API returned no data")

        try:
            data = json.loads(stdout)
        except ValueError as e:
            logger.error(f"Could not parse API response: {stdout[:500]}")
            raise TransportError(f"Could not parse API response: {e}") from e

        return GenerationResult(text=first_candidate_text(data), strategy=self.name)


# ---------------------------------------------------------------------------
# Registry.
# ---------------------------------------------------------------------------


class StrategyRegistry:
    """Registry of generation strategy classes keyed by name."""

    def __init__(self) -> None:
        self._strategies: dict[str, type[GenerationStrategy]] = {}

    def register(self, strategy_class: type[GenerationStrategy]) -> None:
        if strategy_class.name in self._strategies:
            logger.warning(f"Strategy '{strategy_class.name}' is already registered, overwriting")
        self._strategies[strategy_class.name] = strategy_class

    def instantiate(
        self,
        name: str,
        config: NaturalPSConfig,
        transport: TransportAdapter,
        storage: TempStorage,
    ) -> GenerationStrategy:
        """Create a strategy instance by name.

        Raises:
            KeyError: If *name* is not registered.
        """
        if name not in self._strategies:
            available = ", ".join(self.list_available())
            raise KeyError(f"Generation strategy '{name}' not found. Available strategies: {available}")
        return self._strategies[name](config, transport, storage)

    def list_available(self) -> list[str]:
        return list(self._strategies)


strategy_registry = StrategyRegistry()
strategy_registry.register(SdkStrategy)
strategy_registry.register(RestStrategy)
strategy_registry.register(CurlStrategy)


# ---------------------------------------------------------------------------
# Fallback chain.
# ---------------------------------------------------------------------------


class GenerationClient:
    """Runs generation strategies in order until one succeeds.

    Args:
        strategies: Ordered strategies; the first is the primary path.
        fallback_prompt_suffix: Appended to the prompt for fallback attempts.
    """

    def __init__(
        self,
        strategies: Sequence[GenerationStrategy],
        fallback_prompt_suffix: str = "",
    ) -> None:
        if not strategies:
            raise ValueError("GenerationClient needs at least one strategy")
        self.strategies = list(strategies)
        self.fallback_prompt_suffix = fallback_prompt_suffix

    @classmethod
    def from_config(
        cls,
        config: NaturalPSConfig,
        transport: TransportAdapter | None = None,
        storage: TempStorage | None = None,
    ) -> GenerationClient:
        """Build the chain named by ``config.fallback_strategies``."""
        transport = transport or TransportAdapter(config.request_timeout, config.verify_tls)
        storage = storage or TempStorage(config)
        strategies = [
            strategy_registry.instantiate(name, config, transport, storage)
            for name in config.fallback_strategies
        ]
        return cls(strategies, fallback_prompt_suffix=config.fallback_prompt_suffix)

    def generate(
        self, prompt: str, images: Sequence[InlineImagePart] = ()
    ) -> GenerationResult:
        """Generate content, falling back through the chain on failure.

        Args:
            prompt: Text prompt.
            images: Inline images for the primary strategy.  Fallbacks never
                receive them.

        Returns:
            The first successful strategy's result.

        Raises:
            StorageError: If a generated image could not be persisted.
            GenerationFailedError: If every strategy failed.
        """
        primary, *fallbacks = self.strategies
        attempts: list[tuple[str, BaseException]] = []

        try:
            return self._attempt(primary, prompt, list(images))
        except StorageError:
            raise
        except Exception as e:
            logger.warning(f"Primary strategy '{primary.name}' failed, trying fallbacks: {e}")
            attempts.append((primary.name, e))

        fallback_prompt = prompt + self.fallback_prompt_suffix
        for strategy in fallbacks:
            try:
                return self._attempt(strategy, fallback_prompt, [])
            except StorageError:
                raise
            except Exception as e:
                logger.warning(f"Fallback strategy '{strategy.name}' failed: {e}")
                attempts.append((strategy.name, e))

        summary = "; ".join(f"{name}: {_describe(error)}" for name, error in attempts)
        logger.error(f"All generation strategies failed: {summary}")
        raise GenerationFailedError(summary, attempts) from attempts[-1][1]

    def _attempt(
        self, strategy: GenerationStrategy, prompt: str, images: list[InlineImagePart]
    ) -> GenerationResult:
        logger.info(f"Trying generation strategy '{strategy.name}'")
        result = strategy.generate(prompt, images)
        result.strategy = result.strategy or strategy.name
        return result


def _describe(error: BaseException) -> str:
    if isinstance(error, NaturalPSError):
        return str(error) or error.message
    return f"{type(error).__name__}: {error}"
