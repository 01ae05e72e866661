"""Inference client for LLM operations.

Talks to OpenAI-compatible ``/v1/chat/completions`` endpoints (OpenAI,
Groq, or a self-hosted server) and exposes them through the
``GenerativeBackend`` contract used by the opportunity scorer. Several
backends can be chained so that an outage of the primary falls through
to the next one.

Usage:
    backend = get_generative_backend()
    text = await backend.complete(
        system_prompt="You are helpful.",
        user_prompt="Hello!",
        max_tokens=200,
        json_mode=False,
    )

    config = InferenceConfig(base_url="https://api.openai.com", api_key="sk-...")
    client = InferenceClient(config=config)
    response = await client.chat([ChatMessage(role="user", content="Hi")])
    print(response.model_info.to_dict())
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

import httpx

from redlead_core.config import Settings

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class InferenceError(Exception):
    """Base exception for inference errors."""

    pass


class ConnectionInferenceError(InferenceError):
    """Connection error during inference."""

    pass


class TimeoutInferenceError(InferenceError):
    """Timeout during inference."""

    pass


class ResponseInferenceError(InferenceError):
    """Invalid or malformed response from inference server."""

    pass


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class InferenceConfig:
    """Configuration for the inference client.

    Attributes:
        base_url: URL of the inference server (e.g., https://api.openai.com)
        model_name: Name of the model to use
        provider: Provider label recorded in ModelInfo
        timeout: Request timeout in seconds
        max_tokens: Maximum tokens to generate
        temperature: Sampling temperature (0.0 = deterministic, 1.0 = creative)
        api_key: Optional API key for authentication
    """

    base_url: str
    model_name: str = "default"
    provider: str = "openai"
    timeout: float = 30.0
    max_tokens: int = 1000
    temperature: float = 0.7
    api_key: Optional[str] = None


@dataclass
class ChatMessage:
    """A message in a chat conversation."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class ModelInfo:
    """Information about the model and inference run."""

    model_name: str
    provider: str
    temperature: float
    max_tokens: int
    input_tokens: int
    output_tokens: int
    latency_ms: int
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "model_name": self.model_name,
            "provider": self.provider,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "latency_ms": self.latency_ms,
            **self.extra,
        }


@dataclass
class ChatResponse:
    """Response from a chat request.

    Attributes:
        content: The generated text content
        model_info: Information about the model and run
        finish_reason: Why generation stopped (stop, length, etc.)
    """

    content: str
    model_info: ModelInfo
    finish_reason: str


# =============================================================================
# INFERENCE CLIENT
# =============================================================================


class InferenceClient:
    """Client for OpenAI-style chat completion APIs."""

    def __init__(
        self,
        config: InferenceConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the inference client.

        Args:
            config: Inference configuration.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.config = config
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            headers = {}
            if self.config.api_key:
                headers["Authorization"] = f"Bearer {self.config.api_key}"
            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _make_request(self, payload: dict) -> dict:
        """Make a chat completion request to the server.

        Raises:
            InferenceError: On connection, timeout, or response errors
        """
        client = await self._get_http_client()

        logger.debug(
            f"LLM request to {self.config.base_url}: model={payload['model']}, "
            f"max_tokens={payload['max_tokens']}, messages={len(payload['messages'])}"
        )

        try:
            response = await client.post("/v1/chat/completions", json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.ConnectError as e:
            raise ConnectionInferenceError(f"Connection error: {e}") from e
        except httpx.TimeoutException as e:
            raise TimeoutInferenceError(f"Timeout error: {e}") from e
        except httpx.HTTPStatusError as e:
            raise InferenceError(f"HTTP error: {e}") from e
        except httpx.HTTPError as e:
            raise ConnectionInferenceError(f"Transport error: {e}") from e
        except ValueError as e:
            raise ResponseInferenceError(f"Response is not JSON: {e}") from e

    async def chat(
        self,
        messages: list[ChatMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> ChatResponse:
        """Send a chat request to the LLM.

        Args:
            messages: List of ChatMessage objects
            temperature: Override default temperature
            max_tokens: Override default max_tokens
            json_mode: Ask the server for a strict JSON object response

        Returns:
            ChatResponse with content and model info

        Raises:
            InferenceError: On errors during inference
        """
        temp = temperature if temperature is not None else self.config.temperature
        tokens = max_tokens if max_tokens is not None else self.config.max_tokens

        payload = {
            "model": self.config.model_name,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temp,
            "max_tokens": tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        start_time = time.monotonic()

        try:
            response_data = await self._make_request(payload)
        except asyncio.TimeoutError as e:
            raise TimeoutInferenceError(f"Timeout error: {e}") from e

        elapsed_ms = int((time.monotonic() - start_time) * 1000)

        if not isinstance(response_data, dict):
            raise ResponseInferenceError("Invalid response: not an object")

        if "error" in response_data:
            error_info = response_data["error"]
            if isinstance(error_info, dict):
                error_msg = error_info.get("message", str(error_info))
            else:
                error_msg = str(error_info)
            logger.error(f"LLM server returned error: {error_msg}")
            raise ResponseInferenceError(f"LLM server error: {error_msg}")

        try:
            choices = response_data.get("choices", [])
            if not choices:
                raise ResponseInferenceError("Invalid response: no choices")

            choice = choices[0]
            message = choice.get("message") or {}
            content = message.get("content") or ""
            finish_reason = choice.get("finish_reason", "unknown")

            usage = response_data.get("usage") or {}
            input_tokens = usage.get("prompt_tokens", 0)
            output_tokens = usage.get("completion_tokens", 0)

        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ResponseInferenceError(f"Invalid response format: {e}") from e

        model_info = ModelInfo(
            model_name=self.config.model_name,
            provider=self.config.provider,
            temperature=temp,
            max_tokens=tokens,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=elapsed_ms,
        )

        return ChatResponse(
            content=content,
            model_info=model_info,
            finish_reason=finish_reason,
        )


# =============================================================================
# GENERATIVE BACKENDS
# =============================================================================


class GenerativeBackend(ABC):
    """Single-shot text generation."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> Optional[str]:
        """Generate a completion.

        Returns:
            Generated text, or None when no backend produced one

        Raises:
            InferenceError: Single backends raise on failure
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None


class InferenceBackend(GenerativeBackend):
    """GenerativeBackend over one InferenceClient."""

    def __init__(self, client: InferenceClient, temperature: Optional[float] = None):
        self.client = client
        self.temperature = temperature

    @property
    def name(self) -> str:
        return f"{self.client.config.provider}:{self.client.config.model_name}"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> Optional[str]:
        response = await self.client.chat(
            [
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=user_prompt),
            ],
            temperature=self.temperature,
            max_tokens=max_tokens,
            json_mode=json_mode,
        )
        logger.debug(f"{self.name} completed: {response.model_info.to_dict()}")
        return response.content or None

    async def close(self) -> None:
        await self.client.close()


class FallbackGenerativeBackend(GenerativeBackend):
    """Tries backends in order; returns None if all fail."""

    def __init__(self, backends: Sequence[GenerativeBackend]):
        self.backends = list(backends)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> Optional[str]:
        for index, backend in enumerate(self.backends):
            label = getattr(backend, "name", f"backend[{index}]")
            try:
                text = await backend.complete(
                    system_prompt,
                    user_prompt,
                    max_tokens=max_tokens,
                    json_mode=json_mode,
                )
            except InferenceError as e:
                logger.warning(f"{label} failed, trying next backend: {e}")
                continue
            if text:
                return text
            logger.warning(f"{label} returned an empty completion")

        if not self.backends:
            logger.error("No generative backend configured")
        else:
            logger.error("All generative backends failed")
        return None

    async def close(self) -> None:
        for backend in self.backends:
            await backend.close()


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def get_inference_client(settings: Optional[Settings] = None) -> InferenceClient:
    """Create the primary InferenceClient from settings.

    Raises:
        RuntimeError: If inference_url is not configured.
    """
    from redlead_core.config import get_settings

    settings = settings or get_settings()

    if not settings.inference_url:
        raise RuntimeError("INFERENCE_URL not configured")

    config = InferenceConfig(
        base_url=settings.inference_url,
        model_name=settings.inference_model or "default",
        provider="openai",
        timeout=settings.inference_timeout,
        api_key=settings.inference_api_key,
    )
    return InferenceClient(config=config)


def get_generative_backend(settings: Optional[Settings] = None) -> GenerativeBackend:
    """Create the scorer's backend chain from settings.

    The primary endpoint is used when INFERENCE_URL is set. The Groq
    fallback joins the chain when FALLBACK_INFERENCE_API_KEY is set.
    """
    from redlead_core.config import get_settings

    settings = settings or get_settings()
    backends: list[GenerativeBackend] = []

    if settings.inference_url:
        backends.append(InferenceBackend(get_inference_client(settings)))

    if settings.fallback_inference_url and settings.fallback_inference_api_key:
        config = InferenceConfig(
            base_url=settings.fallback_inference_url,
            model_name=settings.fallback_inference_model or "default",
            provider="groq",
            timeout=settings.inference_timeout,
            api_key=settings.fallback_inference_api_key,
        )
        backends.append(InferenceBackend(InferenceClient(config=config)))

    if not backends:
        logger.warning("No inference endpoint configured; scores will be degraded")

    return FallbackGenerativeBackend(backends)


# =============================================================================
# EXPORTS
# =============================================================================


__all__ = [
    "InferenceClient",
    "InferenceConfig",
    "ChatMessage",
    "ChatResponse",
    "ModelInfo",
    "InferenceError",
    "ConnectionInferenceError",
    "TimeoutInferenceError",
    "ResponseInferenceError",
    "GenerativeBackend",
    "InferenceBackend",
    "FallbackGenerativeBackend",
    "get_inference_client",
    "get_generative_backend",
]
