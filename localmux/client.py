import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from .config import Settings, load_settings
from .errors import TransportError
from .parsing import parse_llm_response
from .providers.base import BaseLLMProvider
from .providers.lmstudio import LMStudioProvider
from .providers.ollama import OllamaProvider
from .streaming import StreamAggregator, aggregate_stream
from .types import (
    EmbeddingResult, GenerationResult, Message, Provider, ThinkingConfig, Tool,
    ToolCall, VisionEmbeddingResult
)
from .utils import (
    create_message, create_image_content, create_tool, create_tool_result,
    create_assistant_message_with_tool_calls, normalize_messages
)

log = logging.getLogger(__name__)

# Reply text of a degraded result from chat_with_tools
FAILURE_SENTINEL = "failure"


class LocalInferenceClient:
    """
    Unified client for locally hosted LLM backends.

    Routes each request to LM Studio (raw HTTP) or Ollama (native client),
    normalizes the input, aggregates streamed output, and returns the same
    result shape for both.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        providers: Optional[Dict[str, BaseLLMProvider]] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Resolved configuration. Loaded from the environment when omitted.
            providers: Provider table override, keyed by provider name. When
                omitted, both backends are built once from `settings`.
        """
        self.settings = settings or load_settings()

        if providers is None:
            providers = {
                "lmstudio": LMStudioProvider(
                    self.settings.lmstudio_host,
                    timeout=self.settings.request_timeout,
                ),
                "ollama": OllamaProvider(
                    self.settings.ollama_host,
                    timeout=self.settings.request_timeout,
                    vision_text_embedding_model=self.settings.vision_text_embedding_model,
                ),
            }
        self.providers: Dict[str, BaseLLMProvider] = providers

    # ==========================================================================
    # Message / Tool Helpers - Re-exported from utils
    # ==========================================================================

    create_message = staticmethod(create_message)
    create_image_content = staticmethod(create_image_content)
    create_tool = staticmethod(create_tool)
    create_tool_result = staticmethod(create_tool_result)
    create_assistant_message_with_tool_calls = staticmethod(create_assistant_message_with_tool_calls)

    # ==========================================================================
    # Generation
    # ==========================================================================

    def _get_provider(self, provider: str) -> BaseLLMProvider:
        if provider not in self.providers:
            raise ValueError(f"Provider '{provider}' not configured or not supported.")
        return self.providers[provider]

    async def list_models(self, provider: Provider) -> List[str]:
        return await self._get_provider(provider).get_models()

    async def generate(
        self,
        provider: Provider,
        model: str,
        prompt: Optional[str] = None,
        messages: Optional[List[Message]] = None,
        *,
        thinking: Optional[ThinkingConfig] = None,
        tools: Optional[List[Tool]] = None,
        stream: bool = False,
    ) -> GenerationResult:
        """
        Generate a reply from `model` on the selected backend.

        The prompt or chat history is normalized into messages, sent to the
        provider (streamed and aggregated when the provider supports it),
        then post-processed to split out any reasoning trace.

        Args:
            provider (str): 'lmstudio' or 'ollama'.
            model (str): Model identifier or tag.
            prompt (str, optional): Single-shot prompt.
            messages (List[Message], optional): Chat history; takes precedence over `prompt`.
            thinking (ThinkingConfig, optional): Reasoning-model hints.
            tools (List[Tool], optional): Tool definitions passed to the model.
            stream (bool): Stream from the provider. LM Studio ignores this and
                answers synchronously; `meta.streamed` reports what happened.

        Returns:
            GenerationResult: Canonical result with `reply`, `thoughts` and tool calls.

        Raises:
            InvalidRequestError: If neither prompt nor messages is given.
            ConfigurationError: If the provider's host is not configured.
            TransportError: If the provider call fails.
            ValueError: If the provider is unknown.
        """
        chat_messages = normalize_messages(prompt, messages)
        backend = self._get_provider(provider)

        start = time.perf_counter()
        if stream and backend.supports_streaming:
            aggregated = await aggregate_stream(backend.stream(model, chat_messages, tools))
            text = aggregated["text"]
            tool_calls = aggregated["tool_calls"]
            raw = aggregated["last_chunk"]
            chunk_count = aggregated["chunk_count"]
        else:
            completion = await backend.chat(model, chat_messages, tools)
            text = completion["text"]
            tool_calls = completion["tool_calls"]
            raw = completion["raw"]
            chunk_count = 0
        latency_ms = (time.perf_counter() - start) * 1000.0

        return self._build_result(
            provider, model, text, tool_calls, raw,
            thinking=thinking,
            streamed=stream and backend.supports_streaming,
            chunk_count=chunk_count,
            latency_ms=latency_ms,
        )

    async def generate_text(
        self,
        provider: Provider,
        model: str,
        prompt_or_messages: Union[str, List[Message]],
        thinking: Optional[ThinkingConfig] = None,
        stream: bool = False,
    ) -> GenerationResult:
        """Shorthand for `generate` taking either a prompt string or a message list."""
        if isinstance(prompt_or_messages, str):
            return await self.generate(provider, model, prompt=prompt_or_messages, thinking=thinking, stream=stream)
        return await self.generate(provider, model, messages=prompt_or_messages, thinking=thinking, stream=stream)

    async def chat_with_tools(
        self,
        provider: Provider,
        model: str,
        messages: Optional[List[Message]] = None,
        tools: Optional[List[Tool]] = None,
        *,
        prompt: Optional[str] = None,
        thinking: Optional[ThinkingConfig] = None,
        stream: bool = False,
    ) -> GenerationResult:
        """
        Tool-augmented generation that does not raise on transport failures.

        Requests that cannot reach the model (connection errors, non-2xx
        responses, provider error objects) are logged and returned as a
        result with `status == "failed"`, an `error` description and
        `reply == FAILURE_SENTINEL`. Branch on `status`, not on the reply.

        Invalid requests and missing configuration still raise.
        """
        try:
            return await self.generate(
                provider, model, prompt, messages,
                thinking=thinking, tools=tools or [], stream=stream,
            )
        except TransportError as exc:
            log.error("Tool-augmented generation via %s failed: %s", provider, exc)
            return self._failed_result(provider, model, exc)

    async def astream(
        self,
        provider: Provider,
        model: str,
        prompt: Optional[str] = None,
        messages: Optional[List[Message]] = None,
        *,
        thinking: Optional[ThinkingConfig] = None,
        tools: Optional[List[Tool]] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Stream a reply as events.

        Yields:
            Dict[str, Any]: Events in order:
                - {'type': 'token', 'provider': ..., 'text': ..., 'tool_calls': [...]}
                - {'type': 'done', 'provider': ..., 'text': ..., 'result': GenerationResult, 'meta': {...}}
            Providers without streaming yield a single token event with the full text.
        """
        chat_messages = normalize_messages(prompt, messages)
        backend = self._get_provider(provider)

        start = time.perf_counter()
        aggregator = StreamAggregator()
        if backend.supports_streaming:
            async for chunk in backend.stream(model, chat_messages, tools):
                aggregator.feed(chunk)
                yield {
                    "type": "token",
                    "provider": provider,
                    "text": chunk["text"],
                    "tool_calls": chunk["tool_calls"],
                }
        else:
            completion = await backend.chat(model, chat_messages, tools)
            aggregator.feed({
                "text": completion["text"],
                "tool_calls": completion["tool_calls"],
                "raw": completion["raw"],
            })
            yield {
                "type": "token",
                "provider": provider,
                "text": completion["text"],
                "tool_calls": completion["tool_calls"],
            }
        latency_ms = (time.perf_counter() - start) * 1000.0

        aggregated = aggregator.result()
        result = self._build_result(
            provider, model, aggregated["text"], aggregated["tool_calls"], aggregated["last_chunk"],
            thinking=thinking,
            streamed=backend.supports_streaming,
            chunk_count=aggregated["chunk_count"] if backend.supports_streaming else 0,
            latency_ms=latency_ms,
        )
        yield {
            "type": "done",
            "provider": provider,
            "text": result["reply"],
            "result": result,
            "meta": {"model": model, **result["meta"]},
        }

    # ==========================================================================
    # Embeddings
    # ==========================================================================

    async def embed(self, provider: Provider, model: str, input: str) -> EmbeddingResult:
        """
        Generate a text embedding. Provider errors propagate to the caller.
        """
        return await self._get_provider(provider).embed(model, input)

    async def embed_vision(
        self,
        provider: Provider,
        model: str,
        images: List[str],
        prompt: Optional[str] = None,
        *,
        mime_type: Optional[str] = None,
    ) -> VisionEmbeddingResult:
        """
        Generate an embedding for one or more images.

        LM Studio embeds the images directly. Ollama captions them with the
        vision model `model` and embeds the caption text with the configured
        text embedding model; see `OllamaProvider.embed_vision`.

        Args:
            images (List[str]): File paths, URLs, data URIs or raw base64 (with `mime_type`).
            prompt (str, optional): Extra context; also the fallback caption text.
        """
        if not images:
            raise ValueError("At least one image must be provided")
        return await self._get_provider(provider).embed_vision(
            model, images, prompt, mime_type=mime_type
        )

    # ==========================================================================
    # Result construction
    # ==========================================================================

    @staticmethod
    def _build_result(
        provider: Provider,
        model: str,
        text: str,
        tool_calls: List[ToolCall],
        raw: Any,
        *,
        thinking: Optional[ThinkingConfig],
        streamed: bool,
        chunk_count: int,
        latency_ms: float,
    ) -> GenerationResult:
        thoughts, reply = parse_llm_response(text, thinking)
        return {
            "status": "ok",
            "provider": provider,
            "model": model,
            "raw": raw,
            "text": text,
            "message": {"role": "assistant", "content": reply, "tool_calls": tool_calls},
            "thoughts": thoughts,
            "reply": reply,
            "error": None,
            "meta": {"streamed": streamed, "chunk_count": chunk_count, "latency_ms": latency_ms},
        }

    @staticmethod
    def _failed_result(provider: Provider, model: str, exc: TransportError) -> GenerationResult:
        return {
            "status": "failed",
            "provider": provider,
            "model": model,
            "raw": exc.body,
            "text": "",
            "message": {"role": "assistant", "content": FAILURE_SENTINEL, "tool_calls": []},
            "thoughts": None,
            "reply": FAILURE_SENTINEL,
            "error": {
                "type": type(exc).__name__,
                "message": str(exc),
                "status_code": exc.status_code,
            },
            "meta": {"streamed": False, "chunk_count": 0, "latency_ms": 0.0},
        }
