import json
import logging
from collections.abc import Mapping
from typing import Any, AsyncIterator, List, Optional

import httpx
from ollama import AsyncClient, RequestError, ResponseError

from .base import BaseLLMProvider
from ..config import DEFAULT_OLLAMA_HOST, DEFAULT_VISION_EMBEDDING_MODEL
from ..errors import TransportError
from ..parsing import derive_canonical_text, parse_json_object
from ..types import (
    ChatCompletion, EmbeddingResult, Message, StreamChunk, Tool, ToolCall,
    VisionEmbeddingResult
)
from ..utils import resolve_image_to_base64

log = logging.getLogger(__name__)

# Failures surfaced by the ollama client for an unreachable or erroring daemon
_CLIENT_ERRORS = (ResponseError, RequestError, ConnectionError, httpx.HTTPError)

CAPTION_INSTRUCTION = (
    "Describe the image(s) for search indexing. Respond with ONLY a JSON object, "
    "no prose and no code fences, of the form "
    '{"canonical_text": "<one short sentence naming the main subject>", '
    '"tags": ["<tag>", "..."]}.'
)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    # ollama responses are pydantic models; plain dicts are accepted as well
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _to_ollama_tool_call(call: Any) -> Any:
    if "function" in call:
        return call
    return {"function": {"name": call["name"], "arguments": dict(call.get("arguments") or {})}}


def _to_ollama_messages(messages: List[Message]) -> List[Message]:
    """Rewrite gateway tool calls in the history to Ollama's {function: {...}} shape."""
    converted: List[Message] = []
    for message in messages:
        if message.get("tool_calls"):
            message = {**message, "tool_calls": [_to_ollama_tool_call(c) for c in message["tool_calls"]]}
        converted.append(message)
    return converted


class OllamaProvider(BaseLLMProvider):
    """
    Provider for a local Ollama daemon via the native `ollama` client.

    One AsyncClient is built at construction and reused for every call; it
    keeps no per-call state. Supports streaming for both chat and the legacy
    single-prompt `generate` endpoint.
    """

    name = "ollama"
    supports_streaming = True

    def __init__(
        self,
        host: str = DEFAULT_OLLAMA_HOST,
        *,
        timeout: float = 60.0,
        vision_text_embedding_model: str = DEFAULT_VISION_EMBEDDING_MODEL,
        client: Optional[AsyncClient] = None,
    ):
        self.host = host
        self.vision_text_embedding_model = vision_text_embedding_model
        self.client = client or AsyncClient(host=host, timeout=timeout)

    # ==========================================================================
    # Chat mode
    # ==========================================================================

    async def chat(
        self,
        model: str,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
    ) -> ChatCompletion:
        try:
            res = await self.client.chat(
                model=model, messages=_to_ollama_messages(messages), tools=tools or None, stream=False
            )
        except _CLIENT_ERRORS as exc:
            raise self._transport_error("chat", exc) from exc

        message = _field(res, "message")
        return {
            "provider": self.name,
            "model": model,
            "text": _field(message, "content") or "",
            "tool_calls": self._parse_tool_calls(_field(message, "tool_calls")),
            "raw": res,
        }

    async def stream(
        self,
        model: str,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Yield chat chunks in the order the daemon sends them.

        Each chunk carries the incremental text and any tool-call fragments
        attached to that part.
        """
        try:
            iterator = await self.client.chat(
                model=model, messages=_to_ollama_messages(messages), tools=tools or None, stream=True
            )
            async for part in iterator:
                message = _field(part, "message")
                yield {
                    "text": _field(message, "content") or "",
                    "tool_calls": self._parse_tool_calls(_field(message, "tool_calls")),
                    "raw": part,
                }
        except _CLIENT_ERRORS as exc:
            raise self._transport_error("chat stream", exc) from exc

    # ==========================================================================
    # Legacy single-prompt mode
    # ==========================================================================

    async def complete(
        self,
        model: str,
        prompt: str,
        *,
        images: Optional[List[str]] = None,
    ) -> ChatCompletion:
        """
        Run the single-prompt `generate` endpoint without streaming.

        Args:
            images (List[str], optional): Base64-encoded images for vision models.
        """
        try:
            res = await self.client.generate(
                model=model, prompt=prompt, images=images or None, stream=False
            )
        except _CLIENT_ERRORS as exc:
            raise self._transport_error("generate", exc) from exc

        return {
            "provider": self.name,
            "model": model,
            "text": _field(res, "response") or "",
            "tool_calls": [],
            "raw": res,
        }

    async def stream_completion(self, model: str, prompt: str) -> AsyncIterator[StreamChunk]:
        try:
            iterator = await self.client.generate(model=model, prompt=prompt, stream=True)
            async for part in iterator:
                yield {"text": _field(part, "response") or "", "tool_calls": [], "raw": part}
        except _CLIENT_ERRORS as exc:
            raise self._transport_error("generate stream", exc) from exc

    # ==========================================================================
    # Embeddings
    # ==========================================================================

    async def embed(self, model: str, input: str) -> EmbeddingResult:
        try:
            res = await self.client.embeddings(model=model, prompt=input)
        except _CLIENT_ERRORS as exc:
            log.error("Ollama embeddings failed for model %s: %s", model, exc)
            raise self._transport_error("embeddings", exc) from exc

        return {
            "provider": self.name,
            "model": model,
            "embedding": list(_field(res, "embedding") or []),
            "raw": res,
        }

    async def embed_vision(
        self,
        model: str,
        images: List[str],
        prompt: Optional[str] = None,
        *,
        mime_type: Optional[str] = None,
    ) -> VisionEmbeddingResult:
        """
        Embed images through a caption, since Ollama has no multimodal embedding call.

        1. Ask the vision model `model` for a JSON caption of the images.
        2. Recover the JSON best-effort (strict, then braced substring).
        3. Derive the canonical text (caption, else prompt, else placeholder).
        4. Embed that text with the fixed text embedding model.

        Malformed caption output never fails the call; transport failures do.
        """
        encoded = [
            (await resolve_image_to_base64(source, mime_type=mime_type))[0]
            for source in images
        ]

        instruction = CAPTION_INSTRUCTION
        if prompt:
            instruction = f"{CAPTION_INSTRUCTION}\nContext from the user: {prompt}"

        caption = await self.complete(model, instruction, images=encoded)
        parsed = parse_json_object(caption["text"])
        if parsed["strategy"] != "strict":
            log.info("Caption JSON recovered with %s strategy", parsed["strategy"])

        canonical_text = derive_canonical_text(parsed, prompt)
        embedding = await self.embed(self.vision_text_embedding_model, canonical_text)

        return {
            "provider": self.name,
            "model": model,
            "embedding": embedding["embedding"],
            "raw": {"caption": caption["raw"], "embedding": embedding["raw"]},
            "image_count": len(images),
            "processed_images": len(encoded),
            "caption": parsed["data"],
            "caption_strategy": parsed["strategy"],
            "text_used_for_embedding": canonical_text,
        }

    async def get_models(self) -> List[str]:
        try:
            res = await self.client.list()
        except _CLIENT_ERRORS as exc:
            raise self._transport_error("list", exc) from exc
        return [_field(m, "model") or _field(m, "name", "") for m in _field(res, "models", [])]

    # ==========================================================================
    # Helpers
    # ==========================================================================

    def _transport_error(self, operation: str, exc: Exception) -> TransportError:
        return TransportError(
            f"Ollama {operation} failed: {exc}",
            provider=self.name,
            status_code=getattr(exc, "status_code", None),
            body=getattr(exc, "error", None),
        )

    @staticmethod
    def _parse_tool_calls(raw_calls: Any) -> List[ToolCall]:
        """
        Convert Ollama tool calls ({function: {name, arguments}}) to ToolCall dicts.

        Arguments usually arrive as a mapping; a JSON string is decoded and
        anything undecodable is kept under "_raw".
        """
        tool_calls: List[ToolCall] = []
        for tc in raw_calls or []:
            function = _field(tc, "function")
            arguments = _field(function, "arguments")
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments) if arguments else {}
                except json.JSONDecodeError:
                    arguments = {"_raw": arguments}
            tool_calls.append({
                "name": _field(function, "name", ""),
                "arguments": dict(arguments or {}),
            })
        return tool_calls
