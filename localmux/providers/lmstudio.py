import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import BaseLLMProvider
from ..errors import ConfigurationError, TransportError
from ..types import ChatCompletion, EmbeddingResult, Message, Tool, ToolCall, VisionEmbeddingResult
from ..utils import create_text_content, to_data_uri

log = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
EMBEDDINGS_PATH = "/v1/embeddings"
MODELS_PATH = "/v1/models"


class LMStudioProvider(BaseLLMProvider):
    """
    Provider for LM Studio's OpenAI-compatible HTTP server.

    Talks raw HTTP (no SDK) and never streams. Unlike Ollama there is no
    default address: an unconfigured host is a configuration error.
    """

    name = "lmstudio"
    supports_streaming = False

    def __init__(
        self,
        host: Optional[str],
        *,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.host = host.rstrip("/") if host else None
        self.timeout = timeout
        # An injected client is reused and never closed here.
        self._http_client = http_client

    async def chat(
        self,
        model: str,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
    ) -> ChatCompletion:
        """
        POST the conversation to /v1/chat/completions.

        Reads the first choice's message content and tool calls. Tool call
        arguments arrive as JSON strings and are decoded; undecodable
        arguments are kept under "_raw".
        """
        payload: Dict[str, Any] = {"model": model, "messages": self._to_openai_messages(messages)}
        if tools:
            payload["tools"] = tools

        data = await self._request("POST", CHAT_COMPLETIONS_PATH, payload)

        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        return {
            "provider": self.name,
            "model": model,
            "text": message.get("content") or "",
            "tool_calls": self._parse_tool_calls(message),
            "raw": data,
        }

    async def embed(self, model: str, input: str) -> EmbeddingResult:
        data = await self._request("POST", EMBEDDINGS_PATH, {"model": model, "input": input})
        return {
            "provider": self.name,
            "model": model,
            "embedding": self._first_embedding(data),
            "raw": data,
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
        Embed images directly with a multimodal embedding model.

        The images are inlined as data URIs in a single chat-style user
        message, preceded by the prompt when one is given.
        """
        content: List[Dict[str, Any]] = []
        if prompt:
            content.append(create_text_content(prompt))
        for source in images:
            content.append({
                "type": "image_url",
                "image_url": {"url": await to_data_uri(source, mime_type=mime_type)},
            })

        payload = {
            "model": model,
            "input": [{"role": "user", "content": content}],
        }
        data = await self._request("POST", EMBEDDINGS_PATH, payload)

        return {
            "provider": self.name,
            "model": model,
            "embedding": self._first_embedding(data),
            "raw": data,
            "image_count": len(images),
            "processed_images": len(content) - (1 if prompt else 0),
            "caption": None,
            "caption_strategy": None,
            "text_used_for_embedding": prompt,
        }

    async def get_models(self) -> List[str]:
        data = await self._request("GET", MODELS_PATH)
        return [m.get("id", "") for m in data.get("data", [])]

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request and return the decoded JSON body.

        Raises:
            ConfigurationError: Before any I/O, if no host is configured.
            TransportError: On connection failure, non-2xx status, or an
                "error" object in the response body.
        """
        if not self.host:
            raise ConfigurationError("LM Studio host not configured")

        url = self.host + path
        log.debug("LM Studio %s %s", method, url)
        try:
            if self._http_client is not None:
                resp = await self._http_client.request(method, url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.request(method, url, json=payload)
        except httpx.RequestError as exc:
            raise TransportError(
                f"LM Studio request failed: {exc}", provider=self.name
            ) from exc

        body = self._decode_body(resp)

        if not resp.is_success:
            detail = self._error_detail(body) or resp.reason_phrase
            raise TransportError(
                f"LM Studio error: {detail}",
                provider=self.name,
                status_code=resp.status_code,
                body=body,
            )

        if not isinstance(body, dict):
            raise TransportError(
                "LM Studio returned a non-JSON response",
                provider=self.name,
                status_code=resp.status_code,
                body=body,
            )

        if body.get("error"):
            raise TransportError(
                f"LM Studio error: {self._error_detail(body)}",
                provider=self.name,
                status_code=resp.status_code,
                body=body,
            )

        return body

    @staticmethod
    def _to_openai_messages(messages: List[Message]) -> List[Message]:
        """Rewrite gateway tool calls in the history to the OpenAI wire shape."""
        converted: List[Message] = []
        for message in messages:
            if message.get("tool_calls"):
                calls = []
                for index, call in enumerate(message["tool_calls"]):
                    if "function" in call:
                        calls.append(call)
                        continue
                    arguments = call.get("arguments") or {}
                    calls.append({
                        "id": call.get("id") or f"call_{index}",
                        "type": "function",
                        "function": {
                            "name": call["name"],
                            "arguments": arguments if isinstance(arguments, str) else json.dumps(arguments),
                        },
                    })
                message = {**message, "tool_calls": calls}
            converted.append(message)
        return converted

    @staticmethod
    def _decode_body(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return resp.text

    @staticmethod
    def _error_detail(body: Any) -> Optional[str]:
        if not isinstance(body, dict):
            return body or None
        error = body.get("error")
        # LM Studio reports either a bare string or an OpenAI-style object
        if isinstance(error, dict):
            return error.get("message") or json.dumps(error)
        return error

    @staticmethod
    def _first_embedding(data: Dict[str, Any]) -> List[float]:
        items = data.get("data") or [{}]
        return items[0].get("embedding") or []

    @staticmethod
    def _parse_tool_calls(message: Dict[str, Any]) -> List[ToolCall]:
        tool_calls: List[ToolCall] = []
        for tc in message.get("tool_calls") or []:
            function = tc.get("function") or {}
            arguments = function.get("arguments")
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments) if arguments else {}
                except json.JSONDecodeError:
                    arguments = {"_raw": arguments}
            call: ToolCall = {
                "name": function.get("name", ""),
                "arguments": arguments or {},
            }
            if tc.get("id"):
                call["id"] = tc["id"]
            tool_calls.append(call)
        return tool_calls
