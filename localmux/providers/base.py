from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional

from ..types import (
    ChatCompletion, EmbeddingResult, Message, Provider, StreamChunk, Tool,
    VisionEmbeddingResult
)


class BaseLLMProvider(ABC):
    """
    Abstract base class for local inference backends.

    The gateway depends only on this interface and picks one implementation
    per request from its provider table.
    """

    name: Provider
    supports_streaming: bool = False

    @abstractmethod
    async def chat(
        self,
        model: str,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
    ) -> ChatCompletion:
        """
        Run one chat request and return the complete response.

        Args:
            model (str): The model identifier.
            messages (List[Message]): Normalized conversation messages.
            tools (List[Tool], optional): Tool definitions passed through as-is.

        Raises:
            ConfigurationError: If the backend address is not configured.
            TransportError: If the backend call fails.
        """

    async def stream(
        self,
        model: str,
        messages: List[Message],
        tools: Optional[List[Tool]] = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a chat response as ordered chunks.

        Only called when `supports_streaming` is True.
        """
        raise NotImplementedError(f"{self.name} does not support streaming")
        yield  # pragma: no cover

    @abstractmethod
    async def embed(self, model: str, input: str) -> EmbeddingResult:
        """Generate a text embedding."""

    @abstractmethod
    async def embed_vision(
        self,
        model: str,
        images: List[str],
        prompt: Optional[str] = None,
        *,
        mime_type: Optional[str] = None,
    ) -> VisionEmbeddingResult:
        """Generate an embedding for one or more images."""

    @abstractmethod
    async def get_models(self) -> List[str]:
        """List model identifiers available on the backend."""
