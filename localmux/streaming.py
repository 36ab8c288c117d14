"""Fold streamed chunks into one final text and tool-call list."""

from typing import Any, AsyncIterator, List, Optional, TypedDict

from .types import StreamChunk, ToolCall


class AggregatedStream(TypedDict):
    text: str
    tool_calls: List[ToolCall]
    chunk_count: int
    last_chunk: Any


class StreamAggregator:
    """
    Accumulates streamed chunks in arrival order.

    Tool-call fragments are appended exactly as received and never merged.
    """

    def __init__(self) -> None:
        self._parts: List[str] = []
        self.tool_calls: List[ToolCall] = []
        self.chunk_count = 0
        self.last_chunk: Optional[StreamChunk] = None

    def feed(self, chunk: StreamChunk) -> None:
        self.chunk_count += 1
        self.last_chunk = chunk
        if chunk.get("text"):
            self._parts.append(chunk["text"])
        self.tool_calls.extend(chunk.get("tool_calls") or [])

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def result(self) -> AggregatedStream:
        return {
            "text": self.text,
            "tool_calls": list(self.tool_calls),
            "chunk_count": self.chunk_count,
            "last_chunk": self.last_chunk["raw"] if self.last_chunk else None,
        }


async def aggregate_stream(chunks: AsyncIterator[StreamChunk]) -> AggregatedStream:
    """
    Drain an async chunk iterator and return the folded result.

    No timeout is applied here.
    """
    aggregator = StreamAggregator()
    async for chunk in chunks:
        aggregator.feed(chunk)
    return aggregator.result()
