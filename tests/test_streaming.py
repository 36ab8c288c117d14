import pytest

from localmux.streaming import StreamAggregator, aggregate_stream


def _chunk(text="", tool_calls=None):
    return {"text": text, "tool_calls": tool_calls or [], "raw": {"text": text}}


async def _iterate(chunks):
    for chunk in chunks:
        yield chunk


class TestStreamAggregator:

    def test_text_concatenates_in_order(self):
        aggregator = StreamAggregator()
        for piece in ["a", "b", "c"]:
            aggregator.feed(_chunk(piece))

        assert aggregator.text == "abc"
        assert aggregator.chunk_count == 3

    def test_tool_call_fragments_append_without_merging(self):
        t1 = {"name": "search", "arguments": {"q": "par"}}
        t2 = {"name": "search", "arguments": {"q": "paris"}}
        aggregator = StreamAggregator()
        aggregator.feed(_chunk(tool_calls=[t1]))
        aggregator.feed(_chunk("x"))
        aggregator.feed(_chunk(tool_calls=[t2]))

        assert aggregator.tool_calls == [t1, t2]

    def test_empty_result(self):
        result = StreamAggregator().result()
        assert result == {"text": "", "tool_calls": [], "chunk_count": 0, "last_chunk": None}

    @pytest.mark.asyncio
    async def test_aggregate_stream(self):
        t1 = {"name": "a", "arguments": {}}
        result = await aggregate_stream(_iterate([_chunk("Hel"), _chunk("lo", [t1]), _chunk("!")]))

        assert result["text"] == "Hello!"
        assert result["tool_calls"] == [t1]
        assert result["chunk_count"] == 3
        assert result["last_chunk"] == {"text": "!"}
