import logging

from localmux.parsing import (
    PLACEHOLDER_CANONICAL_TEXT, derive_canonical_text, parse_json_object, parse_llm_response
)


class TestParseLlmResponse:

    def test_extracts_reasoning_trace(self):
        thoughts, reply = parse_llm_response("<think>abc</think>reply")
        assert thoughts == "abc"
        assert reply == "reply"

    def test_no_trace_returns_trimmed_text(self):
        thoughts, reply = parse_llm_response("  plain answer \n")
        assert thoughts is None
        assert reply == "plain answer"

    def test_trace_spans_newlines(self):
        text = "<think>\nstep one\nstep two\n</think>\n\nParis is the capital."
        thoughts, reply = parse_llm_response(text)
        assert thoughts == "\nstep one\nstep two\n"
        assert reply == "Paris is the capital."

    def test_reply_never_contains_markers(self):
        text = "<think>first</think>Hello <think>second</think>world"
        thoughts, reply = parse_llm_response(text)
        assert thoughts == "first"
        assert "<think>" not in reply and "</think>" not in reply
        assert reply == "Hello world"

    def test_logs_reasoning_when_requested(self, caplog):
        with caplog.at_level(logging.INFO, logger="localmux.parsing"):
            parse_llm_response(
                "<think>secret plan</think>ok",
                {"is_reasoning_model": True, "log_reasoning": True},
            )
        assert "secret plan" in caplog.text

    def test_does_not_log_reasoning_by_default(self, caplog):
        with caplog.at_level(logging.INFO, logger="localmux.parsing"):
            parse_llm_response(
                "<think>secret plan</think>ok",
                {"is_reasoning_model": True, "log_reasoning": False},
            )
            parse_llm_response("<think>secret plan</think>ok", None)
        assert "secret plan" not in caplog.text


class TestParseJsonObject:

    def test_strict(self):
        parsed = parse_json_object('{"canonical_text": "a dog", "tags": ["dog"]}')
        assert parsed == {"data": {"canonical_text": "a dog", "tags": ["dog"]}, "strategy": "strict"}

    def test_substring_tolerates_commentary(self):
        parsed = parse_json_object('Sure! ```{"canonical_text":"a cat"}```')
        assert parsed["strategy"] == "substring"
        assert derive_canonical_text(parsed) == "a cat"

    def test_placeholder_when_nothing_parses(self):
        parsed = parse_json_object("I see a cat { but no json")
        assert parsed == {"data": None, "strategy": "placeholder"}

    def test_non_object_json_is_not_accepted(self):
        assert parse_json_object("[1, 2, 3]")["strategy"] == "placeholder"


class TestDeriveCanonicalText:

    def test_falls_back_to_prompt(self):
        parsed = {"data": {"canonical_text": "  "}, "strategy": "strict"}
        assert derive_canonical_text(parsed, "a red bicycle") == "a red bicycle"

    def test_falls_back_to_placeholder(self):
        parsed = {"data": None, "strategy": "placeholder"}
        assert derive_canonical_text(parsed) == PLACEHOLDER_CANONICAL_TEXT
