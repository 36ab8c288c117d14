"""Post-processing of model output: reasoning traces and JSON recovery."""

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple, TypedDict

from .types import CaptionStrategy, ThinkingConfig

log = logging.getLogger(__name__)

# <think> ... </think>, spanning newlines, shortest match
_THINK_RE = re.compile(r"<think>(.*?)</think>", re.DOTALL)

PLACEHOLDER_CANONICAL_TEXT = "an image"


def parse_llm_response(
    text: str,
    thinking: Optional[ThinkingConfig] = None,
) -> Tuple[Optional[str], str]:
    """
    Split a model reply into its reasoning trace and the user-visible text.

    The first <think>...</think> region is reported as the trace. Every such
    region (markers included) is removed from the visible reply, which is
    then stripped. When the caller flags a reasoning model with
    `log_reasoning`, the trace is written to the log, not returned in the reply.

    Returns:
        Tuple[Optional[str], str]: (thoughts or None, visible reply)
    """
    match = _THINK_RE.search(text)
    if match is None:
        return None, text.strip()

    thoughts = match.group(1)
    reply = _THINK_RE.sub("", text).strip()

    thinking = thinking or {}
    if thinking.get("is_reasoning_model") and thinking.get("log_reasoning"):
        log.info("Reasoning process: %s", thoughts)

    return thoughts, reply


# =============================================================================
# JSON recovery for free-form model output
# =============================================================================

class ParsedObject(TypedDict):
    data: Optional[Dict[str, Any]]
    strategy: CaptionStrategy


def _parse_strict(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def _parse_braced_substring(text: str) -> Optional[Dict[str, Any]]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return _parse_strict(text[start:end + 1])


def parse_json_object(text: str) -> ParsedObject:
    """
    Best-effort extraction of a JSON object from model output.

    Tries, in order: the whole text as JSON, then the span from the first
    "{" to the last "}". If both fail the result has no data and the
    "placeholder" strategy; this never raises.
    """
    data = _parse_strict(text.strip())
    if data is not None:
        return {"data": data, "strategy": "strict"}

    data = _parse_braced_substring(text)
    if data is not None:
        return {"data": data, "strategy": "substring"}

    log.debug("No JSON object recoverable from model output: %r", text[:200])
    return {"data": None, "strategy": "placeholder"}


def derive_canonical_text(parsed: ParsedObject, fallback_prompt: Optional[str] = None) -> str:
    """
    Pick the text to embed for an image caption.

    Uses `canonical_text` from the parsed payload when it is a non-empty
    string, then the caller's prompt, then a generic placeholder.
    """
    data = parsed["data"] or {}
    canonical = data.get("canonical_text")
    if isinstance(canonical, str) and canonical.strip():
        return canonical.strip()
    if fallback_prompt and fallback_prompt.strip():
        return fallback_prompt.strip()
    return PLACEHOLDER_CANONICAL_TEXT
