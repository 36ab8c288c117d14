from typing import Literal, List, Dict, Any, Union, TypedDict, Optional

# =============================================================================
# Type Definitions
# =============================================================================

# Supported local inference backends
Provider = Literal["lmstudio", "ollama"]

Role = Literal["system", "user", "assistant", "tool"]


class TextContent(TypedDict, total=False):
    """
    Text content part for multimodal messages.
    """
    type: Literal["text"]
    text: str


class ImageUrlDetail(TypedDict, total=False):
    """
    Image URL (data URI or http(s) URL).
    """
    url: str


class ImageContent(TypedDict, total=False):
    """
    Image content part for multimodal messages (OpenAI format).
    """
    type: Literal["image_url"]
    image_url: ImageUrlDetail


ContentPart = Union[TextContent, ImageContent]


# =============================================================================
# Tool Calling Type Definitions
# =============================================================================

class ParameterDefinition(TypedDict, total=False):
    """
    JSON Schema fragment describing a single tool parameter.
    """
    type: Literal["string", "number", "boolean", "array", "object"]
    description: str
    enum: List[str]
    items: "ParameterDefinition"
    properties: Dict[str, "ParameterDefinition"]


class FunctionParameters(TypedDict, total=False):
    type: Literal["object"]
    properties: Dict[str, ParameterDefinition]
    required: List[str]


class FunctionDefinition(TypedDict, total=False):
    name: str
    description: str
    parameters: FunctionParameters


class Tool(TypedDict):
    """
    Tool definition in OpenAI format. Both backends accept this shape as-is.
    """
    type: Literal["function"]
    function: FunctionDefinition


class ToolCall(TypedDict, total=False):
    """
    Tool call emitted by a model. Ollama does not assign ids, so `id` is optional.
    """
    id: str
    name: str
    arguments: Dict[str, Any]


# =============================================================================
# Message Type (depends on ToolCall)
# =============================================================================

class Message(TypedDict, total=False):
    """
    Chat message.

    Roles:
    - "system": System prompt / instructions
    - "user": User message
    - "assistant": Model response
    - "tool": Tool execution result
    """
    role: Role
    content: str
    tool_call_id: str  # For tool result messages
    tool_calls: List[ToolCall]  # For assistant messages with tool calls


class ThinkingConfig(TypedDict, total=False):
    """
    Caller hint for reasoning models. Never inferred from the model name.
    """
    is_reasoning_model: bool
    log_reasoning: bool


# =============================================================================
# Adapter-level shapes
# =============================================================================

class StreamChunk(TypedDict):
    """
    One incremental piece of a streamed response.
    """
    text: str
    tool_calls: List[ToolCall]
    raw: Any


class ChatCompletion(TypedDict):
    """
    A complete (non-streamed) response from a provider adapter.
    """
    provider: Provider
    model: str
    text: str
    tool_calls: List[ToolCall]
    raw: Any


# =============================================================================
# Gateway results
# =============================================================================

GenerationStatus = Literal["ok", "failed"]


class AssistantMessage(TypedDict):
    role: Literal["assistant"]
    content: str
    tool_calls: List[ToolCall]


class FailureInfo(TypedDict):
    type: str
    message: str
    status_code: Optional[int]


class GenerationMeta(TypedDict):
    streamed: bool
    chunk_count: int
    latency_ms: float


class GenerationResult(TypedDict):
    """
    Canonical generation result, identical in shape for every provider.

    `reply` is the user-visible text: reasoning trace removed and stripped.
    When `status` is "failed", `error` describes the transport failure and
    `reply` holds FAILURE_SENTINEL.
    """
    status: GenerationStatus
    provider: Provider
    model: str
    raw: Any
    text: str
    message: AssistantMessage
    thoughts: Optional[str]
    reply: str
    error: Optional[FailureInfo]
    meta: GenerationMeta


class EmbeddingResult(TypedDict):
    provider: Provider
    model: str
    embedding: List[float]
    raw: Any


CaptionStrategy = Literal["strict", "substring", "placeholder"]


class VisionEmbeddingResult(EmbeddingResult):
    image_count: int
    processed_images: int
    caption: Optional[Dict[str, Any]]
    caption_strategy: Optional[CaptionStrategy]
    text_used_for_embedding: Optional[str]
