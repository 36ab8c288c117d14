import base64
import httpx
from pathlib import Path
from typing import Union, List, Optional, Dict, Literal, Tuple

from .errors import InvalidRequestError
from .types import (
    Message, TextContent, ImageContent, Tool, ToolCall,
    ParameterDefinition
)

# =============================================================================
# Message Normalization
# =============================================================================

def normalize_messages(
    prompt: Optional[str] = None,
    messages: Optional[List[Message]] = None,
) -> List[Message]:
    """
    Turn a single prompt or a chat history into the message list adapters consume.

    Args:
        prompt (str, optional): Single-shot prompt. Ignored when `messages` is given.
        messages (List[Message], optional): Chat history, passed through unchanged.

    Returns:
        List[Message]: A non-empty, ordered list of role-tagged messages.

    Raises:
        InvalidRequestError: If neither a prompt nor a non-empty message list is supplied.
    """
    if messages:
        return messages
    if prompt:
        return [{"role": "user", "content": prompt}]
    raise InvalidRequestError("Either prompt or messages must be provided")


# =============================================================================
# Image Helpers
# =============================================================================

_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}


def encode_image_file(image_path: Union[str, Path]) -> Tuple[str, str]:
    """
    Encode a local image file to base64.

    Args:
        image_path (Union[str, Path]): Path to the image file.

    Returns:
        Tuple[str, str]: (base64 data, MIME type guessed from the extension).

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(image_path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    mime_type = _MIME_TYPES.get(path.suffix.lower(), "image/jpeg")

    with open(path, "rb") as f:
        b64_data = base64.b64encode(f.read()).decode("utf-8")

    return b64_data, mime_type


async def encode_image_url(url: str) -> Tuple[str, str]:
    """
    Download an image and encode it to base64.

    Returns:
        Tuple[str, str]: (base64 data, MIME type from the Content-Type header).

    Raises:
        httpx.HTTPError: If the download fails.
    """
    async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as http_client:
        response = await http_client.get(url)
        response.raise_for_status()

        content_type = response.headers.get("content-type", "image/jpeg")
        mime_type = content_type.split(";")[0].strip()
        b64_data = base64.b64encode(response.content).decode("utf-8")

    return b64_data, mime_type


def create_image_content(source: str, *, mime_type: Optional[str] = None) -> ImageContent:
    """
    Create an image content part from a path, URL, data URI or raw base64.

    Args:
        source (str): Can be:
            - A local file path (e.g., "/path/to/image.png")
            - A remote URL (e.g., "https://example.com/image.jpg")
            - A data URI (e.g., "data:image/png;base64,...")
            - Raw base64 data (requires `mime_type`)
        mime_type (str, optional): Required if `source` is raw base64 data.

    Raises:
        ValueError: If the source type cannot be determined.
    """
    if source.startswith("data:"):
        url = source
    elif source.startswith(("http://", "https://")):
        url = source
    elif mime_type:
        url = f"data:{mime_type};base64,{source}"
    elif len(source) < 260 and Path(source).exists():
        b64_data, detected_mime = encode_image_file(source)
        url = f"data:{detected_mime};base64,{b64_data}"
    else:
        raise ValueError(
            f"Cannot determine image source type for: {source[:50]}... "
            "Provide mime_type for raw base64 data."
        )

    return {"type": "image_url", "image_url": {"url": url}}


async def resolve_image_to_base64(source: str, *, mime_type: Optional[str] = None) -> Tuple[str, str]:
    """
    Resolve any supported image reference to (base64 data, MIME type).

    Remote URLs are downloaded; everything else goes through `create_image_content`.
    """
    if source.startswith(("http://", "https://")):
        return await encode_image_url(source)

    url = create_image_content(source, mime_type=mime_type)["image_url"]["url"]
    # data:[<mediatype>][;base64],<data>
    header, data = url.split(",", 1)
    return data, header.split(":")[1].split(";")[0]


async def to_data_uri(source: str, *, mime_type: Optional[str] = None) -> str:
    """Resolve an image reference to an inline data URI."""
    if source.startswith("data:"):
        return source
    b64_data, detected_mime = await resolve_image_to_base64(source, mime_type=mime_type)
    return f"data:{detected_mime};base64,{b64_data}"


def create_text_content(text: str) -> TextContent:
    return {"type": "text", "text": text}


def create_message(role: Literal["system", "user", "assistant"], content: str) -> Message:
    return {"role": role, "content": content}


# =============================================================================
# Tool Calling Helpers
# =============================================================================

def create_tool(
    name: str,
    description: str,
    parameters: Dict[str, ParameterDefinition],
    required: Optional[List[str]] = None,
) -> Tool:
    """
    Create a tool definition in the OpenAI function-calling shape.

    Both LM Studio and Ollama accept this structure unchanged.

    Args:
        name (str): The name of the function/tool to be called.
        description (str): What the tool does.
        parameters (Dict): Mapping of parameter name to its schema.
        required (List[str], optional): Names of required parameters.
    """
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": parameters,
                "required": required or [],
            },
        },
    }


def create_tool_result(tool_call_id: str, content: str) -> Message:
    """
    Create a tool result message to send back to the model.
    """
    return {
        "role": "tool",
        "tool_call_id": tool_call_id,
        "content": content,
    }


def create_assistant_message_with_tool_calls(
    content: str,
    tool_calls: List[ToolCall],
) -> Message:
    return {
        "role": "assistant",
        "content": content,
        "tool_calls": tool_calls,
    }
