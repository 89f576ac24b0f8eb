"""
toolrelay - Result Message Adapter

Turns an MCP tool result into the follow-up message a provider expects.

Every message is a ``user`` turn opening with a one-line preamble naming
the tool. Vision-capable models get one native content item per result
item (text, inline images, audio where the API takes it); other models get
the raw result content as JSON. Error results skip all of that and carry
the JSON error content only.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.errors import UnsupportedProviderError
from ..core.models import CallResult, ContentItem, ContentType, ModelInfo, ProviderFamily, ToolInvocation

ANTHROPIC_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp", "image/gif"}

MessageBuilder = Callable[[ToolInvocation, CallResult, bool], Dict[str, Any]]
ResultConverter = Callable[[ToolInvocation, CallResult, ModelInfo], Optional[Dict[str, Any]]]


def result_preamble(invocation: ToolInvocation) -> str:
    return f"Here is the result of mcp tool use `{invocation.tool.name}`:"


def _audio_format(mime_type: Optional[str]) -> str:
    if mime_type in ("audio/wav", "audio/x-wav", "audio/wave"):
        return "wav"
    return "mp3"


# ============================================================
# OpenAI Chat Completions
# ============================================================

def _openai_chat_part(item: ContentItem) -> Dict[str, Any]:
    kind = item.type_name

    if kind == ContentType.TEXT.value:
        return {"type": "text", "text": item.text or "no content"}

    if kind == ContentType.IMAGE.value:
        return {
            "type": "image_url",
            "image_url": {"url": item.data_uri, "detail": "auto"},
        }

    if kind == ContentType.AUDIO.value:
        return {
            "type": "input_audio",
            "input_audio": {"data": item.data, "format": _audio_format(item.mime_type)},
        }

    return {"type": "text", "text": f"Unsupported type: {kind}"}


def to_openai_chat_message(
    invocation: ToolInvocation,
    result: CallResult,
    vision: bool = False
) -> Dict[str, Any]:
    """Chat Completions user message with content parts."""
    if result.is_error:
        return {"role": "user", "content": result.content_json()}

    content: List[Dict[str, Any]] = [{"type": "text", "text": result_preamble(invocation)}]

    if vision:
        content.extend(_openai_chat_part(item) for item in result.content)
    else:
        content.append({"type": "text", "text": result.content_json()})

    return {"role": "user", "content": content}


def to_openai_compatible_text_message(
    invocation: ToolInvocation,
    result: CallResult,
    vision: bool = False
) -> Dict[str, Any]:
    """
    Chat Completions user message with a single string body.

    For OpenAI-compatible endpoints that only take string content.
    """
    if result.is_error:
        return {"role": "user", "content": result.content_json()}

    text = result_preamble(invocation) + "\n"

    if vision:
        for item in result.content:
            kind = item.type_name
            if kind == ContentType.TEXT.value:
                text += (item.text or "no content") + "\n"
            elif kind == ContentType.IMAGE.value:
                text += f"Here is a image result: {item.data_uri}\n"
            elif kind == ContentType.AUDIO.value:
                text += f"Here is a audio result: {item.data_uri}\n"
            else:
                text += f"Here is a unsupported result type: {kind}\n"
    else:
        text += result.content_json() + "\n"

    return {"role": "user", "content": text}


# ============================================================
# OpenAI Responses
# ============================================================

def _openai_responses_part(item: ContentItem) -> Dict[str, Any]:
    kind = item.type_name

    if kind == ContentType.TEXT.value:
        return {"type": "input_text", "text": item.text or "no content"}

    if kind == ContentType.IMAGE.value:
        return {"type": "input_image", "image_url": item.data_uri, "detail": "auto"}

    return {"type": "input_text", "text": f"Unsupported type: {kind}"}


def to_openai_responses_message(
    invocation: ToolInvocation,
    result: CallResult,
    vision: bool = False
) -> Dict[str, Any]:
    """Responses API input message."""
    if result.is_error:
        return {"role": "user", "content": result.content_json()}

    content: List[Dict[str, Any]] = [{"type": "input_text", "text": result_preamble(invocation)}]

    if vision:
        content.extend(_openai_responses_part(item) for item in result.content)
    else:
        content.append({"type": "input_text", "text": result.content_json()})

    return {"role": "user", "content": content}


# ============================================================
# Anthropic
# ============================================================

def _anthropic_block(item: ContentItem) -> Dict[str, Any]:
    kind = item.type_name

    if kind == ContentType.TEXT.value:
        return {"type": "text", "text": item.text or "no content"}

    if kind == ContentType.IMAGE.value:
        if item.mime_type not in ANTHROPIC_IMAGE_TYPES:
            return {"type": "text", "text": f"Unsupported image type: {item.mime_type}"}
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": item.mime_type,
                "data": item.data,
            },
        }

    return {"type": "text", "text": f"Unsupported type: {kind}"}


def to_anthropic_message(
    invocation: ToolInvocation,
    result: CallResult,
    vision: bool = False
) -> Dict[str, Any]:
    """Anthropic Messages user turn with content blocks."""
    if result.is_error:
        return {"role": "user", "content": result.content_json()}

    content: List[Dict[str, Any]] = [{"type": "text", "text": result_preamble(invocation)}]

    if vision:
        content.extend(_anthropic_block(item) for item in result.content)
    else:
        content.append({"type": "text", "text": result.content_json()})

    return {"role": "user", "content": content}


# ============================================================
# Google Gemini
# ============================================================

def _gemini_part(item: ContentItem) -> Dict[str, Any]:
    kind = item.type_name

    if kind == ContentType.TEXT.value:
        return {"text": item.text or "no content"}

    if kind == ContentType.IMAGE.value:
        if not item.data:
            return {"text": "No image data provided"}
        return {"inlineData": {"data": item.data, "mimeType": item.mime_type or "image/png"}}

    return {"text": f"Unsupported type: {kind}"}


def to_gemini_message(
    invocation: ToolInvocation,
    result: CallResult,
    vision: bool = False
) -> Dict[str, Any]:
    """Gemini user Content with parts."""
    if result.is_error:
        return {"role": "user", "parts": [{"text": result.content_json()}]}

    parts: List[Dict[str, Any]] = [{"text": result_preamble(invocation)}]

    if vision:
        parts.extend(_gemini_part(item) for item in result.content)
    else:
        parts.append({"text": result.content_json()})

    return {"role": "user", "parts": parts}


# ============================================================
# Dispatch
# ============================================================

_BUILDERS: Dict[Tuple[ProviderFamily, bool], MessageBuilder] = {
    (ProviderFamily.OPENAI_CHAT, False): to_openai_chat_message,
    (ProviderFamily.OPENAI_CHAT, True): to_openai_compatible_text_message,
    (ProviderFamily.OPENAI_RESPONSES, False): to_openai_responses_message,
    (ProviderFamily.ANTHROPIC, False): to_anthropic_message,
    (ProviderFamily.GEMINI, False): to_gemini_message,
}


def result_message_builder(family: ProviderFamily, compatible: bool = False) -> MessageBuilder:
    """
    Pick the message builder for a provider family.

    ``compatible`` selects string-only content and exists for OpenAI chat
    only.
    """
    try:
        return _BUILDERS[(ProviderFamily(family), compatible)]
    except (KeyError, ValueError):
        raise UnsupportedProviderError(family) from None


def make_result_converter(family: ProviderFamily, compatible: bool = False) -> ResultConverter:
    """
    Build an orchestrator result converter for ``family``.

    Vision handling follows ``model.supports_vision``.
    """
    builder = result_message_builder(family, compatible)

    def convert(invocation: ToolInvocation, result: CallResult, model: ModelInfo) -> Dict[str, Any]:
        return builder(invocation, result, bool(model and model.supports_vision))

    return convert
