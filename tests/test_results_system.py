"""
toolrelay - Result Message Tests

Tests for converting tool results into provider follow-up messages.
"""

import pytest

from toolrelay.core import (
    CallResult,
    ContentItem,
    ContentType,
    ModelInfo,
    ProviderFamily,
    UnsupportedProviderError,
)
from toolrelay.tools import (
    make_result_converter,
    result_message_builder,
    to_anthropic_message,
    to_gemini_message,
    to_openai_chat_message,
    to_openai_compatible_text_message,
    to_openai_responses_message,
)

PREAMBLE = "Here is the result of mcp tool use `search`:"
PNG_URI = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def audio_result():
    return CallResult(content=[
        ContentItem(type=ContentType.AUDIO, data="UklGRg==", mime_type="audio/wav"),
    ])


@pytest.fixture
def odd_result():
    return CallResult(content=[ContentItem(type="resource", text="file:///tmp/a")])


# ============================================================
# OpenAI Chat Completions
# ============================================================

class TestOpenAIChatMessage:
    """Tests for to_openai_chat_message."""

    def test_text_without_vision(self, search_invocation, image_result):
        message = to_openai_chat_message(search_invocation, image_result, vision=False)

        assert message == {
            "role": "user",
            "content": [
                {"type": "text", "text": PREAMBLE},
                {"type": "text", "text": image_result.content_json()},
            ],
        }

    def test_vision_parts(self, search_invocation, image_result):
        message = to_openai_chat_message(search_invocation, image_result, vision=True)

        assert message["content"] == [
            {"type": "text", "text": PREAMBLE},
            {"type": "text", "text": "rendered"},
            {"type": "image_url", "image_url": {"url": PNG_URI, "detail": "auto"}},
        ]

    def test_audio(self, search_invocation, audio_result):
        message = to_openai_chat_message(search_invocation, audio_result, vision=True)

        assert message["content"][1] == {
            "type": "input_audio",
            "input_audio": {"data": "UklGRg==", "format": "wav"},
        }

    def test_unsupported_type(self, search_invocation, odd_result):
        message = to_openai_chat_message(search_invocation, odd_result, vision=True)

        assert message["content"][1] == {"type": "text", "text": "Unsupported type: resource"}

    def test_empty_text(self, search_invocation):
        result = CallResult(content=[ContentItem(type=ContentType.TEXT, text="")])

        message = to_openai_chat_message(search_invocation, result, vision=True)

        assert message["content"][1] == {"type": "text", "text": "no content"}

    def test_error_result(self, search_invocation):
        result = CallResult.text("boom", is_error=True)

        message = to_openai_chat_message(search_invocation, result, vision=True)

        assert message == {"role": "user", "content": '[{"type":"text","text":"boom"}]'}


class TestOpenAICompatibleMessage:
    """Tests for to_openai_compatible_text_message."""

    def test_vision_string(self, search_invocation, image_result):
        message = to_openai_compatible_text_message(search_invocation, image_result, vision=True)

        assert message == {
            "role": "user",
            "content": (
                f"{PREAMBLE}\n"
                "rendered\n"
                f"Here is a image result: {PNG_URI}\n"
            ),
        }

    def test_without_vision(self, search_invocation, text_result):
        message = to_openai_compatible_text_message(search_invocation, text_result)

        assert message["content"] == f"{PREAMBLE}\n" + '[{"type":"text","text":"3 results found"}]\n'


# ============================================================
# OpenAI Responses
# ============================================================

class TestOpenAIResponsesMessage:
    """Tests for to_openai_responses_message."""

    def test_vision_parts(self, search_invocation, image_result):
        message = to_openai_responses_message(search_invocation, image_result, vision=True)

        assert message == {
            "role": "user",
            "content": [
                {"type": "input_text", "text": PREAMBLE},
                {"type": "input_text", "text": "rendered"},
                {"type": "input_image", "image_url": PNG_URI, "detail": "auto"},
            ],
        }

    def test_without_vision(self, search_invocation, text_result):
        message = to_openai_responses_message(search_invocation, text_result)

        assert message["content"][1] == {
            "type": "input_text",
            "text": text_result.content_json(),
        }


# ============================================================
# Anthropic
# ============================================================

class TestAnthropicMessage:
    """Tests for to_anthropic_message."""

    def test_image_block(self, search_invocation, image_result):
        message = to_anthropic_message(search_invocation, image_result, vision=True)

        assert message["content"][2] == {
            "type": "image",
            "source": {"type": "base64", "media_type": "image/png", "data": "iVBORw0KGgo="},
        }

    def test_unsupported_image_type(self, search_invocation):
        result = CallResult(content=[
            ContentItem(type=ContentType.IMAGE, data="Qk0=", mime_type="image/bmp"),
        ])

        message = to_anthropic_message(search_invocation, result, vision=True)

        assert message["content"][1] == {"type": "text", "text": "Unsupported image type: image/bmp"}

    def test_without_vision(self, search_invocation, text_result):
        message = to_anthropic_message(search_invocation, text_result)

        assert message == {
            "role": "user",
            "content": [
                {"type": "text", "text": PREAMBLE},
                {"type": "text", "text": text_result.content_json()},
            ],
        }


# ============================================================
# Gemini
# ============================================================

class TestGeminiMessage:
    """Tests for to_gemini_message."""

    def test_inline_data(self, search_invocation, image_result):
        message = to_gemini_message(search_invocation, image_result, vision=True)

        assert message == {
            "role": "user",
            "parts": [
                {"text": PREAMBLE},
                {"text": "rendered"},
                {"inlineData": {"data": "iVBORw0KGgo=", "mimeType": "image/png"}},
            ],
        }

    def test_image_without_data(self, search_invocation):
        result = CallResult(content=[ContentItem(type=ContentType.IMAGE)])

        message = to_gemini_message(search_invocation, result, vision=True)

        assert message["parts"][1] == {"text": "No image data provided"}

    def test_default_mime_type(self, search_invocation):
        result = CallResult(content=[ContentItem(type=ContentType.IMAGE, data="AAAA")])

        message = to_gemini_message(search_invocation, result, vision=True)

        assert message["parts"][1]["inlineData"]["mimeType"] == "image/png"

    def test_error_result(self, search_invocation):
        result = CallResult.text("denied", is_error=True)

        message = to_gemini_message(search_invocation, result, vision=True)

        assert message == {"role": "user", "parts": [{"text": '[{"type":"text","text":"denied"}]'}]}


# ============================================================
# Dispatch
# ============================================================

class TestResultDispatch:
    """Tests for builder selection."""

    @pytest.mark.parametrize("family,builder", [
        (ProviderFamily.OPENAI_CHAT, to_openai_chat_message),
        (ProviderFamily.OPENAI_RESPONSES, to_openai_responses_message),
        (ProviderFamily.ANTHROPIC, to_anthropic_message),
        (ProviderFamily.GEMINI, to_gemini_message),
    ])
    def test_builder_per_family(self, family, builder):
        assert result_message_builder(family) is builder

    def test_compatible_mode(self):
        builder = result_message_builder(ProviderFamily.OPENAI_CHAT, compatible=True)

        assert builder is to_openai_compatible_text_message

    def test_compatible_only_for_openai_chat(self):
        with pytest.raises(UnsupportedProviderError):
            result_message_builder(ProviderFamily.ANTHROPIC, compatible=True)

    def test_unknown_family(self):
        with pytest.raises(UnsupportedProviderError):
            result_message_builder("cohere")

    def test_converter_follows_model_vision(self, search_invocation, image_result):
        convert = make_result_converter(ProviderFamily.ANTHROPIC)

        with_vision = convert(search_invocation, image_result, ModelInfo(id="m", supports_vision=True))
        without = convert(search_invocation, image_result, ModelInfo(id="m"))

        assert len(with_vision["content"]) == 3
        assert len(without["content"]) == 2
