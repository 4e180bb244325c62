import pytest
import httpx
from unittest.mock import Mock, PropertyMock, patch

from google.genai import errors

from vistag.models.providers.gemini import GeminiProvider
from vistag.models.providers.base import ChatRequest, ImagePart, ModelError, ModelRetryable, ModelTimeout


def gemini_response(text='{"title": "T"}'):
    response = Mock()
    response.text = text
    response.model_version = "gemini-1.5-flash-002"
    response.usage_metadata = Mock(prompt_token_count=258, candidates_token_count=40, total_token_count=298)
    response.candidates = [Mock(finish_reason="STOP")]
    return response


class TestGeminiProvider:
    """Test suite for GeminiProvider functionality"""

    @pytest.fixture
    def provider(self):
        with patch("vistag.models.providers.gemini.genai") as mock_genai:
            provider = GeminiProvider(api_key="test-key", request_timeout_s=30)
            provider._mock_genai = mock_genai
        return provider

    @pytest.fixture
    def generate(self, provider):
        return provider.client.models.generate_content

    @pytest.fixture
    def image_request(self):
        return ChatRequest(
            model="gemini-1.5-flash",
            messages=[{"role": "user", "content": "Describe this image"}],
            params={"temperature": 0.9, "max_output_tokens": 512},
            images=[ImagePart(data=b"img", mime_type="image/png")],
        )

    def test_initialization(self, provider):
        provider._mock_genai.Client.assert_called_once()
        kwargs = provider._mock_genai.Client.call_args.kwargs
        assert kwargs["api_key"] == "test-key"
        assert kwargs["http_options"].timeout == 30000

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        with patch("vistag.models.providers.gemini.genai"):
            assert GeminiProvider().api_key == "env-key"

    def test_chat_with_image(self, provider, generate, image_request):
        """
        Test: Multimodal request layout
        How: Inspect the contents and config handed to generate_content
        Ensures: Prompt text and inline image bytes share one user turn
        """
        generate.return_value = gemini_response()

        response = provider.chat(image_request)

        assert response.content == '{"title": "T"}'
        kwargs = generate.call_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"

        contents = kwargs["contents"]
        assert len(contents) == 1
        assert contents[0].role == "user"
        text_part, image_part = contents[0].parts
        assert text_part.text == "Describe this image"
        assert image_part.inline_data.data == b"img"
        assert image_part.inline_data.mime_type == "image/png"

        config = kwargs["config"]
        assert config.temperature == 0.9
        assert config.max_output_tokens == 512
        assert config.system_instruction is None

    def test_metadata(self, provider, generate, image_request):
        generate.return_value = gemini_response()

        meta = provider.chat(image_request).meta

        assert meta["provider"] == "gemini"
        assert meta["model"] == "gemini-1.5-flash-002"
        assert meta["usage"] == {"prompt_tokens": 258, "completion_tokens": 40, "total_tokens": 298}
        assert meta["finish_reason"] == "STOP"
        assert meta["latency"] >= 0

    def test_system_message_becomes_instruction(self, provider, generate):
        generate.return_value = gemini_response()
        request = ChatRequest(
            model="gemini-1.5-flash",
            messages=[
                {"role": "system", "content": "You describe photos."},
                {"role": "user", "content": "Go"},
            ],
        )

        provider.chat(request)

        kwargs = generate.call_args.kwargs
        assert kwargs["config"].system_instruction == "You describe photos."
        assert len(kwargs["contents"]) == 1
        assert kwargs["contents"][0].parts[0].text == "Go"

    def test_timeout_param(self, provider, generate):
        generate.return_value = gemini_response()
        request = ChatRequest(model="m", messages=[{"role": "user", "content": "x"}], params={"timeout": 10})

        provider.chat(request)

        assert generate.call_args.kwargs["config"].http_options.timeout == 10000

    def test_empty_text(self, provider, generate, image_request):
        generate.return_value = gemini_response(text=None)
        assert provider.chat(image_request).content == ""

    def test_blocked_response(self, provider, generate, image_request):
        response = Mock()
        type(response).text = PropertyMock(side_effect=ValueError("response was blocked"))
        generate.return_value = response

        with pytest.raises(ModelError, match="Invalid response structure"):
            provider.chat(image_request)

    def test_client_error_not_retried(self, provider, generate, image_request):
        generate.side_effect = errors.ClientError(
            400, {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}}
        )

        with pytest.raises(ModelError) as exc_info:
            provider.chat(image_request)

        assert not isinstance(exc_info.value, ModelRetryable)
        assert generate.call_count == 1

    def test_server_error_retried(self, provider, generate, image_request):
        generate.side_effect = errors.ServerError(
            503, {"error": {"code": 503, "message": "The model is overloaded", "status": "UNAVAILABLE"}}
        )

        with pytest.raises(ModelRetryable):
            provider.chat(image_request)

        assert generate.call_count == 3

    def test_retry_recovers(self, provider, generate, image_request):
        generate.side_effect = [
            errors.ServerError(500, {"error": {"code": 500, "message": "internal", "status": "INTERNAL"}}),
            gemini_response(),
        ]

        assert provider.chat(image_request).content == '{"title": "T"}'
        assert generate.call_count == 2

    @pytest.mark.parametrize("error,expected", [
        (httpx.ReadTimeout("read timed out"), ModelTimeout),
        (httpx.ConnectTimeout("connect timed out"), ModelTimeout),
        (httpx.ConnectError("connection refused"), ModelRetryable),
        (httpx.RemoteProtocolError("server disconnected"), ModelRetryable),
    ])
    def test_transport_errors_retried(self, provider, generate, image_request, error, expected):
        """
        Test: Timeouts and dropped connections
        How: Make every generate_content attempt raise the transport error
        Ensures: All three attempts are used before the unified error surfaces
        """
        generate.side_effect = error

        with pytest.raises(expected):
            provider.chat(image_request)

        assert generate.call_count == 3

    def test_timeout_then_success(self, provider, generate, image_request):
        generate.side_effect = [httpx.ReadTimeout("read timed out"), gemini_response()]

        assert provider.chat(image_request).content == '{"title": "T"}'
        assert generate.call_count == 2

    def test_stop_sequences(self, provider, generate):
        generate.return_value = gemini_response()
        request = ChatRequest(model="m", messages=[{"role": "user", "content": "x"}], params={"stop_sequences": ["END"]})

        provider.chat(request)

        assert generate.call_args.kwargs["config"].stop_sequences == ["END"]

    def test_unexpected_error(self, provider, generate, image_request):
        generate.side_effect = RuntimeError("socket closed")

        with pytest.raises(ModelError, match="Gemini provider error"):
            provider.chat(image_request)

    def test_health_check(self, provider):
        provider.client.models.list.return_value = iter([Mock()])
        assert provider.health_check() is True

        provider.client.models.list.side_effect = RuntimeError("unreachable")
        assert provider.health_check() is False
