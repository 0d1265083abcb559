"""Unit tests for AICompletionClient."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from menu_import_service.errors import AIResponseParseError, AIServiceError
from menu_import_service.services.ai_client import AICompletionClient


def _completion(content: object) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    return response


@pytest.mark.unit
class TestAICompletionClient:
    """Test suite for AICompletionClient."""

    @pytest.fixture
    def client(self) -> AICompletionClient:
        """Create a client with test configuration."""
        return AICompletionClient(base_url="https://ai.test.com/api/v1/", api_key="sk-test", timeout_seconds=5)

    def test_client_initialization(self, client: AICompletionClient) -> None:
        """Test trailing slashes are removed from the base URL."""
        assert client.base_url == "https://ai.test.com/api/v1"
        assert client.timeout_seconds == 5

    @pytest.mark.asyncio
    async def test_complete_text(self, client: AICompletionClient) -> None:
        """Test a plain completion posts chat messages with a bearer token."""
        with patch(
            "httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion("hello")
        ) as mock_post:
            content = await client.complete_text("model-a", "system", "user")

        assert content == "hello"
        call = mock_post.call_args
        assert call.args[0] == "https://ai.test.com/api/v1/chat/completions"
        assert call.kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert call.kwargs["json"] == {
            "model": "model-a",
            "messages": [{"role": "system", "content": "system"}, {"role": "user", "content": "user"}],
        }

    @pytest.mark.asyncio
    async def test_complete_structured_sends_schema(self, client: AICompletionClient) -> None:
        """Test the schema is sent as a strict json_schema response format."""
        schema = {"type": "object", "properties": {"confidence": {"type": "number"}}}

        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            return_value=_completion(json.dumps({"confidence": 0.9})),
        ) as mock_post:
            result = await client.complete_structured("model-b", "system", "user", schema)

        assert result == {"confidence": 0.9}
        response_format = mock_post.call_args.kwargs["json"]["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"] == {"name": "MenuExtraction", "strict": True, "schema": schema}

    @pytest.mark.asyncio
    async def test_complete_structured_invalid_json(self, client: AICompletionClient) -> None:
        """Test non-JSON constrained output raises AIResponseParseError."""
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion("not json")):
            with pytest.raises(AIResponseParseError) as exc_info:
                await client.complete_structured("model-b", "system", "user", {})

        assert exc_info.value.raw_preview == "not json"

    @pytest.mark.asyncio
    async def test_http_error_raises_service_error(self, client: AICompletionClient) -> None:
        """Test HTTP failures carry the status code."""
        response = MagicMock()
        response.status_code = 429
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Too Many Requests", request=MagicMock(), response=response
        )

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
            with pytest.raises(AIServiceError) as exc_info:
                await client.complete_text("model-a", "system", "user")

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_network_error_raises_service_error(self, client: AICompletionClient) -> None:
        """Test transport failures are wrapped."""
        with patch(
            "httpx.AsyncClient.post",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("connection refused"),
        ):
            with pytest.raises(AIServiceError) as exc_info:
                await client.complete_text("model-a", "system", "user")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_missing_choices_raises_service_error(self, client: AICompletionClient) -> None:
        """Test an envelope without choices is a service error."""
        response = MagicMock()
        response.json.return_value = {"error": {"message": "model overloaded"}}

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
            with pytest.raises(AIServiceError, match="no completion choices"):
                await client.complete_text("model-a", "system", "user")

    @pytest.mark.asyncio
    async def test_null_content_raises_service_error(self, client: AICompletionClient) -> None:
        """Test an empty message content is a service error."""
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_completion(None)):
            with pytest.raises(AIServiceError, match="empty completion"):
                await client.complete_text("model-a", "system", "user")

    @pytest.mark.asyncio
    async def test_non_json_body_raises_service_error(self, client: AICompletionClient) -> None:
        """Test a successful status with an HTML body is a service error."""
        response = httpx.Response(
            200,
            text="<html><body>Bad gateway</body></html>",
            request=httpx.Request("POST", "https://ai.test.com/api/v1/chat/completions"),
        )

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
            with pytest.raises(AIServiceError, match="non-JSON body") as exc_info:
                await client.complete_text("model-a", "system", "user")

        assert exc_info.value.status_code is None
