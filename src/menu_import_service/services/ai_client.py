"""Client for the AI completion service (OpenAI-compatible chat completions API)."""

import json
import logging
import time
from typing import Any

import httpx

from menu_import_service.errors import AIResponseParseError, AIServiceError
from menu_import_service.observability.metrics import record_ai_api_call

logger = logging.getLogger(__name__)


class AICompletionClient:
    """HTTP client for an OpenAI-compatible completion endpoint (e.g. OpenRouter).

    Supports the two call shapes the extraction engine needs: schema-constrained
    output and plain text. No retries are performed here; failures surface as
    AIServiceError and retrying is left to the caller.
    """

    def __init__(self, base_url: str, api_key: str, timeout_seconds: float = 120.0) -> None:
        """Initialize the AI client.

        Args:
            base_url: Base URL of the API (e.g., "https://openrouter.ai/api/v1")
            api_key: Bearer token for the API
            timeout_seconds: Per-request timeout
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    async def complete_text(self, model: str, system_prompt: str, user_prompt: str) -> str:
        """Request a plain-text completion.

        Returns:
            The message content returned by the model

        Raises:
            AIServiceError: On network, HTTP or malformed envelope errors
        """
        payload = {
            "model": model,
            "messages": self._messages(system_prompt, user_prompt),
        }
        return await self._complete(payload, strategy="text")

    async def complete_structured(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, Any],
        schema_name: str = "MenuExtraction",
    ) -> Any:
        """Request a completion constrained to a JSON schema and parse it.

        Returns:
            The parsed JSON object

        Raises:
            AIServiceError: On network, HTTP or malformed envelope errors
            AIResponseParseError: If the constrained content is not valid JSON
        """
        payload = {
            "model": model,
            "messages": self._messages(system_prompt, user_prompt),
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": schema},
            },
        }
        content = await self._complete(payload, strategy="structured")

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.debug("Structured response was not valid JSON", extra={"raw_content": content})
            raise AIResponseParseError(
                "Structured AI response was not valid JSON", raw_preview=content[:200]
            ) from e

    @staticmethod
    def _messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    async def _complete(self, payload: dict[str, Any], strategy: str) -> str:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        started = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"AI service returned HTTP {e.response.status_code}")
            raise AIServiceError(
                f"AI service request failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"AI service request failed: {e}")
            raise AIServiceError(f"AI service request failed: {e}") from e
        except ValueError as e:
            logger.error(f"AI service response is not JSON: {e}")
            raise AIServiceError("AI service returned a non-JSON body") from e
        finally:
            record_ai_api_call(strategy, time.monotonic() - started)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError("AI service returned no completion choices") from e

        if not isinstance(content, str):
            raise AIServiceError("AI service returned empty completion content")

        return content
