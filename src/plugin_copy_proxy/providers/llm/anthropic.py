import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from plugin_copy_proxy.config import Settings
from plugin_copy_proxy.errors import UpstreamFormatError

logger = logging.getLogger(__name__)
PAYLOAD_LOG_LIMIT = 4000


@dataclass(frozen=True)
class MessageResponse:
    status_code: int
    text: str
    content_type: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise UpstreamFormatError(self.text, status_code=500) from exc

    def error_body(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError:
            return self.text

    def first_text(self) -> str:
        body = self.json()
        if not isinstance(body, dict):
            return ""
        blocks = body.get("content") or []
        if not isinstance(blocks, list) or not blocks or not isinstance(blocks[0], dict):
            return ""
        return str(blocks[0].get("text", "") or "")


def build_payload(
    messages: list[dict[str, Any]],
    model: str,
    max_tokens: int,
    temperature: float | None = None,
    system: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": messages,
    }
    if temperature is not None:
        payload["temperature"] = temperature
    if system:
        payload["system"] = system
    return payload


class AnthropicClient:
    """Messages API client with compact input/output logs."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.messages_url = settings.anthropic_messages_url
        self.transport = transport

    async def create_message(self, payload: dict[str, Any], api_key: str) -> MessageResponse:
        messages = payload.get("messages", [])
        logger.info(
            "anthropic.request model=%s messages=%d max_tokens=%s key_chars=%d",
            payload.get("model"),
            len(messages),
            payload.get("max_tokens"),
            len(api_key),
        )
        logger.debug("anthropic.request.preview=%s", self._clip(self._first_message_text(messages), 100))

        headers = {
            "content-type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.settings.anthropic_version,
        }
        async with httpx.AsyncClient(timeout=self.settings.llm_timeout_seconds, transport=self.transport) as client:
            http_response = await client.post(self.messages_url, json=payload, headers=headers)

        response = MessageResponse(
            status_code=http_response.status_code,
            text=http_response.text,
            content_type=http_response.headers.get("content-type", ""),
        )
        logger.info("anthropic.response status=%d chars=%d", response.status_code, len(response.text))
        if not response.ok:
            logger.error(
                "anthropic.error status=%d body=%s",
                response.status_code,
                self._clip(response.text, PAYLOAD_LOG_LIMIT),
            )
        else:
            logger.debug("anthropic.response.payload=%s", self._clip(response.text, PAYLOAD_LOG_LIMIT))
        return response

    @staticmethod
    def _first_message_text(messages: list[dict[str, Any]]) -> str:
        if not messages:
            return ""
        content = messages[0].get("content", "")
        if isinstance(content, list):
            return " ".join(str(item.get("text", "")) for item in content if isinstance(item, dict))
        return str(content)

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        normalized = " ".join(text.split()).strip()
        if len(normalized) <= limit:
            return normalized
        return f"{normalized[:limit]}...(truncated)"
