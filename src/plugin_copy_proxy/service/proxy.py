import logging
from typing import Any

from plugin_copy_proxy.api.schemas import ProxyRequest
from plugin_copy_proxy.config import Settings, get_settings
from plugin_copy_proxy.errors import ProxyError, ProxyServerError, UpstreamError
from plugin_copy_proxy.providers.llm.anthropic import AnthropicClient, build_payload

logger = logging.getLogger(__name__)


class ProxyService:
    """Relay a Messages API call and hand the remote body back unchanged."""

    def __init__(self, settings: Settings | None = None, llm_client: AnthropicClient | None = None) -> None:
        self.settings = settings or get_settings()
        self.llm_client = llm_client or AnthropicClient(self.settings)

    async def forward(self, request: ProxyRequest, api_key: str) -> tuple[int, Any]:
        payload = build_payload(
            messages=request.to_messages(),
            model=request.model or self.settings.default_model,
            max_tokens=request.max_tokens or self.settings.default_max_tokens,
            temperature=request.temperature if request.temperature is not None else self.settings.default_temperature,
            system=request.system,
        )
        try:
            response = await self.llm_client.create_message(payload, api_key)
        except ProxyError:
            raise
        except Exception as exc:
            logger.exception("proxy.failed model=%s", payload["model"])
            raise ProxyServerError("Internal server error occurred") from exc

        if not response.ok:
            raise UpstreamError(response.status_code, details=response.error_body())
        try:
            body = response.json()
        except ProxyError:
            logger.warning("proxy.invalid_json status=%d", response.status_code)
            return response.status_code, {
                "error": "Invalid JSON response from Claude API",
                "rawResponse": response.text,
            }
        logger.info("proxy.success status=%d model=%s", response.status_code, payload["model"])
        return response.status_code, body
