import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from plugin_copy_proxy.config import Settings, get_settings
from plugin_copy_proxy.pipeline.content import ContentRecord
from plugin_copy_proxy.pipeline.fallback import generate_fallback_records
from plugin_copy_proxy.pipeline.prompt_builder import build_batch_prompt
from plugin_copy_proxy.pipeline.resolver import extract_json_array
from plugin_copy_proxy.providers.llm.anthropic import AnthropicClient, build_payload

logger = logging.getLogger(__name__)
LIBRARY_VERSION = "1.0.0"
LIBRARY_SOURCE = "serverless"
CROSS_SPECIALTY = "cross-specialty"


class ContentLibraryBuilder:
    """Serial per-specialty batch generation.

    Specialties run one at a time in declared order with a fixed pause after
    each; a failed batch degrades to template records and is never retried.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        llm_client: AnthropicClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.llm_client = llm_client or AnthropicClient(self.settings)
        self.sleep = sleep

    async def generate_batch(self, specialty: str, batch_size: int, api_key: str) -> list[ContentRecord]:
        logger.info("library.batch specialty=%s size=%d", specialty, batch_size)
        payload = build_payload(
            messages=[{"role": "user", "content": build_batch_prompt(specialty, batch_size)}],
            model=self.settings.batch_model,
            max_tokens=self.settings.batch_max_tokens,
        )
        try:
            response = await self.llm_client.create_message(payload, api_key)
            if not response.ok:
                logger.warning("library.batch.failed specialty=%s status=%d", specialty, response.status_code)
                return generate_fallback_records(specialty, batch_size)
            records = extract_json_array(response.first_text())
        except Exception as exc:
            logger.warning(
                "library.batch.failed specialty=%s type=%s detail=%s",
                specialty,
                exc.__class__.__name__,
                str(exc),
            )
            return generate_fallback_records(specialty, batch_size)

        if records is None:
            logger.warning("library.batch.failed specialty=%s reason=no_json_array", specialty)
            return generate_fallback_records(specialty, batch_size)
        logger.info("library.batch.generated specialty=%s records=%d", specialty, len(records))
        return records

    async def build(
        self,
        api_key: str,
        specialties: list[str] | None = None,
        batch_size: int | None = None,
        include_cross_specialty: bool = True,
    ) -> dict[str, Any]:
        ordered = list(specialties or self.settings.specialties())
        size = batch_size or self.settings.batch_size
        content: dict[str, list[dict[str, Any]]] = {}
        total = 0

        logger.info("library.start specialties=%s size=%d", ",".join(ordered), size)
        for specialty in ordered:
            records = await self.generate_batch(specialty, size, api_key)
            content[specialty] = [record.model_dump(exclude_none=True) for record in records]
            total += len(records)
            await self.sleep(self.settings.batch_delay_seconds)

        if include_cross_specialty:
            cross = await self.generate_batch(CROSS_SPECIALTY, self.settings.cross_specialty_batch_size, api_key)
            content[CROSS_SPECIALTY] = [record.model_dump(exclude_none=True) for record in cross]
            total += len(cross)

        logger.info("library.done total=%d", total)
        return {
            "metadata": {
                "generated": datetime.now(timezone.utc).isoformat(),
                "version": LIBRARY_VERSION,
                "totalVariations": total,
                "specialties": ordered,
                "source": LIBRARY_SOURCE,
            },
            "content": content,
        }
