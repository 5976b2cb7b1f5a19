import logging
from typing import Any

from plugin_copy_proxy.api.schemas import ContentLibraryRequest, GenerationRequest
from plugin_copy_proxy.errors import ProxyError, ProxyServerError
from plugin_copy_proxy.workflow.generation import GenerationWorkflow
from plugin_copy_proxy.workflow.library import ContentLibraryBuilder

logger = logging.getLogger(__name__)


class GenerateService:
    def __init__(
        self,
        workflow: GenerationWorkflow | None = None,
        library_builder: ContentLibraryBuilder | None = None,
    ) -> None:
        self.workflow = workflow or GenerationWorkflow()
        self.library_builder = library_builder or ContentLibraryBuilder(self.workflow.settings, self.workflow.llm_client)

    async def generate(self, request: GenerationRequest, api_key: str) -> dict[str, Any]:
        try:
            result = await self.workflow.run(request, api_key)
        except ProxyError:
            raise
        except Exception as exc:
            logger.exception("generate.failed context=%s", request.context)
            raise ProxyServerError(str(exc) or exc.__class__.__name__) from exc

        envelope: dict[str, Any] = {
            "success": True,
            "content": result.content.model_dump() if result.content is not None else result.text,
            "rawResponse": result.text,
        }
        if result.usage is not None:
            envelope["usage"] = result.usage
        if result.model is not None:
            envelope["model"] = result.model
        if result.outcome is not None:
            logger.info(
                "generate.meta context=%s topic=%s outcome=%s",
                request.context,
                result.topic,
                result.outcome.value,
            )
        return envelope

    async def build_library(self, request: ContentLibraryRequest, api_key: str) -> dict[str, Any]:
        try:
            library = await self.library_builder.build(
                api_key,
                specialties=request.specialties,
                batch_size=request.batch_size,
                include_cross_specialty=request.include_cross_specialty,
            )
        except ProxyError:
            raise
        except Exception as exc:
            logger.exception("library.failed")
            raise ProxyServerError(str(exc) or exc.__class__.__name__) from exc

        metadata = library["metadata"]
        return {
            "success": True,
            "contentLibrary": library,
            "metadata": {
                "generated": metadata["generated"],
                "totalVariations": metadata["totalVariations"],
                "specialties": metadata["specialties"],
            },
        }
