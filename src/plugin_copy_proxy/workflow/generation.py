import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, TypedDict

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph

from plugin_copy_proxy.api.schemas import GenerationRequest, ResponseFormat
from plugin_copy_proxy.config import Settings, get_settings
from plugin_copy_proxy.errors import UpstreamError
from plugin_copy_proxy.pipeline.content import StructuredContent
from plugin_copy_proxy.pipeline.prompt_builder import build_structured_prompt
from plugin_copy_proxy.pipeline.resolver import ParseOutcome, Resolution, resolve
from plugin_copy_proxy.providers.llm.anthropic import AnthropicClient, build_payload

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    text: str
    content: StructuredContent | None
    outcome: ParseOutcome | None
    topic: str | None
    usage: dict[str, Any] | None
    model: str | None
    message_id: str | None


class WorkflowState(TypedDict, total=False):
    request: GenerationRequest
    api_key: str
    prompt: str
    text: str
    body: dict[str, Any]
    resolution: Resolution


class GenerationWorkflow:
    """Prompt -> remote call -> resolver, implemented with LangGraph nodes.

    The compiled graph is shared by every instance; each run passes its
    workflow through ``config["configurable"]``.
    """

    def __init__(self, settings: Settings | None = None, llm_client: AnthropicClient | None = None) -> None:
        self.settings = settings or get_settings()
        self.llm_client = llm_client or AnthropicClient(self.settings)
        self.graph = compiled_graph()

    async def run(self, request: GenerationRequest, api_key: str) -> GenerationResult:
        logger.info(
            "generate.request context=%s format=%s prompt_chars=%d",
            request.context,
            request.response_format.value,
            len(request.prompt),
        )
        final_state = await self.graph.ainvoke(
            {"request": request, "api_key": api_key},
            config={"configurable": {"workflow": self}},
        )
        body = final_state.get("body") or {}
        resolution: Resolution | None = final_state.get("resolution")
        return GenerationResult(
            text=final_state.get("text", ""),
            content=resolution.content if resolution else None,
            outcome=resolution.outcome if resolution else None,
            topic=resolution.topic if resolution else None,
            usage=body.get("usage"),
            model=body.get("model"),
            message_id=body.get("id"),
        )

    async def generate(self, state: WorkflowState) -> dict[str, Any]:
        request = state["request"]
        payload = build_payload(
            messages=[{"role": "user", "content": state["prompt"]}],
            model=request.model or self.settings.default_model,
            max_tokens=request.max_tokens or self.settings.default_max_tokens,
            temperature=request.temperature if request.temperature is not None else self.settings.default_temperature,
            system=request.system,
        )
        response = await self.llm_client.create_message(payload, state["api_key"])
        if not response.ok:
            raise UpstreamError(response.status_code, details=response.error_body())
        body = response.json()
        text = response.first_text()
        if not isinstance(body, dict):
            body = {}
        logger.info("generate.response chars=%d model=%s", len(text), body.get("model"))
        return {"text": text, "body": body}


def _route_after_generate(state: WorkflowState) -> str:
    if state["request"].response_format is ResponseFormat.STRUCTURED:
        return "resolve"
    return "done"


async def _prompt_node(state: WorkflowState) -> dict[str, Any]:
    request = state["request"]
    if request.response_format is ResponseFormat.PLAIN:
        return {"prompt": request.prompt}
    return {"prompt": build_structured_prompt(request.prompt, request.context)}


async def _generate_node(state: WorkflowState, config: RunnableConfig) -> dict[str, Any]:
    workflow: GenerationWorkflow = config["configurable"]["workflow"]
    return await workflow.generate(state)


async def _resolve_node(state: WorkflowState) -> dict[str, Any]:
    return {"resolution": resolve(state.get("text", ""), state["request"].context)}


@lru_cache(maxsize=1)
def compiled_graph():
    graph = StateGraph(WorkflowState)
    graph.add_node("prompt_step", _prompt_node)
    graph.add_node("generate_step", _generate_node)
    graph.add_node("resolve_step", _resolve_node)
    graph.add_edge(START, "prompt_step")
    graph.add_edge("prompt_step", "generate_step")
    graph.add_conditional_edges(
        "generate_step",
        _route_after_generate,
        {"resolve": "resolve_step", "done": END},
    )
    graph.add_edge("resolve_step", END)
    return graph.compile()
