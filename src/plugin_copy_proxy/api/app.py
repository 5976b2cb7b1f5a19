import logging
from datetime import datetime, timezone

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from plugin_copy_proxy.api.schemas import ContentLibraryRequest, GenerationRequest, ProxyRequest
from plugin_copy_proxy.config import Settings, get_settings
from plugin_copy_proxy.errors import InvalidRequestError, ProxyError
from plugin_copy_proxy.providers.llm.anthropic import AnthropicClient
from plugin_copy_proxy.service.generator import GenerateService
from plugin_copy_proxy.service.proxy import ProxyService
from plugin_copy_proxy.workflow.generation import GenerationWorkflow
from plugin_copy_proxy.workflow.library import ContentLibraryBuilder

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)
CORS_HEADERS = get_settings().cors_headers()

app = FastAPI(title="plugin-copy-proxy", version="0.1.0")


def get_llm_client(settings: Settings = Depends(get_settings)) -> AnthropicClient:
    return AnthropicClient(settings)


def get_proxy_service(
    settings: Settings = Depends(get_settings),
    llm_client: AnthropicClient = Depends(get_llm_client),
) -> ProxyService:
    return ProxyService(settings, llm_client)


def get_generate_service(
    settings: Settings = Depends(get_settings),
    llm_client: AnthropicClient = Depends(get_llm_client),
) -> GenerateService:
    return GenerateService(
        workflow=GenerationWorkflow(settings, llm_client),
        library_builder=ContentLibraryBuilder(settings, llm_client),
    )


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    logger.info("request.error path=%s status=%d error=%s", request.url.path, exc.status_code, exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.as_payload())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        allow = (exc.headers or {}).get("Allow", "")
        methods = sorted(method.strip() for method in allow.split(",") if method.strip() and method.strip() != "HEAD")
        message = f"Only {', '.join(methods)} requests are supported" if methods else "Method not supported"
        return JSONResponse(
            status_code=405,
            content={"error": "Method not allowed", "message": message},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Request failed", "message": str(exc.detail)},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems: list[str] = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        problems.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    error = InvalidRequestError("; ".join(problems) or "Request body is invalid")
    return JSONResponse(status_code=error.status_code, content=error.as_payload())


def server_api_key(settings: Settings = Depends(get_settings)) -> str:
    # Resolved as a dependency so a missing key is reported before body validation.
    return settings.require_api_key()


def caller_api_key(request: Request) -> str:
    api_key = request.headers.get("x-api-key", "").strip()
    if not api_key:
        authorization = request.headers.get("authorization", "")
        if authorization.lower().startswith("bearer "):
            api_key = authorization[7:].strip()
    if not api_key:
        raise InvalidRequestError(
            "Please provide your Claude API key in x-api-key header or Authorization header",
            error="Missing API key",
        )
    return api_key


@app.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok"}


@app.get("/api/debug")
async def debug(settings: Settings = Depends(get_settings)) -> dict:
    key = settings.anthropic_api_key.strip()
    return {
        "hasApiKey": bool(key),
        "keyLength": len(key),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/api/claude")
async def claude(
    payload: ProxyRequest,
    api_key: str = Depends(server_api_key),
    service: ProxyService = Depends(get_proxy_service),
) -> JSONResponse:
    status_code, body = await service.forward(payload, api_key)
    return JSONResponse(status_code=status_code, content=body)


@app.post("/api/proxy")
async def proxy(
    payload: ProxyRequest,
    api_key: str = Depends(caller_api_key),
    service: ProxyService = Depends(get_proxy_service),
) -> JSONResponse:
    status_code, body = await service.forward(payload, api_key)
    return JSONResponse(status_code=status_code, content=body)


@app.post("/api/generate")
async def generate(
    payload: GenerationRequest,
    api_key: str = Depends(server_api_key),
    service: GenerateService = Depends(get_generate_service),
) -> dict:
    return await service.generate(payload, api_key)


@app.post("/api/generate-content")
async def generate_content(
    payload: ContentLibraryRequest | None = Body(default=None),
    api_key: str = Depends(server_api_key),
    service: GenerateService = Depends(get_generate_service),
) -> dict:
    return await service.build_library(payload or ContentLibraryRequest(), api_key)


def main() -> None:
    import uvicorn

    uvicorn.run("plugin_copy_proxy.api.app:app", host="0.0.0.0", port=8000)
