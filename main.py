import contextlib
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
import uvicorn  # For the if __name__ == "__main__": block
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.services.image_service import RecipeImageService
from app.services.llm_service import GeminiRecipeClient, RecipeGenerationService
from app.services.recipe_store import SavedRecipeStore
from core.config import ConfigurationError, Settings, get_settings
from core.database import SupabaseDatabase
from core.logger import configure_logging, get_logger
from routers import recipe_router, saved_recipe_router

load_dotenv()  # Load environment variables from .env file

logger = get_logger("api")

INVALID_JSON_MESSAGE = "Invalid JSON body received. Please ensure your request body is valid JSON."


# --------- tiny helpers for rails ---------
def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# central error shape
def _error_response(
    request: Request, *, status_code: int, message: str, code: str,
    extra: Optional[dict[str, Any]] = None, headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    rid = getattr(request.state, "req_id", None) or "unknown"
    content = {"message": message, "code": code, "trace": rid, **(extra or {})}
    return JSONResponse(status_code=status_code, content=content, headers={**(headers or {}), "X-Req-Id": rid})


def _describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "Invalid request body. " + "; ".join(parts)


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[SupabaseDatabase] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    llm: Optional[GeminiRecipeClient] = None,
    image_service: Optional[RecipeImageService] = None,
) -> FastAPI:
    """Composition root: every shared resource is built here and hung on app.state."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    database = database or SupabaseDatabase(settings)
    http_client = http_client or httpx.AsyncClient()
    llm = llm or GeminiRecipeClient(settings)
    image_service = image_service or RecipeImageService(settings, llm, database)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("recipify api starting", extra={"env": settings.APP_ENV})
        yield
        await http_client.aclose()
        await database.close()
        logger.info("recipify api stopped")

    app = FastAPI(title="Recipify API", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.http_client = http_client
    app.state.generation_service = RecipeGenerationService(settings, llm, image_service)
    app.state.recipe_store = SavedRecipeStore(database, settings.SAVED_RECIPES_TABLE)

    app.include_router(recipe_router.router)
    app.include_router(saved_recipe_router.router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*", "X-Req-Id"],
        expose_headers=["X-Req-Id"],
    )

    @app.middleware("http")
    async def _reqid_and_access_log(request: Request, call_next):
        # 1) assign/propagate req-id
        req_id = request.headers.get("X-Req-Id") or str(uuid.uuid4())
        request.state.req_id = req_id

        # 2) timing  path/method
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers["X-Req-Id"] = req_id
            return response
        finally:
            latency_ms = round((time.perf_counter() - start) * 1000.0, 2)
            logger.info(
                "request",
                extra={"reqId": req_id, "method": request.method, "path": request.url.path,
                       "status": status, "latency": latency_ms},
            )

    # ---------- exception handlers: consistent error shape ----------
    @app.exception_handler(HTTPException)
    async def _http_exc_handler(request: Request, exc: HTTPException):
        if isinstance(exc.detail, dict):
            extra = dict(exc.detail)
            message = str(extra.pop("message", f"HTTP {exc.status_code}"))
        else:
            extra, message = None, str(exc.detail)
        return _error_response(
            request, status_code=exc.status_code, message=message,
            code=f"HTTP_{exc.status_code}", extra=extra, headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning(
            "request validation failed",
            extra={"reqId": getattr(request.state, "req_id", None), "path": request.url.path, "validationErrors": errors},
        )
        if any(e.get("type") == "json_invalid" for e in errors):
            return _error_response(request, status_code=400, message=INVALID_JSON_MESSAGE, code="INVALID_JSON")
        return _error_response(
            request, status_code=400, message=_describe_validation_errors(errors), code="VALIDATION_ERROR",
        )

    @app.exception_handler(ConfigurationError)
    async def _config_handler(request: Request, exc: ConfigurationError):
        logger.error(str(exc), extra={"reqId": getattr(request.state, "req_id", None), "path": request.url.path})
        return _error_response(request, status_code=500, message=str(exc), code="CONFIGURATION_ERROR")

    @app.exception_handler(Exception)
    async def _unhandled_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled error",
            exc_info=exc,
            extra={"reqId": getattr(request.state, "req_id", None), "path": request.url.path},
        )
        return _error_response(request, status_code=500, message="Internal Server Error", code="INTERNAL_SERVER_ERROR")

    # ---------------- Health & Readiness ----------------
    @app.get("/healthz")
    def healthz():
        return {
            "status": "ok",
            "app": "recipify",
            "commit": os.getenv("GIT_SHA", "dev"),
            "time": _now_iso(),
        }

    @app.get("/readyz")
    def readyz():
        # configuration only, no network round-trips
        deps = {
            "db": "connected" if database.is_connected else ("ok" if database.is_configured else "missing"),
            "gemini_key": "ok" if settings.GEMINI_API_KEY else "missing",
        }
        overall = "ready" if deps["db"] != "missing" and deps["gemini_key"] == "ok" else "degraded"
        return {"status": overall, "app": "recipify", "time": _now_iso(), "deps": deps}

    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))  # Default to 8000 if PORT not set
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
