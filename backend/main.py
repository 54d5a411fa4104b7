"""
backend/main.py
===============

FastAPI backend for HealthAI Pro+.

Provides the HTTP endpoints around the answer pipeline:
- GET  /        - The chat front-end page
- POST /ask     - Send a message and get a structured answer
- GET  /health  - Health check endpoint

Run with:
    uvicorn backend.main:app --port 8080

Or via the console script:
    healthai-server
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import anyio.to_thread
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import INDEX_HTML_PATH, WORKER_THREADS
from core.service import QueryPipeline, build_default_pipeline

logger = logging.getLogger(__name__)


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class AskRequest(BaseModel):
    """Request model for the ask endpoint."""
    message: str = Field(..., description="User's message")

    @field_validator("message", mode="before")
    @classmethod
    def scalar_to_text(cls, value):
        # Numbers and booleans are read as their JSON text: 123 -> "123"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message must not be blank")
        return value


class AnswerResponse(BaseModel):
    """Response model for the ask endpoint."""
    timestamp: str = Field(..., description="ISO-8601 time the answer was produced")
    query: str = Field(..., description="The message that was asked")
    structured: bool = Field(..., description="Whether the reply is a full answer")
    reply: str = Field(..., description="Answer text")
    source: str = Field(..., description="Tier that answered: local, cache, gemini or none")


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    knowledge_base_entries: int
    cache_entries: int
    generator_configured: bool


# =============================================================================
# FASTAPI APP
# =============================================================================

def create_app(
    pipeline: Optional[QueryPipeline] = None,
    index_html_path: Path = INDEX_HTML_PATH,
    worker_threads: int = WORKER_THREADS,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        pipeline: Pipeline to serve; built from config on first use if None
        index_html_path: Front-end page served at "/"
        worker_threads: Size of the thread pool that runs /ask handlers
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Request handlers are sync and run in AnyIO's worker threads
        anyio.to_thread.current_default_thread_limiter().total_tokens = worker_threads
        get_pipeline(app)
        logger.info("HealthAI Pro+ ready with %d worker threads", worker_threads)
        yield

    app = FastAPI(
        title="HealthAI Pro+ API",
        description="Medical Q&A with cache, offline knowledge base and Gemini fallback",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.index_html_path = Path(index_html_path)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        raw = getattr(exc, "body", None)
        if isinstance(raw, (str, bytes)) and not raw.strip():
            return JSONResponse(status_code=400, content={"error": "Empty body"})
        if any(err.get("type") == "json_invalid" for err in exc.errors()):
            return JSONResponse(status_code=400, content={"error": "Invalid JSON"})
        # no body at all, or a JSON null
        if raw is None:
            return JSONResponse(status_code=400, content={"error": "Empty body"})
        return JSONResponse(status_code=400, content={"error": "Missing 'message'"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    @app.get("/", include_in_schema=False)
    def index(request: Request):
        """Serve the chat front-end page."""
        path = request.app.state.index_html_path
        if not path.exists():
            return JSONResponse(status_code=404, content={"error": "index.html not found"})
        return FileResponse(path, media_type="text/html; charset=utf-8")

    @app.post("/ask", response_model=AnswerResponse, tags=["Chat"])
    def ask(body: AskRequest, request: Request):
        """
        Answer a medical question.

        The pipeline tries, in order: greeting shortcut, cache, offline
        knowledge base, Gemini. The `source` field says which one answered.
        """
        result = get_pipeline(request.app).answer(body.message)
        return result.to_dict()

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(request: Request):
        """Report knowledge base size, live cache entries and Gemini status."""
        pipeline = get_pipeline(request.app)
        pipeline.cache.purge_expired()
        return HealthResponse(
            status="healthy",
            knowledge_base_entries=len(pipeline.knowledge_base),
            cache_entries=len(pipeline.cache),
            generator_configured=bool(getattr(pipeline.generator, "configured", False)),
        )

    return app


def get_pipeline(app: FastAPI) -> QueryPipeline:
    """Get or create the app's pipeline instance."""
    if app.state.pipeline is None:
        app.state.pipeline = build_default_pipeline()
    return app.state.pipeline


app = create_app()


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    from backend.cli import serve
    serve()
