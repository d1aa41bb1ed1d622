"""
FastAPI server for KuralConsult.

Exposes the consultation endpoint used by the chat UI and a status endpoint
for the corpus and embedding cache.
"""

import asyncio
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import load_settings, resolve_allowed_origins
from .errors import KuralConsultError, ValidationError
from .pipeline import ResolutionPipeline
from .service import cache_status, get_pipeline

logger = logging.getLogger(__name__)

app = FastAPI(title="KuralConsult", description="Answer questions with a Thirukkural")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(resolve_allowed_origins()),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


class ConsultRequest(BaseModel):
    """Request model for a consultation."""

    question: str | None = None


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    return JSONResponse({"error": "Question is required"}, status_code=400)


@app.exception_handler(KuralConsultError)
async def handle_fatal_error(request: Request, exc: KuralConsultError):
    logger.error("server.fatal path=%s err=%s", request.url.path, exc)
    return JSONResponse(
        {"error": "Internal server error", "message": str(exc)}, status_code=500
    )


@app.post("/api/consult")
async def consult(
    request: ConsultRequest,
    pipeline: ResolutionPipeline = Depends(get_pipeline),
):
    """Resolve a question to a single kural."""
    question = (request.question or "").strip()
    if not question:
        raise ValidationError("Question is required")
    result = await asyncio.to_thread(pipeline.resolve, question)
    return result.to_response()


@app.get("/api/status")
async def status(pipeline: ResolutionPipeline = Depends(get_pipeline)):
    """Report corpus size and embedding cache coverage."""
    settings = load_settings()
    info = await asyncio.to_thread(cache_status, settings)
    return {
        "corpus_entries": len(pipeline.corpus),
        "embedding_table_size": len(pipeline.embedding_table),
        "semantic_enabled": pipeline.embedding_client is not None,
        "ai_keywords_enabled": pipeline.chat_client is not None,
        **info,
    }


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
