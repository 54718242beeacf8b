"""Query Service: answers questions and serves Q&A history."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import PlainTextResponse, Response

from eventrag.api.errors import register_error_handlers
from eventrag.api.health import check_all_dependencies, check_readiness
from eventrag.core.config import settings
from eventrag.core.dependencies import get_owner_id, services
from eventrag.core.exceptions import RAGError
from eventrag.models.api import (
    AnswerResponse,
    ClearHistoryResponse,
    HistoryResponse,
    QuestionRequest,
)
from eventrag.monitoring.metrics import (
    query_counter,
    query_errors_total,
    query_latency_seconds,
)
from eventrag.services.history import HistoryService

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    await services.initialize()
    logger.info("Query Service started")
    yield
    await services.shutdown()
    logger.info("Query Service stopped")


app = FastAPI(title="Query Service", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)


@app.post("/api/events/{event_id}/ask", response_model=AnswerResponse)
async def ask(
    event_id: str,
    request: QuestionRequest,
    owner_id: str = Depends(get_owner_id),
) -> AnswerResponse:
    """
    Answer a question from the event's documents.

    Args:
        event_id: Event to search.
        request: Question request.
        owner_id: Caller identity.

    Returns:
        Answer with the keys of the documents it was grounded on.
    """
    start_time = time.time()
    query_counter.inc()

    try:
        result = await services.query_processor.answer_question(
            owner_id, event_id, request.question, top_k=request.top_k
        )
    except RAGError as e:
        query_errors_total.labels(code=e.code).inc()
        raise

    latency_seconds = time.time() - start_time
    query_latency_seconds.observe(latency_seconds)
    logger.info(f"Question processed in {latency_seconds * 1000:.2f}ms")

    return AnswerResponse(
        answer=result.answer,
        source_keys=result.source_keys,
        grounded=result.grounded,
        latency_ms=latency_seconds * 1000,
        created_at=result.created_at,
    )


@app.get("/api/events/{event_id}/history")
async def list_history(
    event_id: str,
    download: bool = Query(False),
    owner_id: str = Depends(get_owner_id),
):
    """
    List the event's Q&A history, most recent first.

    Args:
        event_id: Event scope.
        download: Return a plain-text transcript attachment instead of JSON.
        owner_id: Caller identity.

    Returns:
        History records or the transcript.
    """
    await services.event_service.require(owner_id, event_id)
    records = await services.history_service.list(owner_id, event_id)

    if download:
        return PlainTextResponse(
            HistoryService.export_text(records),
            headers={
                "Content-Disposition": "attachment; filename=chat-history.txt"},
        )
    return HistoryResponse(records=records)


@app.delete("/api/history", response_model=ClearHistoryResponse)
async def clear_history(
    event_id: Optional[str] = Query(None),
    owner_id: str = Depends(get_owner_id),
) -> ClearHistoryResponse:
    """
    Delete Q&A history.

    Without ``event_id`` the caller's whole history is removed.

    Args:
        event_id: Optional event scope.
        owner_id: Caller identity.

    Returns:
        Number of deleted records.
    """
    if event_id is not None:
        await services.event_service.require(owner_id, event_id)
    deleted = await services.history_service.clear(owner_id, event_id)
    return ClearHistoryResponse(deleted=deleted)


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health() -> dict:
    """
    Health check endpoint with dependency verification.

    Returns:
        Health status with service dependencies.
    """
    result = await check_all_dependencies(services)
    return {"service": "query-service", **result}


@app.get("/ready")
async def readiness() -> dict:
    """
    Readiness check endpoint.

    Returns:
        Readiness status.
    """
    result = await check_readiness(services)
    return {"service": "query-service", **result}
