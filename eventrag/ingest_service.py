"""Ingest Service: manages events and ingests their documents."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from eventrag.api.errors import register_error_handlers
from eventrag.api.health import check_all_dependencies, check_readiness
from eventrag.core.config import settings
from eventrag.core.dependencies import get_owner_id, services
from eventrag.models.api import (
    DocumentListResponse,
    DocumentUpload,
    EventArchive,
    EventCreate,
    EventListResponse,
    EventUpdate,
)
from eventrag.models.event import Event
from eventrag.models.response import DeleteResult, IngestResult

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    await services.initialize()
    logger.info("Ingest Service started")
    yield
    await services.shutdown()
    logger.info("Ingest Service stopped")


app = FastAPI(title="Ingest Service", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)


@app.get("/api/events", response_model=EventListResponse)
async def list_events(
    include_archived: bool = Query(True),
    owner_id: str = Depends(get_owner_id),
) -> EventListResponse:
    """List the caller's events."""
    events = await services.event_service.list(owner_id, include_archived=include_archived)
    return EventListResponse(events=events)


@app.post("/api/events", response_model=Event, status_code=201)
async def create_event(
    event: EventCreate, owner_id: str = Depends(get_owner_id)
) -> Event:
    """Create an event."""
    return await services.event_service.create(owner_id, event.name)


@app.get("/api/events/{event_id}", response_model=Event)
async def get_event(event_id: str, owner_id: str = Depends(get_owner_id)) -> Event:
    """Get one event."""
    return await services.event_service.require(owner_id, event_id)


@app.patch("/api/events/{event_id}", response_model=Event)
async def rename_event(
    event_id: str, event: EventUpdate, owner_id: str = Depends(get_owner_id)
) -> Event:
    """Rename an event."""
    return await services.event_service.rename(owner_id, event_id, event.name)


@app.patch("/api/events/{event_id}/archive", response_model=Event)
async def archive_event(
    event_id: str, body: EventArchive, owner_id: str = Depends(get_owner_id)
) -> Event:
    """Archive or restore an event."""
    return await services.event_service.set_archived(owner_id, event_id, body.archived)


@app.delete("/api/events/{event_id}")
async def delete_event(event_id: str, owner_id: str = Depends(get_owner_id)) -> dict:
    """
    Delete an event with its documents, chunks and history.

    Args:
        event_id: Event id.
        owner_id: Caller identity.

    Returns:
        Number of chunks removed.
    """
    chunks_deleted = await services.ingest_processor.delete_event(owner_id, event_id)
    return {"deleted": True, "chunks_deleted": chunks_deleted}


@app.get("/api/events/{event_id}/documents", response_model=DocumentListResponse)
async def list_documents(
    event_id: str, owner_id: str = Depends(get_owner_id)
) -> DocumentListResponse:
    """List an event's documents, newest first."""
    await services.event_service.require(owner_id, event_id)
    documents = await services.database.list_documents(owner_id, event_id)
    return DocumentListResponse(documents=documents, total=len(documents))


@app.post("/api/events/{event_id}/documents", response_model=IngestResult, status_code=201)
async def upload_document(
    event_id: str,
    document: DocumentUpload,
    owner_id: str = Depends(get_owner_id),
) -> IngestResult:
    """
    Register an uploaded file and ingest its extracted text.

    Args:
        event_id: Event the file belongs to.
        document: File name, extracted text and upload metadata.
        owner_id: Caller identity.

    Returns:
        Document key and number of stored chunks.
    """
    return await services.ingest_processor.ingest_upload(
        owner_id,
        event_id,
        filename=document.filename,
        content=document.content,
        mimetype=document.mimetype,
        size=document.size,
    )


@app.delete("/api/events/{event_id}/documents", response_model=DeleteResult)
async def delete_document(
    event_id: str,
    key: str = Query(..., min_length=1),
    owner_id: str = Depends(get_owner_id),
) -> DeleteResult:
    """Delete a document with its chunks and the history that cites it."""
    return await services.ingest_processor.delete_document(owner_id, event_id, key)


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
    return {"service": "ingest-service", **result}


@app.get("/ready")
async def readiness() -> dict:
    """
    Readiness check endpoint.

    Returns:
        Readiness status.
    """
    result = await check_readiness(services)
    return {"service": "ingest-service", **result}
