"""Mapping of pipeline errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from eventrag.core.exceptions import RAGError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "invalid_request": 400,
    "invalid_scope": 404,
    "document_not_found": 404,
    "empty_scope": 409,
    "unsupported_format": 415,
    "extraction_failure": 422,
    "embedding_failure": 502,
    "generation_failure": 502,
    "partial_ingestion": 502,
    "storage_failure": 503,
    "cache_failure": 503,
}


def status_for(error: RAGError) -> int:
    return STATUS_BY_CODE.get(error.code, 500)


async def rag_error_handler(request: Request, exc: RAGError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    """Install the error handlers on an app."""
    app.add_exception_handler(RAGError, rag_error_handler)
