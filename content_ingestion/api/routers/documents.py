"""
Document API endpoints.

Routes:
- POST /documents/text - Ingest raw text
- POST /documents/url - Fetch and ingest a web page
- POST /documents/upload - Ingest an uploaded PDF
- GET /documents - List the caller's documents
- GET /documents/{id} - Get one document
- POST /documents/{id}/reingest - Re-run ingestion
- DELETE /documents/{id} - Delete a document with its chunks and vectors

Every request is scoped to the owner named by the X-Owner-Id header.
Ingestion runs to completion inside the request.

Dependencies: fastapi, content_ingestion.core.document_processing, content_ingestion.models
System role: Document HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from content_ingestion.api.deps import get_orchestrator, get_owner_id, get_service_container
from content_ingestion.core.document_processing.container import ServiceContainer
from content_ingestion.core.document_processing.entrypoint import IngestionOrchestrator
from content_ingestion.core.document_processing.models import (
    DocumentRecord,
    IngestionResult,
    SourceSubmission,
)
from content_ingestion.core.exceptions import DocumentNotFoundError, IngestionError
from content_ingestion.models.document import (
    DeletionResponse,
    DocumentListResponse,
    DocumentResponse,
    IngestionResponse,
    TextIngestRequest,
    UrlIngestRequest,
)

from .error_mapping import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _ingestion_response(result: IngestionResult) -> IngestionResponse:
    return IngestionResponse(**result.model_dump())


def _document_response(record: DocumentRecord) -> DocumentResponse:
    return DocumentResponse(**record.model_dump())


async def _get_owned_document(
    orchestrator: IngestionOrchestrator,
    document_id: UUID,
    owner_id: str,
) -> DocumentRecord:
    """Load a document, hiding documents of other owners as not found."""
    record = await orchestrator.get_status(document_id)
    if record.owner_id != owner_id:
        raise DocumentNotFoundError(str(document_id))
    return record


@router.post("/text", response_model=IngestionResponse)
async def ingest_text(
    request: TextIngestRequest,
    owner_id: str = Depends(get_owner_id),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> IngestionResponse:
    """
    Ingest raw text.

    Raises:
        HTTPException(400): Content outside the length bounds
        HTTPException(429): Owner quota exhausted
    """
    submission = SourceSubmission.from_text(request.content, title=request.title)
    try:
        result = await orchestrator.ingest(owner_id, submission)
    except IngestionError as e:
        raise to_http_exception(e)
    return _ingestion_response(result)


@router.post("/url", response_model=IngestionResponse)
async def ingest_url(
    request: UrlIngestRequest,
    owner_id: str = Depends(get_owner_id),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> IngestionResponse:
    """
    Fetch a web page and ingest its readable text.

    Raises:
        HTTPException(400): URL rejected (syntax, scheme or blocked address)
        HTTPException(429): Owner quota exhausted
    """
    submission = SourceSubmission.from_url(request.url, title=request.title)
    try:
        result = await orchestrator.ingest(owner_id, submission)
    except IngestionError as e:
        raise to_http_exception(e)
    return _ingestion_response(result)


@router.post("/upload", response_model=IngestionResponse)
async def ingest_upload(
    file: UploadFile = File(...),
    title: str | None = Form(default=None),
    owner_id: str = Depends(get_owner_id),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    container: ServiceContainer = Depends(get_service_container),
) -> IngestionResponse:
    """
    Ingest an uploaded PDF document.

    Raises:
        HTTPException(400): Not a valid PDF or too large
        HTTPException(429): Owner quota exhausted
    """
    max_bytes = container.settings.ingestion.max_document_bytes
    # One byte past the limit is enough for the size check to reject it
    data = await file.read(max_bytes + 1)
    await file.close()

    submission = SourceSubmission.from_document(data, filename=file.filename, title=title)
    try:
        result = await orchestrator.ingest(owner_id, submission)
    except IngestionError as e:
        raise to_http_exception(e)
    return _ingestion_response(result)


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    limit: int | None = None,
    offset: int = 0,
    owner_id: str = Depends(get_owner_id),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> DocumentListResponse:
    """List the caller's documents, newest first."""
    if (limit is not None and limit < 1) or offset < 0:
        raise HTTPException(status_code=400, detail="limit must be positive and offset non-negative")
    records = await orchestrator.list_documents(owner_id, limit=limit, offset=offset)
    documents = [_document_response(record) for record in records]
    return DocumentListResponse(documents=documents, total=len(documents))


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    owner_id: str = Depends(get_owner_id),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> DocumentResponse:
    """
    Get a document with its current status.

    Raises:
        HTTPException(404): Document not found
    """
    try:
        record = await _get_owned_document(orchestrator, document_id, owner_id)
    except IngestionError as e:
        raise to_http_exception(e)
    return _document_response(record)


@router.post("/{document_id}/reingest", response_model=IngestionResponse)
async def reingest_document(
    document_id: UUID,
    request: TextIngestRequest | None = None,
    owner_id: str = Depends(get_owner_id),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> IngestionResponse:
    """
    Re-run ingestion for a document.

    URL documents are re-fetched from their stored URL. Text documents
    need the text again in the request body.

    Raises:
        HTTPException(400): Source material missing or invalid
        HTTPException(404): Document not found
        HTTPException(409): Document is being uploaded or deleted
    """
    submission = None
    if request is not None:
        submission = SourceSubmission.from_text(request.content, title=request.title)
    try:
        await _get_owned_document(orchestrator, document_id, owner_id)
        result = await orchestrator.reingest(document_id, submission)
    except IngestionError as e:
        raise to_http_exception(e)
    return _ingestion_response(result)


@router.delete("/{document_id}", response_model=DeletionResponse)
async def delete_document(
    document_id: UUID,
    owner_id: str = Depends(get_owner_id),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
) -> DeletionResponse:
    """
    Delete a document with its chunks and vectors.

    A deletion that cannot finish returns deleted=false and leaves the
    document in deletion_pending; repeat the request to resume it.

    Raises:
        HTTPException(404): Document not found
    """
    try:
        await _get_owned_document(orchestrator, document_id, owner_id)
        result = await orchestrator.delete(document_id)
    except IngestionError as e:
        raise to_http_exception(e)

    logger.info(
        f"{__name__}:delete_document - Deletion requested",
        extra={"document_id": str(document_id), "deleted": result.deleted},
    )
    return DeletionResponse(**result.model_dump())
