"""
API Handler Module

This module defines the FastAPI endpoints for submitting and browsing
code reviews, ingesting uploaded files and working with suggestions.

Design Decisions:
- Validate requests before calling the model (400 with a readable message)
- Surface analysis and storage failures as 500 with the underlying message
- Engine and session come from dependencies so they can be swapped in tests
- Database-only routes are plain functions so FastAPI runs them in its
  threadpool instead of on the event loop
- Uploads are measured first and read only once they pass the limits
"""

import os
from typing import Callable, List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from code_reviewer.api.processor import ReviewProcessor, ReviewProcessorError
from code_reviewer.api.validation import collect_review_files, require_review_name
from code_reviewer.logging_config import get_logger
from code_reviewer.models import (
    ApplySuggestionRequest,
    ApplySuggestionResponse,
    CodeReviewRequest,
    CodeReviewResponse,
    IngestionResult,
    ParsedSuggestion,
    ParseSuggestionRequest,
    ReviewOut,
)
from code_reviewer.services.ai_engine import AIReviewEngine, get_ai_engine
from code_reviewer.services.file_ingest import (
    FileCollector,
    get_file_collector,
    ingest_upload_files,
)
from code_reviewer.services.suggestions import (
    SuggestionError,
    apply_suggestion,
    parse_suggestion,
)
from code_reviewer.storage.database import get_db
from code_reviewer.storage.repository import ReviewRepository, ReviewStoreError

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["reviews"])


@router.post(
    "/review",
    response_model=CodeReviewResponse,
    response_model_exclude_none=True
)
async def create_review(
    request: CodeReviewRequest,
    engine: AIReviewEngine = Depends(get_ai_engine),
    session: Session = Depends(get_db)
) -> CodeReviewResponse:
    """
    Review submitted code.

    Accepts either a pasted ``code`` snippet or a list of ``files``. The
    review and its result are stored when ``save`` is true.
    """
    files = collect_review_files(request)
    name = require_review_name(request)

    logger.info(
        "Received review request",
        name=name,
        num_files=len(files),
        mode=request.mode.value,
        language=request.language
    )

    processor = ReviewProcessor(engine, ReviewRepository(session))
    try:
        return await processor.process(request, name, files)
    except ReviewProcessorError as e:
        logger.error("Error in code review", name=name, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Failed to analyze code"
        )


@router.get("/reviews", response_model=List[ReviewOut])
def list_reviews(session: Session = Depends(get_db)) -> List[ReviewOut]:
    """List saved reviews with their files and results, newest first."""
    try:
        reviews = ReviewRepository(session).list_reviews()
    except ReviewStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    return [ReviewOut.model_validate(r) for r in reviews]


@router.get("/reviews/{review_id}", response_model=ReviewOut)
def get_review(review_id: int, session: Session = Depends(get_db)) -> ReviewOut:
    """Fetch one saved review by id."""
    try:
        review = ReviewRepository(session).get_review(review_id)
    except ReviewStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )

    if review is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Review not found"
        )
    return ReviewOut.model_validate(review)


def _upload_size(upload: UploadFile) -> int:
    """Size of an upload without loading it into memory."""
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def _upload_reader(upload: UploadFile) -> Callable[[], bytes]:
    """Deferred read of an upload's spooled content."""
    def read() -> bytes:
        upload.file.seek(0)
        return upload.file.read()
    return read


@router.post("/files/ingest", response_model=IngestionResult)
def ingest_files(
    files: List[UploadFile] = File(...),
    allow_directories: bool = Form(True),
    collector: FileCollector = Depends(get_file_collector)
) -> IngestionResult:
    """
    Filter uploaded files down to a reviewable file set.

    Directory uploads keep their relative paths in the file names. Content
    is only read for files that pass the path, extension and size checks.
    """
    uploads = [
        (upload.filename or "", _upload_size(upload), _upload_reader(upload))
        for upload in files
    ]

    result = ingest_upload_files(
        uploads,
        allow_directories=allow_directories,
        collector=collector
    )

    if not result.files:
        logger.warning(
            "No valid files were found in upload",
            num_uploaded=len(uploads),
            num_skipped=len(result.skipped)
        )
    return result


@router.post("/suggestions/parse", response_model=ParsedSuggestion)
async def parse_suggestion_text(request: ParseSuggestionRequest) -> ParsedSuggestion:
    """Extract target file, line range and code from one suggestion."""
    return parse_suggestion(request.suggestion, request.paths)


@router.post("/suggestions/apply", response_model=ApplySuggestionResponse)
async def apply_suggestion_text(request: ApplySuggestionRequest) -> ApplySuggestionResponse:
    """Apply one suggestion's code to the file it targets."""
    try:
        path, files = apply_suggestion(request.files, request.suggestion)
    except SuggestionError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return ApplySuggestionResponse(path=path, files=files)
