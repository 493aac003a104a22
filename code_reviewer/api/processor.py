"""
Review Processor Module

This module orchestrates one review submission: run the analysis, then
persist the review if the caller asked for it.

Design Decisions:
- Single responsibility: orchestrate analysis and persistence
- Nothing is written unless the analysis succeeded
- The blocking save runs in the threadpool, off the event loop
- Any failure is raised as ReviewProcessorError carrying the underlying message
"""

import time
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool

from code_reviewer.logging_config import get_logger
from code_reviewer.models import CodeReviewRequest, CodeReviewResponse, FileContent
from code_reviewer.services.ai_engine import AIReviewEngine, AIReviewError
from code_reviewer.storage.repository import ReviewRepository, ReviewStoreError

logger = get_logger(__name__)


class ReviewProcessorError(Exception):
    """Custom exception for review processing errors."""
    pass


class ReviewProcessor:
    """
    Coordinates a single review request.

    Usage:
        processor = ReviewProcessor(engine, repository)
        result = await processor.process(request, name, files)
    """

    def __init__(self, engine: AIReviewEngine, repository: Optional[ReviewRepository] = None):
        """Repository may be omitted when nothing will be saved."""
        self.engine = engine
        self.repository = repository

    async def process(
        self,
        request: CodeReviewRequest,
        name: str,
        files: List[FileContent]
    ) -> CodeReviewResponse:
        """
        Analyze the files and optionally save the review.

        Args:
            request: Validated review request
            name: Review name (already checked to be non-blank)
            files: Files to analyze (already checked to be non-empty)

        Returns:
            CodeReviewResponse; ``review_id`` is set when the review was saved

        Raises:
            ReviewProcessorError: If analysis or persistence fails
        """
        logger.info(
            "Starting code review",
            name=name,
            num_files=len(files),
            mode=request.mode.value,
            language=request.language,
            save=request.save
        )
        started = time.monotonic()

        try:
            result = await self.engine.analyze_code(files, request.mode, request.language)
        except AIReviewError as e:
            raise ReviewProcessorError(str(e)) from e

        if request.save:
            result.review_id = await run_in_threadpool(
                self._save, request, name, files, result
            )

        logger.info(
            "Code review completed",
            name=name,
            review_id=result.review_id,
            elapsed_ms=int((time.monotonic() - started) * 1000)
        )
        return result

    def _save(
        self,
        request: CodeReviewRequest,
        name: str,
        files: List[FileContent],
        result: CodeReviewResponse
    ) -> int:
        """Persist the review and return its id."""
        if self.repository is None:
            raise ReviewProcessorError("Review storage is not configured")

        try:
            review = self.repository.save_review(
                name=name,
                description=request.description,
                code=request.code if not request.files else None,
                language=request.language,
                mode=request.mode,
                files=files,
                result=result
            )
        except ReviewStoreError as e:
            raise ReviewProcessorError(str(e)) from e
        return review.id
