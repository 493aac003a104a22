"""
Request Validation Module

Checks that a review request carries something to review and a name,
and turns it into the file set sent to the model.

Design Decisions:
- Validate before any external call is made
- Reject with 400 and a message the client can show as-is
"""

from typing import List

from fastapi import HTTPException, status

from code_reviewer.logging_config import get_logger
from code_reviewer.models import CodeReviewRequest, FileContent
from code_reviewer.services.prompts import snippet_path

logger = get_logger(__name__)

MISSING_CODE_MESSAGE = "At least one file is required for review"
MISSING_NAME_MESSAGE = "Review name is required"


def collect_review_files(request: CodeReviewRequest) -> List[FileContent]:
    """
    Build the file set for a review request.

    A non-empty ``files`` list is used as given; otherwise a non-blank
    ``code`` snippet becomes a single pseudo-file named after the language.

    Raises:
        HTTPException: 400 if there is nothing to review
    """
    if request.files:
        return list(request.files)

    if request.code is not None and request.code.strip():
        return [FileContent(path=snippet_path(request.language), content=request.code)]

    logger.info("Rejected review request without code")
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=MISSING_CODE_MESSAGE
    )


def require_review_name(request: CodeReviewRequest) -> str:
    """
    Return the stripped review name.

    Raises:
        HTTPException: 400 if the name is missing or blank
    """
    if request.name is None or not request.name.strip():
        logger.info("Rejected review request without name")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=MISSING_NAME_MESSAGE
        )
    return request.name.strip()
