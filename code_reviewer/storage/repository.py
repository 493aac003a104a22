"""
Review Repository Module

Persistence operations for reviews, their files and their results.

Design Decisions:
- A review, its files and its result are written in one transaction
- Listing eager-loads files and results to avoid per-row queries
- Database errors are rolled back and surfaced as ReviewStoreError
"""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from code_reviewer.logging_config import get_logger
from code_reviewer.models import CodeReviewResponse, FileContent, ReviewMode
from code_reviewer.storage.database import Review, ReviewFile, ReviewResult, User

logger = get_logger(__name__)


class ReviewStoreError(Exception):
    """Custom exception for persistence failures."""
    pass


class ReviewRepository:
    """
    Data access for saved reviews.

    Usage:
        repo = ReviewRepository(session)
        review = repo.save_review(name="Login flow", files=files, result=result)
    """

    def __init__(self, session: Session):
        """Bind the repository to a request-scoped session."""
        self.session = session

    def save_review(
        self,
        *,
        name: str,
        files: List[FileContent],
        result: CodeReviewResponse,
        description: Optional[str] = None,
        code: Optional[str] = None,
        language: str = "javascript",
        mode: ReviewMode = ReviewMode.GENERAL,
        user_id: Optional[int] = None
    ) -> Review:
        """
        Persist a review with its files and analysis result.

        Returns:
            The saved Review (files and results attached)

        Raises:
            ReviewStoreError: If the transaction fails
        """
        review = Review(
            user_id=user_id,
            name=name,
            description=description,
            code=code,
            language=language,
            mode=ReviewMode(mode).value,
        )
        review.files = [ReviewFile(path=f.path, content=f.content) for f in files]
        review.results = [ReviewResult(**result.sections())]

        try:
            self.session.add(review)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to save review", name=name, error=str(e))
            raise ReviewStoreError(f"Failed to save review: {e}") from e

        logger.info(
            "Review saved",
            review_id=review.id,
            num_files=len(files),
            mode=review.mode
        )
        return review

    def list_reviews(self) -> List[Review]:
        """Return all saved reviews, newest first."""
        try:
            return (
                self.session.query(Review)
                .options(selectinload(Review.files), selectinload(Review.results))
                .order_by(Review.created_at.desc(), Review.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("Failed to list reviews", error=str(e))
            raise ReviewStoreError(f"Failed to fetch reviews: {e}") from e

    def get_review(self, review_id: int) -> Optional[Review]:
        """Return one saved review, or None if it doesn't exist."""
        try:
            return (
                self.session.query(Review)
                .options(selectinload(Review.files), selectinload(Review.results))
                .filter(Review.id == review_id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error("Failed to fetch review", review_id=review_id, error=str(e))
            raise ReviewStoreError(f"Failed to fetch review: {e}") from e

    def create_user(self, username: str, password_hash: str) -> User:
        """
        Create a user account row.

        Raises:
            ReviewStoreError: If the username is taken or the insert fails
        """
        user = User(username=username, password_hash=password_hash)
        try:
            self.session.add(user)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise ReviewStoreError(f"Failed to create user '{username}': {e}") from e
        return user
