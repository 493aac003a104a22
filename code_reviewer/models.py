"""
Data Models Module

This module defines the Pydantic models used throughout the application.
Strong typing ensures data integrity and provides clear contracts between components.

Design Decisions:
- Use Pydantic models for all data transfer objects
- Keep request models lenient; emptiness checks live in the API validation
  layer so they can answer with the right message
- Clear separation between request models, AI models and stored-review models
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enums
# =============================================================================

class ReviewMode(str, Enum):
    """Review focus; each mode selects its own prompt template."""
    GENERAL = "general"
    PERFORMANCE = "performance"
    SECURITY = "security"
    CLEAN_CODE = "clean-code"
    ARCHITECTURE = "architecture"


class SkipReason(str, Enum):
    """Why the ingestion routine left a file out."""
    INVALID_PATH = "invalid_path"
    EXCLUDED_DIRECTORY = "excluded_directory"
    UNSUPPORTED_EXTENSION = "unsupported_extension"
    FILE_TOO_LARGE = "file_too_large"
    TOTAL_SIZE_EXCEEDED = "total_size_exceeded"
    DUPLICATE = "duplicate"
    NOT_UTF8 = "not_utf8"
    UNREADABLE = "unreadable"


# =============================================================================
# Request Models
# =============================================================================

class FileContent(BaseModel):
    """A single source file submitted for review."""
    path: str
    content: str


class CodeReviewRequest(BaseModel):
    """
    Body of POST /api/review.

    Either ``code`` (a pasted snippet) or ``files`` must carry something to
    review; ``files`` wins when both are present.
    """
    code: Optional[str] = None
    files: Optional[List[FileContent]] = None
    name: Optional[str] = None
    description: str = ""
    mode: ReviewMode = ReviewMode.GENERAL
    language: str = "javascript"
    save: bool = False


class ParseSuggestionRequest(BaseModel):
    """Body of POST /api/suggestions/parse."""
    suggestion: str
    paths: List[str] = Field(default_factory=list)


class ApplySuggestionRequest(BaseModel):
    """Body of POST /api/suggestions/apply."""
    files: List[FileContent] = Field(min_length=1)
    suggestion: str


# =============================================================================
# AI Review Models
# =============================================================================

REVIEW_SECTIONS = ("suggestions", "improvements", "security", "dependencies", "architecture")


class CodeReviewResponse(BaseModel):
    """
    Structured result of one analysis call.

    Every section is a list of markdown strings. Sections the model leaves
    out come back empty; non-string items are turned into strings.
    """
    suggestions: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    security: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    architecture: List[str] = Field(default_factory=list)
    review_id: Optional[int] = None

    @field_validator(*REVIEW_SECTIONS, mode="before")
    @classmethod
    def coerce_items(cls, v: Any) -> List[str]:
        """Accept null, a single string or mixed items as a list of strings."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if not isinstance(v, list):
            raise ValueError(f"Expected a list of strings, got {type(v).__name__}")
        return [
            item if isinstance(item, str) else json.dumps(item, ensure_ascii=False)
            for item in v
            if item is not None
        ]

    def sections(self) -> dict:
        """Return just the five result arrays."""
        return {name: list(getattr(self, name)) for name in REVIEW_SECTIONS}


# =============================================================================
# Suggestion Models
# =============================================================================

class ParsedSuggestion(BaseModel):
    """
    What the markdown heuristic could pull out of one suggestion string.

    Attributes:
        description: Prose preceding the first code block
        file_path: Target file the suggestion refers to, if any
        line_start: First line mentioned ("On line 42", "Lines 15-20")
        line_end: Last line mentioned (equals line_start for a single line)
        code: Suggested replacement code
        original_code: Code the suggestion replaces, when given as a
            before/after pair
        language: Language tag of the chosen code block
    """
    description: str = ""
    file_path: Optional[str] = None
    line_start: Optional[int] = None
    line_end: Optional[int] = None
    code: Optional[str] = None
    original_code: Optional[str] = None
    language: Optional[str] = None


class ApplySuggestionResponse(BaseModel):
    """Result of applying a suggestion to a file set."""
    path: str
    files: List[FileContent]


# =============================================================================
# Ingestion Models
# =============================================================================

class SkippedFile(BaseModel):
    """A file left out of an ingestion batch."""
    path: str
    reason: SkipReason
    size: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)


class IngestionResult(BaseModel):
    """Outcome of walking a set of dropped files or directories."""
    files: List[FileContent] = Field(default_factory=list)
    skipped: List[SkippedFile] = Field(default_factory=list)
    total_size: int = 0

    @property
    def paths(self) -> List[str]:
        """Paths of the accepted files, in order."""
        return [f.path for f in self.files]


# =============================================================================
# Stored Review Models
# =============================================================================

class ReviewFileOut(BaseModel):
    """A file saved alongside a review."""
    id: int
    review_id: int
    path: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewResultOut(BaseModel):
    """A saved analysis result."""
    id: int
    review_id: int
    suggestions: List[str]
    improvements: List[str]
    security: List[str]
    dependencies: List[str]
    architecture: List[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewOut(BaseModel):
    """A saved review with its files and results."""
    id: int
    user_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    code: Optional[str] = None
    language: str
    mode: ReviewMode
    created_at: datetime
    files: List[ReviewFileOut] = Field(default_factory=list)
    results: List[ReviewResultOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
