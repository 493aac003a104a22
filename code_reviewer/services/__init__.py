"""
Services Package

This package contains the service modules of the code reviewer:
- prompts: review-mode prompt templates and system message assembly
- ai_engine: AI review engine
- suggestions: markdown suggestion parsing and application
- file_ingest: file and directory ingestion
"""

from code_reviewer.services.ai_engine import AIReviewEngine, AIReviewError, get_ai_engine
from code_reviewer.services.file_ingest import (
    FileCollector,
    IngestionError,
    ingest_directory,
    ingest_upload_files,
    ingest_uploads,
)
from code_reviewer.services.prompts import REVIEW_PROMPTS, build_system_message
from code_reviewer.services.suggestions import (
    SuggestionError,
    apply_suggestion,
    extract_code,
    extract_file_path,
    group_suggestions_by_file,
    parse_suggestion,
)

__all__ = [
    "AIReviewEngine",
    "AIReviewError",
    "get_ai_engine",
    "FileCollector",
    "IngestionError",
    "ingest_directory",
    "ingest_upload_files",
    "ingest_uploads",
    "REVIEW_PROMPTS",
    "build_system_message",
    "SuggestionError",
    "apply_suggestion",
    "extract_code",
    "extract_file_path",
    "group_suggestions_by_file",
    "parse_suggestion",
]
