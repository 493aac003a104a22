"""
API Package

This package contains the HTTP layer:
- handler: FastAPI route handlers
- validation: review request checks
- processor: review orchestration (analysis + persistence)
"""

from code_reviewer.api.handler import router

__all__ = ["router"]
