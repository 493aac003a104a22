"""
Test Configuration

Pytest configuration and fixtures for the test suite.
"""

import os

# Settings are read at import time; point them at test values first
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_JSON_FORMAT"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from code_reviewer.main import app
from code_reviewer.models import CodeReviewResponse, FileContent, ReviewMode
from code_reviewer.services.ai_engine import AIReviewError, get_ai_engine
from code_reviewer.storage.database import Base, get_engine, get_session_factory


class FakeAIEngine:
    """Stands in for AIReviewEngine; records calls and returns a canned result."""

    def __init__(self, result: CodeReviewResponse):
        self.result = result
        self.error: Optional[Exception] = None
        self.calls: List[dict] = []

    async def analyze_code(
        self,
        files: List[FileContent],
        mode: ReviewMode = ReviewMode.GENERAL,
        language: str = "javascript"
    ) -> CodeReviewResponse:
        self.calls.append({"files": files, "mode": mode, "language": language})
        if self.error is not None:
            raise self.error
        return self.result.model_copy(deep=True)


@pytest.fixture
def sample_review_result() -> CodeReviewResponse:
    """A typical model response with all five sections populated."""
    return CodeReviewResponse(
        suggestions=[
            "On line 2: Use const instead of let\n```javascript\nconst total = 0;\n```"
        ],
        improvements=[
            "Lines 3-5: Replace the loop with reduce\n```javascript\nconst total = items.reduce((a, b) => a + b, 0);\n```"
        ],
        security=["On line 7: Avoid eval on user input"],
        dependencies=["Consider using lodash for array helpers"],
        architecture=["Extract the summing logic into a utility module"],
    )


@pytest.fixture
def fake_engine(sample_review_result: CodeReviewResponse) -> FakeAIEngine:
    return FakeAIEngine(sample_review_result)


@pytest.fixture
def failing_engine(sample_review_result: CodeReviewResponse) -> FakeAIEngine:
    engine = FakeAIEngine(sample_review_result)
    engine.error = AIReviewError("Failed to analyze code: upstream timeout")
    return engine


@pytest.fixture(autouse=True)
def fresh_database() -> Generator[None, None, None]:
    """Give every test empty tables."""
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(fake_engine: FakeAIEngine) -> Generator[TestClient, None, None]:
    """Create a test client whose AI engine is the fake."""
    app.dependency_overrides[get_ai_engine] = lambda: fake_engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_files() -> List[dict]:
    return [
        {"path": "src/sum.js", "content": "let total = 0;\nfor (const i of items) {\n  total += i;\n}\n"},
        {"path": "src/app.js", "content": "import { sum } from './sum';\nconsole.log(sum([1, 2]));\n"},
    ]
