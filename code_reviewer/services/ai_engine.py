"""
AI Review Engine Module

This module handles the AI-powered code review using OpenAI's API.
It sends the submitted files with a mode-specific prompt and returns the
five structured result arrays.

Design Decisions:
- Use OpenAI's JSON mode for structured output
- Validate the response into CodeReviewResponse (missing sections -> [])
- Rate limit API calls to avoid hitting quotas
- A single attempt by default; retries are opt-in via configuration
"""

import json
import time
from typing import Any, List, Optional

from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from code_reviewer.config import get_settings
from code_reviewer.logging_config import get_logger
from code_reviewer.models import CodeReviewResponse, FileContent, ReviewMode
from code_reviewer.services.prompts import build_system_message

logger = get_logger(__name__)


class AIReviewError(Exception):
    """Custom exception for AI review errors."""
    pass


class AIReviewEngine:
    """
    AI-powered code review engine.

    Usage:
        engine = AIReviewEngine()
        result = await engine.analyze_code(files, ReviewMode.SECURITY, "python")
    """

    def __init__(self, client: Optional[Any] = None):
        """
        Initialize the AI review engine.

        Args:
            client: Pre-built OpenAI client; one is created from settings
                when omitted
        """
        self.settings = get_settings()
        self.client = client or AsyncOpenAI(api_key=self.settings.openai_api_key)

        self._rate_limiter = AsyncLimiter(
            max_rate=self.settings.openai_rate_limit_rpm,
            time_period=60
        )

    async def analyze_code(
        self,
        files: List[FileContent],
        mode: ReviewMode = ReviewMode.GENERAL,
        language: str = "javascript"
    ) -> CodeReviewResponse:
        """
        Review a set of files.

        Args:
            files: Files to analyze
            mode: Review mode selecting the prompt
            language: Language tag passed to the model

        Returns:
            CodeReviewResponse with the five result arrays

        Raises:
            AIReviewError: If the call fails or the response is unusable
        """
        system_message = build_system_message(files, mode, language)

        logger.info(
            "Sending code review request to AI",
            num_files=len(files),
            mode=ReviewMode(mode).value,
            language=language,
            prompt_length=len(system_message)
        )

        started = time.monotonic()
        result: Optional[CodeReviewResponse] = None

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.review_max_attempts),
                wait=wait_exponential(
                    multiplier=self.settings.retry_base_delay,
                    max=self.settings.retry_max_delay
                ),
                retry=retry_if_exception_type(AIReviewError),
                reraise=True
            ):
                with attempt:
                    content = await self._complete(system_message)
                    result = self._parse_response(content)
        except AIReviewError as e:
            logger.error(
                "AI review failed",
                error=str(e),
                elapsed_ms=int((time.monotonic() - started) * 1000)
            )
            raise

        logger.info(
            "AI review completed",
            elapsed_ms=int((time.monotonic() - started) * 1000),
            **{name: len(items) for name, items in result.sections().items()}
        )
        return result

    async def _complete(self, system_message: str) -> str:
        """Run one chat completion and return the raw message content."""
        async with self._rate_limiter:
            try:
                response = await self.client.chat.completions.create(
                    model=self.settings.openai_model,
                    messages=[{"role": "system", "content": system_message}],
                    response_format={"type": "json_object"},
                    max_tokens=self.settings.openai_max_tokens,
                    temperature=self.settings.openai_temperature
                )
            except Exception as e:
                raise AIReviewError(f"Failed to analyze code: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIReviewError("Failed to analyze code: No response content received from the model")

        usage = getattr(response, "usage", None)
        logger.debug(
            "Received AI response",
            response_length=len(content),
            usage=usage.model_dump() if hasattr(usage, "model_dump") else None
        )
        return content

    def _parse_response(self, content: str) -> CodeReviewResponse:
        """
        Parse and validate the model output.

        Raises:
            AIReviewError: If the output is not a JSON object of string arrays
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse AI response as JSON", error=str(e))
            raise AIReviewError(f"Failed to analyze code: Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise AIReviewError(
                f"Failed to analyze code: Expected a JSON object, got {type(data).__name__}"
            )

        data.pop("review_id", None)
        try:
            return CodeReviewResponse.model_validate(data)
        except ValidationError as e:
            raise AIReviewError(f"Failed to analyze code: Malformed review response: {e}") from e


# Singleton instance
_engine_instance: Optional[AIReviewEngine] = None


def get_ai_engine() -> AIReviewEngine:
    """Get the singleton AIReviewEngine instance."""
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = AIReviewEngine()
    return _engine_instance
