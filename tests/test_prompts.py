"""
Tests for Review Prompts

Tests prompt selection per review mode and system message assembly.
"""

import pytest

from code_reviewer.models import FileContent, ReviewMode
from code_reviewer.services.prompts import (
    REVIEW_PROMPTS,
    build_system_message,
    create_file_context,
    get_review_prompt,
    is_text_file,
    snippet_path,
)


class TestPromptSelection:
    """Every mode has its own prompt and the mode decides which one is used."""

    def test_every_mode_has_a_prompt(self):
        assert set(REVIEW_PROMPTS) == set(ReviewMode)

    def test_prompts_are_distinct(self):
        assert len(set(REVIEW_PROMPTS.values())) == len(ReviewMode)

    @pytest.mark.parametrize("mode", list(ReviewMode))
    def test_system_message_starts_with_mode_prompt(self, mode):
        message = build_system_message([FileContent(path="a.js", content="1")], mode, "javascript")

        assert message.startswith(REVIEW_PROMPTS[mode])
        for other in ReviewMode:
            if other != mode:
                assert REVIEW_PROMPTS[other] not in message

    def test_accepts_mode_value_string(self):
        assert get_review_prompt("clean-code") == REVIEW_PROMPTS[ReviewMode.CLEAN_CODE]

    def test_security_prompt_focus(self):
        assert "security" in get_review_prompt(ReviewMode.SECURITY).lower()


class TestSystemMessage:
    """Test suite for build_system_message."""

    def test_includes_schema_language_and_count(self):
        files = [
            FileContent(path="a.py", content="print(1)"),
            FileContent(path="b.py", content="print(2)"),
        ]

        message = build_system_message(files, ReviewMode.GENERAL, "python")

        for section in ("suggestions", "improvements", "security", "dependencies", "architecture"):
            assert f'"{section}"' in message
        assert "Language: python" in message
        assert "Files to analyze: 2" in message
        assert "Limit each suggestion to 150 words" in message

    def test_inlines_file_contents(self):
        files = [FileContent(path="src/util.ts", content="export const x = 1;")]

        message = build_system_message(files)

        assert "File: src/util.ts\n```\nexport const x = 1;\n```" in message


class TestFileContext:
    """Only text files are inlined."""

    def test_skips_binary_extensions(self):
        files = [
            FileContent(path="main.go", content="package main"),
            FileContent(path="image.png", content="\x89PNG"),
        ]

        context = create_file_context(files)

        assert "File: main.go" in context
        assert "image.png" not in context

    def test_files_without_extension_are_kept(self):
        assert is_text_file("Dockerfile")
        assert is_text_file("snippet")

    def test_extension_check_is_case_insensitive(self):
        assert is_text_file("README.MD")
        assert not is_text_file("archive.zip")


class TestSnippetPath:
    """Pasted code is named after its language."""

    @pytest.mark.parametrize(
        "language,expected",
        [
            ("javascript", "snippet.js"),
            ("Python", "snippet.py"),
            ("rust", "snippet.rs"),
            ("cobol", "snippet"),
        ],
    )
    def test_snippet_path(self, language, expected):
        assert snippet_path(language) == expected
