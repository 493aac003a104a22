"""
Tests for Suggestion Extraction

Tests the markdown heuristics that pull code, file paths and line ranges
out of model suggestions, and applying a suggestion to a file set.
"""

import pytest

from code_reviewer.models import FileContent
from code_reviewer.services.suggestions import (
    SuggestionError,
    apply_suggestion,
    extract_code,
    extract_code_blocks,
    extract_file_path,
    extract_line_range,
    group_suggestions_by_file,
    looks_like_path,
    parse_suggestion,
)

ONE_BLOCK = """On line 42: Use const instead of let for immutable values
```javascript
const user = fetchUser();
```"""

TWO_BLOCKS = """Lines 3-4 in "src/loop.js": replace the manual loop.
Before:
```js
for (let i = 0; i < items.length; i++) {
  out.push(f(items[i]));
}
```
After:
```js
const out = items.map(f);
```"""

THREE_BLOCKS = """Try one of these:
```py
a = 1
```
```py
b = 2
```
```py
c = 3
```"""


class TestExtractCode:
    """Test suite for extract_code."""

    def test_single_block(self):
        snippet = extract_code(ONE_BLOCK)

        assert snippet.code == "const user = fetchUser();"
        assert snippet.language == "javascript"
        assert snippet.original is None

    def test_two_blocks_pick_second_and_keep_first_as_original(self):
        snippet = extract_code(TWO_BLOCKS)

        assert snippet.code == "const out = items.map(f);"
        assert snippet.original.startswith("for (let i = 0;")

    def test_many_blocks_pick_last(self):
        snippet = extract_code(THREE_BLOCKS)

        assert snippet.code == "c = 3"
        assert snippet.original is None

    def test_inline_code_fallback(self):
        snippet = extract_code("In `utils.py`, replace the call with `json.loads(raw)` instead")

        assert snippet.code == "json.loads(raw)"

    def test_inline_fallback_ignores_file_paths(self):
        assert extract_code("See `src/config.yaml` for details") is None

    def test_no_code(self):
        assert extract_code("Consider adding more tests.") is None
        assert extract_code("") is None

    def test_blank_blocks_are_ignored(self):
        blocks = extract_code_blocks("```\n\n```\n```python\nx = 1\n```")

        assert len(blocks) == 1
        assert blocks[0].code == "x = 1"

    def test_multiline_block_preserves_indentation(self):
        text = "```python\ndef f():\n    return 1\n```"

        assert extract_code(text).code == "def f():\n    return 1"


class TestExtractFilePath:
    """Test suite for extract_file_path."""

    def test_file_label(self):
        assert extract_file_path("File: src/app.js\nOn line 3: ...") == "src/app.js"

    def test_quoted_path(self):
        assert extract_file_path('Update "lib/db/session.py" to close sessions') == "lib/db/session.py"

    def test_backticked_path(self):
        assert extract_file_path("In `server/routes.ts`, validate ids") == "server/routes.ts"

    def test_bare_path(self):
        assert extract_file_path("Move this into helpers/format.py please") == "helpers/format.py"

    def test_label_beats_other_mentions(self):
        text = 'Path: api/handler.py\nThis mirrors "api/models.py".'

        assert extract_file_path(text) == "api/handler.py"

    def test_known_paths_win_and_match_by_suffix(self):
        text = "In `handler.py` (see also `other.py`) add a guard"

        assert extract_file_path(text, ["pkg/api/handler.py", "pkg/main.py"]) == "pkg/api/handler.py"

    def test_code_member_access_is_not_a_path(self):
        assert extract_file_path("Use Array.map and user.name here") is None

    def test_paths_inside_code_blocks_are_ignored(self):
        text = "Refactor this\n```js\nimport x from './lib/x.js';\n```"

        assert extract_file_path(text) is None

    def test_no_path(self):
        assert extract_file_path("On line 3: rename the variable") is None


class TestLineRange:
    """Test suite for extract_line_range."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("On line 42: fix", (42, 42)),
            ("Lines 15-20: simplify", (15, 20)),
            ("lines 7 to 9", (7, 9)),
            ("Lines 20-15 swapped", (15, 20)),
            ("No numbers here", (None, None)),
        ],
    )
    def test_ranges(self, text, expected):
        assert extract_line_range(text) == expected

    def test_looks_like_path(self):
        assert looks_like_path("src/app.js")
        assert looks_like_path("README.md")
        assert not looks_like_path("user.name")
        assert not looks_like_path("e.g")


class TestParseSuggestion:
    """Test suite for parse_suggestion."""

    def test_two_block_suggestion(self):
        parsed = parse_suggestion(TWO_BLOCKS)

        assert parsed.file_path == "src/loop.js"
        assert (parsed.line_start, parsed.line_end) == (3, 4)
        assert parsed.code == "const out = items.map(f);"
        assert parsed.description.startswith("Lines 3-4")
        assert "```" not in parsed.description

    def test_prose_only(self):
        parsed = parse_suggestion("Consider lodash for array helpers")

        assert parsed.code is None
        assert parsed.file_path is None
        assert parsed.description == "Consider lodash for array helpers"


class TestGroupSuggestions:
    """Test suite for group_suggestions_by_file."""

    def test_groups_by_resolved_file(self):
        files = [
            FileContent(path="src/a.js", content="a"),
            FileContent(path="src/b.js", content="b"),
        ]
        suggestions = [
            "File: src/a.js\n```js\nA1\n```",
            "In `b.js`:\n```js\nB1\n```",
            "File: src/a.js\n```js\nA2\n```",
            "No code here for src/b.js",
            "Unknown target\n```js\nX\n```",
        ]

        grouped = group_suggestions_by_file(suggestions, files)

        assert [s.code for s in grouped["src/a.js"]] == ["A1", "A2"]
        assert [s.code for s in grouped["src/b.js"]] == ["B1"]
        assert set(grouped) == {"src/a.js", "src/b.js"}

    def test_single_file_collects_unlabelled(self):
        files = [FileContent(path="snippet.js", content="let x;")]

        grouped = group_suggestions_by_file([ONE_BLOCK], files)

        assert grouped["snippet.js"][0].code == "const user = fetchUser();"


class TestApplySuggestion:
    """Test suite for apply_suggestion."""

    def test_replaces_original_snippet(self):
        original = (
            "const items = load();\n"
            "for (let i = 0; i < items.length; i++) {\n"
            "  out.push(f(items[i]));\n"
            "}\n"
            "save(out);\n"
        )
        files = [FileContent(path="src/loop.js", content=original)]

        path, updated = apply_suggestion(files, TWO_BLOCKS)

        assert path == "src/loop.js"
        assert updated[0].content == "const items = load();\nconst out = items.map(f);\nsave(out);\n"

    def test_replaces_line_range(self):
        files = [FileContent(path="a.py", content="one\ntwo\nthree\nfour\n")]
        suggestion = "Lines 2-3: merge these\n```python\nmerged\n```"

        _, updated = apply_suggestion(files, suggestion)

        assert updated[0].content == "one\nmerged\nfour\n"

    def test_out_of_range_lines_replace_whole_file(self):
        files = [FileContent(path="a.py", content="one\n")]
        suggestion = "On line 10:\n```python\nreplacement\n```"

        _, updated = apply_suggestion(files, suggestion)

        assert updated[0].content == "replacement"

    def test_other_files_untouched(self):
        files = [
            FileContent(path="a.py", content="x = 1\n"),
            FileContent(path="b.py", content="y = 2\n"),
        ]

        _, updated = apply_suggestion(files, "File: b.py\nOn line 1:\n```python\ny = 3\n```")

        assert updated[0] == files[0]
        assert updated[1].content == "y = 3\n"
        assert files[1].content == "y = 2\n"

    def test_no_code_raises(self):
        files = [FileContent(path="a.py", content="x")]

        with pytest.raises(SuggestionError, match="No code found"):
            apply_suggestion(files, "Rename x to count")

    def test_unresolvable_target_raises(self):
        files = [
            FileContent(path="a.py", content="x"),
            FileContent(path="b.py", content="y"),
        ]

        with pytest.raises(SuggestionError, match="Could not determine"):
            apply_suggestion(files, "```python\nz = 1\n```")
