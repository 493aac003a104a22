"""
Suggestion Extraction Module

Best-effort parsing of the markdown strings the model returns: which file a
suggestion targets, which lines it mentions, and which code it proposes.

Design Decisions:
- Regex scanning only; model output has no formal grammar
- Two fenced blocks are read as a before/after pair (second one wins),
  otherwise the last fenced block wins
- Inline code spans are the fallback when there are no fenced blocks
- Known file paths (from the submitted file set) outrank guesses
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from code_reviewer.logging_config import get_logger
from code_reviewer.models import FileContent, ParsedSuggestion

logger = get_logger(__name__)


FENCED_BLOCK_PATTERN = re.compile(
    r"```[ \t]*([\w+#.-]*)[^\n]*\n(.*?)```",
    re.DOTALL
)

INLINE_CODE_PATTERN = re.compile(r"(?<!`)`([^`\n]+)`(?!`)")

# Path-like token: optional directories, a name, and an extension
_PATH = r"(?:[\w.-]+/)*[\w-][\w.-]*\.[A-Za-z][A-Za-z0-9]{0,9}"

FILE_LABEL_PATTERN = re.compile(
    rf"\b(?:File|Path|In file|Filename)\s*:?\s*[\"'`]?({_PATH})[\"'`]?",
    re.IGNORECASE
)

QUOTED_PATH_PATTERN = re.compile(rf"[\"'`]({_PATH})[\"'`]")

BARE_PATH_PATTERN = re.compile(rf"(?<![\w/.-])({_PATH})(?![\w/-])")

LINE_RANGE_PATTERN = re.compile(
    r"\blines?\s+(\d+)(?:\s*(?:-|–|to|through)\s*(\d+))?",
    re.IGNORECASE
)

PATH_TOKEN_PATTERN = re.compile(rf"^{_PATH}$")

# Without a directory part, "name.ext" only counts as a file for these
# extensions; "user.name" or "Array.map" are code
FILE_EXTENSIONS = {
    "js", "mjs", "cjs", "ts", "jsx", "tsx", "py", "java", "kt", "cpp", "cc",
    "c", "h", "hpp", "cs", "php", "rb", "swift", "go", "rs", "html", "css",
    "scss", "json", "yml", "yaml", "md", "txt", "toml", "ini", "cfg", "xml",
    "sql", "sh", "vue", "svelte", "env",
}


class SuggestionError(Exception):
    """Raised when a suggestion cannot be interpreted or applied."""
    pass


@dataclass
class CodeBlock:
    """A fenced code block found in markdown."""
    code: str
    language: Optional[str] = None


@dataclass
class ExtractedSnippet:
    """The code chosen from a suggestion, plus the code it replaces if known."""
    code: str
    language: Optional[str] = None
    original: Optional[str] = None


def extract_code_blocks(markdown: str) -> List[CodeBlock]:
    """Return all non-empty fenced code blocks, in order."""
    blocks = []
    for match in FENCED_BLOCK_PATTERN.finditer(markdown or ""):
        code = match.group(2).strip("\n")
        if not code.strip():
            continue
        blocks.append(CodeBlock(code=code.rstrip(), language=match.group(1) or None))
    return blocks


def looks_like_path(token: str) -> bool:
    """Heuristic check for a file path token such as ``src/app.py``."""
    token = token.strip()
    if not PATH_TOKEN_PATTERN.match(token):
        return False
    suffix = token.rsplit(".", 1)[-1].lower()
    return "/" in token or suffix in FILE_EXTENSIONS


def extract_code(markdown: str) -> Optional[ExtractedSnippet]:
    """
    Pick the suggested code out of a markdown suggestion.

    Returns:
        ExtractedSnippet, or None when the text contains no code at all
    """
    blocks = extract_code_blocks(markdown)

    if len(blocks) == 2:
        before, after = blocks
        return ExtractedSnippet(code=after.code, language=after.language, original=before.code)

    if blocks:
        last = blocks[-1]
        return ExtractedSnippet(code=last.code, language=last.language)

    spans = [
        s.strip() for s in INLINE_CODE_PATTERN.findall(markdown or "")
        if s.strip() and not looks_like_path(s)
    ]
    if spans:
        return ExtractedSnippet(code=spans[-1])

    return None


def _path_candidates(markdown: str) -> List[str]:
    """Collect path-like tokens, strongest signal first, without repeats."""
    # Fenced code is not a place file names are announced
    prose = FENCED_BLOCK_PATTERN.sub(" ", markdown or "")

    candidates: List[str] = []
    for pattern in (FILE_LABEL_PATTERN, QUOTED_PATH_PATTERN, BARE_PATH_PATTERN):
        for match in pattern.finditer(prose):
            token = match.group(1).strip()
            if token.startswith("./"):
                token = token[2:]
            if looks_like_path(token) and token not in candidates:
                candidates.append(token)
    return candidates


def _match_known(candidate: str, known_paths: List[str]) -> Optional[str]:
    """Known path equal to the candidate or sharing its suffix."""
    if candidate in known_paths:
        return candidate
    for known in known_paths:
        if known.endswith("/" + candidate) or candidate.endswith("/" + known):
            return known
    return None


def extract_file_path(
    markdown: str,
    known_paths: Optional[Iterable[str]] = None
) -> Optional[str]:
    """
    Find the file a suggestion refers to.

    Explicit ``File:`` labels beat quoted paths, which beat bare path tokens.
    When ``known_paths`` is given, the first candidate that matches one of
    them (exactly or by path suffix) is returned as the known path.

    Returns:
        A path, or None when nothing path-like is mentioned
    """
    candidates = _path_candidates(markdown)
    known = list(known_paths or [])

    if known:
        for candidate in candidates:
            matched = _match_known(candidate, known)
            if matched:
                return matched

    return candidates[0] if candidates else None


def extract_line_range(markdown: str) -> Tuple[Optional[int], Optional[int]]:
    """Parse "On line 42" or "Lines 15-20" into (start, end)."""
    match = LINE_RANGE_PATTERN.search(markdown or "")
    if not match:
        return None, None
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else start
    if end < start:
        start, end = end, start
    return start, end


def parse_suggestion(
    markdown: str,
    known_paths: Optional[Iterable[str]] = None
) -> ParsedSuggestion:
    """Run every extractor over one suggestion string."""
    snippet = extract_code(markdown)
    line_start, line_end = extract_line_range(markdown)
    description = (markdown or "").split("```", 1)[0].strip()

    return ParsedSuggestion(
        description=description,
        file_path=extract_file_path(markdown, known_paths),
        line_start=line_start,
        line_end=line_end,
        code=snippet.code if snippet else None,
        original_code=snippet.original if snippet else None,
        language=snippet.language if snippet else None,
    )


def _resolve_target(parsed: ParsedSuggestion, paths: List[str]) -> Optional[str]:
    """File a parsed suggestion applies to; a lone file takes unlabelled ones."""
    if parsed.file_path and parsed.file_path in paths:
        return parsed.file_path
    if len(paths) == 1:
        return paths[0]
    return None


def group_suggestions_by_file(
    suggestions: Iterable[str],
    files: List[FileContent]
) -> Dict[str, List[ParsedSuggestion]]:
    """
    Group code-carrying suggestions under the file they target.

    Suggestions without code, or whose target cannot be resolved to one of
    ``files``, are left out.
    """
    paths = [f.path for f in files]
    grouped: Dict[str, List[ParsedSuggestion]] = {}

    for text in suggestions:
        parsed = parse_suggestion(text, paths)
        if not parsed.code:
            continue
        target = _resolve_target(parsed, paths)
        if target is None:
            continue
        grouped.setdefault(target, []).append(parsed)

    return grouped


def _replace_lines(content: str, start: int, end: int, code: str) -> Optional[str]:
    """Swap lines start..end (1-based, inclusive); None if out of range."""
    lines = content.splitlines()
    if start < 1 or end > len(lines):
        return None
    trailing_newline = "\n" if content.endswith("\n") else ""
    updated = lines[:start - 1] + code.splitlines() + lines[end:]
    return "\n".join(updated) + trailing_newline


def apply_suggestion(
    files: List[FileContent],
    markdown: str
) -> Tuple[str, List[FileContent]]:
    """
    Apply a suggestion's code to the file it targets.

    The recorded original snippet is replaced when it occurs verbatim;
    otherwise the mentioned line range; otherwise the whole file.

    Returns:
        (target path, updated copy of ``files``)

    Raises:
        SuggestionError: If there is no code or no resolvable target file
    """
    paths = [f.path for f in files]
    parsed = parse_suggestion(markdown, paths)

    if not parsed.code:
        raise SuggestionError("No code found in the suggestion")

    target = _resolve_target(parsed, paths)
    if target is None:
        raise SuggestionError(
            "Could not determine which file the suggestion applies to"
            + (f" (mentions '{parsed.file_path}')" if parsed.file_path else "")
        )

    updated: List[FileContent] = []
    for f in files:
        if f.path != target:
            updated.append(f.model_copy())
            continue

        new_content = None
        strategy = "whole_file"
        if parsed.original_code and parsed.original_code in f.content:
            new_content = f.content.replace(parsed.original_code, parsed.code, 1)
            strategy = "original_snippet"
        elif parsed.line_start is not None:
            new_content = _replace_lines(f.content, parsed.line_start, parsed.line_end, parsed.code)
            strategy = "line_range"
        if new_content is None:
            new_content = parsed.code
            strategy = "whole_file"

        logger.info("Applied suggestion", path=target, strategy=strategy)
        updated.append(FileContent(path=f.path, content=new_content))

    return target, updated
