"""
Review Prompts Module

Prompt templates for each review mode and the assembly of the system
message sent to the model.

Design Decisions:
- One template per ReviewMode; the mode alone decides the review focus
- The response schema is spelled out with an example so JSON mode
  returns the five expected arrays
- Only text files are inlined into the prompt
"""

from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional

from code_reviewer.config import get_settings
from code_reviewer.models import FileContent, ReviewMode


REVIEW_PROMPTS: Dict[ReviewMode, str] = {
    ReviewMode.GENERAL: """You are an expert code reviewer analyzing code. For each suggestion:
1. Specify the line numbers affected (e.g., "On line 42" or "Lines 15-20")
2. Provide a clear description of what should be changed
3. Include the suggested code in a markdown code block
4. Focus on the most important improvements first""",

    ReviewMode.PERFORMANCE: """You are a performance optimization expert. For each suggestion:
1. Identify specific lines where performance can be improved
2. Explain the performance impact
3. Provide optimized code in a markdown code block
4. Focus on the most significant performance gains""",

    ReviewMode.SECURITY: """You are a security expert. For each suggestion:
1. Identify lines containing security vulnerabilities
2. Explain the security risk
3. Provide secure code alternatives in a markdown code block
4. Prioritize critical security issues""",

    ReviewMode.CLEAN_CODE: """You are a clean code expert. For each suggestion:
1. Point out specific lines that could be more readable
2. Explain how the code can be cleaner
3. Show the improved code in a markdown code block
4. Focus on maintainability and clarity""",

    ReviewMode.ARCHITECTURE: """You are a software architect. For each suggestion:
1. Identify specific code sections that could be better architected
2. Explain the architectural improvement
3. Provide implementation examples in markdown code blocks
4. Focus on scalability and maintainability""",
}

RESPONSE_FORMAT = """Analyze the code and respond with a JSON object containing arrays of markdown-formatted suggestions:

{
  "suggestions": [
    "On line 42: Use const instead of let for immutable values\\n```javascript\\nconst user = fetchUser();\\n```"
  ],
  "improvements": [
    "Lines 15-20: Simplify this loop using Array.map\\n```javascript\\nconst results = items.map(item => transform(item));\\n```"
  ],
  "security": [
    "On line 67: Sanitize user input to prevent XSS\\n```javascript\\nconst sanitizedInput = DOMPurify.sanitize(userInput);\\n```"
  ],
  "dependencies": [
    "Consider using lodash for consistent array manipulation"
  ],
  "architecture": [
    "Lines 90-120: Extract this logic into a separate service\\n```javascript\\nclass UserService {\\n  async fetchUser() {\\n    // ...\\n  }\\n}\\n```"
  ]
}

When several files are provided, name the file each suggestion applies to (e.g., "File: src/app.js").

Guidelines for suggestions:
- Always specify line numbers for code changes
- Include clear explanations before code blocks
- Show only the relevant code that needs to change
- Keep suggestions focused and actionable
- Limit each suggestion to 150 words"""

# Extension used for the pseudo-file that wraps a pasted snippet
LANGUAGE_EXTENSIONS: Dict[str, str] = {
    "javascript": "js",
    "typescript": "ts",
    "jsx": "jsx",
    "tsx": "tsx",
    "python": "py",
    "java": "java",
    "cpp": "cpp",
    "c++": "cpp",
    "c": "c",
    "csharp": "cs",
    "c#": "cs",
    "php": "php",
    "ruby": "rb",
    "swift": "swift",
    "go": "go",
    "rust": "rs",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "json": "json",
    "yaml": "yaml",
    "markdown": "md",
}

SNIPPET_BASENAME = "snippet"


def get_review_prompt(mode: ReviewMode) -> str:
    """Return the prompt template for a review mode."""
    return REVIEW_PROMPTS[ReviewMode(mode)]


def snippet_path(language: str) -> str:
    """Path given to a pasted snippet, e.g. ``snippet.py`` for python."""
    ext = LANGUAGE_EXTENSIONS.get(language.strip().lower())
    return f"{SNIPPET_BASENAME}.{ext}" if ext else SNIPPET_BASENAME


def is_text_file(path: str, accepted_extensions: Optional[Iterable[str]] = None) -> bool:
    """
    Check whether a file should be inlined into the prompt.

    Files without an extension are assumed to be text.
    """
    if accepted_extensions is None:
        accepted_extensions = get_settings().accepted_extensions_list
    suffix = PurePosixPath(path).suffix
    if not suffix:
        return True
    return suffix[1:].lower() in set(accepted_extensions)


def create_file_context(files: List[FileContent]) -> str:
    """Render the text files as ``File: <path>`` headers over fenced blocks."""
    accepted = get_settings().accepted_extensions_list
    sections = [
        f"File: {f.path}\n```\n{f.content}\n```\n"
        for f in files
        if is_text_file(f.path, accepted)
    ]
    return "\n\n".join(sections)


def build_system_message(
    files: List[FileContent],
    mode: ReviewMode = ReviewMode.GENERAL,
    language: str = "javascript"
) -> str:
    """
    Build the single system message for an analysis call.

    Args:
        files: Files under review
        mode: Review mode selecting the prompt template
        language: Language tag reported to the model

    Returns:
        Complete system message
    """
    parts = [
        get_review_prompt(mode),
        RESPONSE_FORMAT,
        f"Language: {language}\nFiles to analyze: {len(files)}",
        create_file_context(files),
    ]
    return "\n\n".join(parts)
