# agents/writer_agent.py
import logging
from typing import List, Optional, Sequence

from diff_parser import get_line_content, map_line_to_position, split_patch
from models import Issue, ReviewComment
from suggestions import is_admissible

SEVERITY_MARKERS = {
    "critical": "🔴",
    "warning": "🟡",
    "suggestion": "💡",
    "info": "ℹ️",
}
DEFAULT_MARKER = "📝"

_log = logging.getLogger(__name__)


def severity_marker(severity: str) -> str:
    return SEVERITY_MARKERS.get(severity, DEFAULT_MARKER)


def format_comment_body(issue: Issue, include_suggestion: bool) -> str:
    """
    Build the markdown body of one inline comment.

    Sections are the severity/category header, the message and, only when
    include_suggestion is set, a GitHub ```suggestion block. Empty sections
    are dropped and the rest are separated by a blank line.
    """
    category_label = f"**{issue.category.upper()}**" if issue.category else ""
    header = f"{severity_marker(issue.severity)} {category_label}".strip()

    suggestion_block = ""
    if include_suggestion and issue.suggestion:
        suggestion_block = f"**Suggestion:**\n```suggestion\n{issue.suggestion}\n```"

    sections = [header, issue.message.strip(), suggestion_block]
    return "\n\n".join(section for section in sections if section)


def synthesize(
    path: str,
    issue: Issue,
    patch_lines: Sequence[str],
    logger: Optional[logging.Logger] = None,
) -> Optional[ReviewComment]:
    log = logger or _log

    position = map_line_to_position(issue.line, patch_lines)
    if position is None:
        log.debug(f"Could not map line {issue.line} to diff for {path}")
        return None

    include_suggestion = False
    if issue.suggestion:
        original = get_line_content(position, patch_lines)
        include_suggestion = is_admissible(issue.suggestion, original)
        if not include_suggestion:
            log.debug(f"Filtering out invalid suggestion for {path}:{issue.line}")
            log.debug(f"  Original: {original}")
            log.debug(f"  Suggestion: {issue.suggestion}")

    return ReviewComment(
        path=path,
        line=position,
        body=format_comment_body(issue, include_suggestion),
        side="RIGHT",
    )


def create_review_comments(
    path: str,
    issues: List[Issue],
    patch: str,
    logger: Optional[logging.Logger] = None,
) -> List[ReviewComment]:
    """Turn a file's issues into inline comments, dropping unmapped ones."""
    patch_lines = split_patch(patch)
    comments = []
    for issue in issues:
        comment = synthesize(path, issue, patch_lines, logger)
        if comment is not None:
            comments.append(comment)
    return comments
