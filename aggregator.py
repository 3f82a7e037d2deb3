from typing import List

from models import FileReviewResult, ReviewComment, RunSummary

# GitHub rejects review and comment bodies above 65535 characters
MAX_BODY_LENGTH = 65000
TRUNCATION_MARKER = "\n\n... (truncated)"

REVIEW_FOOTER = (
    "*This review was generated by AI. "
    "Please review the suggestions carefully before applying them.*"
)


def truncate_body(body: str) -> str:
    if len(body) <= MAX_BODY_LENGTH:
        return body
    return body[:MAX_BODY_LENGTH] + TRUNCATION_MARKER


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class ReviewAggregator:
    """Collects per-file results and renders the run-level review body."""

    def __init__(self):
        self.results: List[FileReviewResult] = []

    def add(self, result: FileReviewResult) -> None:
        self.results.append(result)

    @property
    def comments(self) -> List[ReviewComment]:
        return [c for r in self.results for c in r.comments]

    @property
    def files_reviewed(self) -> int:
        return len(self.results)

    @property
    def total_comments(self) -> int:
        return sum(r.issue_count for r in self.results)

    @property
    def critical_issues(self) -> int:
        return sum(r.critical_count for r in self.results)

    @property
    def warnings(self) -> int:
        return sum(r.warning_count for r in self.results)

    @property
    def suggestions(self) -> int:
        return sum(r.suggestion_count for r in self.results)

    def stats_line(self) -> str:
        stats = [
            f"🔴 {self.critical_issues} critical" if self.critical_issues else "",
            f"🟡 {_plural(self.warnings, 'warning')}" if self.warnings else "",
            f"💡 {_plural(self.suggestions, 'suggestion')}" if self.suggestions else "",
        ]
        stats = [s for s in stats if s]
        return " | ".join(stats) if stats else "✅ No issues found"

    def files_listing(self) -> str:
        lines = []
        for r in self.results:
            suffix = f" ({_plural(r.issue_count, 'comment')})" if r.issue_count > 0 else ""
            lines.append(f"- {r.file_path}{suffix}")
        return "\n".join(lines)

    def format_review_body(self, summary: str) -> str:
        body = (
            "## AI Code Review\n\n"
            f"{summary}\n\n"
            "### Summary\n"
            f"{self.stats_line()}\n\n"
            "### Files Reviewed\n"
            f"{self.files_listing()}\n\n"
            "---\n"
            f"{REVIEW_FOOTER}"
        )
        return truncate_body(body)

    def format_approval_body(self, summary: str) -> str:
        body = (
            "## ✅ AI Code Review Complete\n\n"
            f"{summary}\n\n"
            "**No issues found!** Great job! 🎉"
        )
        return truncate_body(body)

    def to_run_summary(self, total_files: int, summary: str) -> RunSummary:
        return RunSummary(
            total_files=total_files,
            files_reviewed=self.files_reviewed,
            total_comments=self.total_comments,
            critical_issues=self.critical_issues,
            warnings=self.warnings,
            suggestions=self.suggestions,
            summary=summary,
        )
