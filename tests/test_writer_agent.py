"""Tests for turning issues into inline comments."""

import logging

from agents.writer_agent import (
    create_review_comments,
    format_comment_body,
    severity_marker,
    synthesize,
)
from diff_parser import split_patch
from tests.conftest import make_issue


class TestSynthesize:
    def test_admissible_suggestion_is_rendered(self, workflow_patch):
        issue = make_issue(
            2,
            category="reliability",
            message="Job has a tight timeout.",
            suggestion="timeout-minutes: 10",
        )
        comment = synthesize(".github/workflows/ci.yml", issue, split_patch(workflow_patch))

        assert comment.path == ".github/workflows/ci.yml"
        assert comment.line == 3
        assert comment.side == "RIGHT"
        assert comment.body == (
            "🟡 **RELIABILITY**\n\n"
            "Job has a tight timeout.\n\n"
            "**Suggestion:**\n```suggestion\ntimeout-minutes: 10\n```"
        )

    def test_inadmissible_suggestion_is_dropped_but_comment_kept(self, workflow_patch, caplog):
        caplog.set_level(logging.DEBUG)
        issue = make_issue(2, suggestion="runs-on: ubuntu-latest")
        comment = synthesize("ci.yml", issue, split_patch(workflow_patch), logging.getLogger("t"))

        assert comment is not None
        assert "```suggestion" not in comment.body
        assert "runs-on: ubuntu-latest" not in comment.body
        assert "Filtering out invalid suggestion for ci.yml:2" in caplog.text

    def test_unmapped_line_gives_none(self, workflow_patch, caplog):
        caplog.set_level(logging.DEBUG)
        comment = synthesize("ci.yml", make_issue(1), split_patch(workflow_patch), logging.getLogger("t"))
        assert comment is None
        assert "Could not map line 1 to diff for ci.yml" in caplog.text


class TestFormatBody:
    def test_without_category(self):
        issue = make_issue(1, severity="critical", category="", message="SQL injection.")
        assert format_comment_body(issue, include_suggestion=False) == "🔴\n\nSQL injection."

    def test_suggestion_needs_flag(self):
        issue = make_issue(1, severity="info", suggestion="x = 2")
        assert "```suggestion" not in format_comment_body(issue, include_suggestion=False)
        assert "```suggestion\nx = 2\n```" in format_comment_body(issue, include_suggestion=True)

    def test_markers(self):
        assert severity_marker("suggestion") == "💡"
        assert severity_marker("info") == "ℹ️"
        assert severity_marker("unknown") == "📝"


class TestCreateReviewComments:
    def test_keeps_order_and_drops_unmapped(self, multi_hunk_patch):
        issues = [make_issue(12), make_issue(1), make_issue(2)]
        comments = create_review_comments("app.py", issues, multi_hunk_patch)
        assert [c.line for c in comments] == [8, 3]
