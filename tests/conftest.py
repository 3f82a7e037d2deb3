"""Shared test fixtures: sample patches, settings, and fake collaborators."""

import textwrap
from typing import Dict, List, Optional, Union

import pytest

from config import Settings
from models import ChangedFile, FileReview, FileReviewResult, Issue, PRDetails


@pytest.fixture
def sample_patch() -> str:
    """Two added lines between context lines."""
    return "@@ -1,3 +1,5 @@\n line1\n+lineA\n+lineB\n line2"


@pytest.fixture
def multi_hunk_patch() -> str:
    """Two hunks; the second restarts numbering at new line 11."""
    return textwrap.dedent("""\
        @@ -1,2 +1,3 @@
         import os
        +import sys
         x = 1
        @@ -10,3 +11,3 @@
         def f():
        -    return 1
        +    return 2""")


@pytest.fixture
def workflow_patch() -> str:
    """A YAML workflow change, the usual home of key: value suggestions."""
    return textwrap.dedent("""\
        @@ -1,2 +1,3 @@
         name: ci
        +timeout-minutes: 5
         runs-on: ubuntu-latest""")


@pytest.fixture
def sample_git_diff() -> str:
    """A two-file `git diff`: one modified file and one new file."""
    return textwrap.dedent("""\
        diff --git a/app.py b/app.py
        index 1234567..abcdef0 100644
        --- a/app.py
        +++ b/app.py
        @@ -1,2 +1,3 @@
         import os
        +import sys
         x = 1
        diff --git a/new.py b/new.py
        new file mode 100644
        index 0000000..abc1234
        --- /dev/null
        +++ b/new.py
        @@ -0,0 +1,2 @@
        +def greet(name):
        +    return name
    """)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        GITHUB_TOKEN="gh-token",
        GEMINI_API_KEY="gemini-key",
        RETRY_BACKOFF_MS=0,
        RETRY_MAX_BACKOFF_MS=0,
    )


def make_issue(line: int, severity: str = "warning", **kwargs) -> Issue:
    kwargs.setdefault("category", "style")
    kwargs.setdefault("message", f"Issue on line {line}")
    return Issue(line=line, severity=severity, **kwargs)


class FakeReviewer:
    """Returns canned FileReviews per path; an Exception in a list is raised once."""

    def __init__(self, reviews: Dict[str, Union[FileReview, Exception, List]], summary: str = "Looks fine overall."):
        self.reviews = reviews
        self.summary = summary
        self.calls: List[str] = []
        self.summary_calls: List[List[FileReviewResult]] = []

    async def review_code(self, file_path, patch, prompt, pr_title=None, pr_description=None) -> FileReview:
        self.calls.append(file_path)
        answer = self.reviews.get(file_path, FileReview())
        if isinstance(answer, list):
            answer = answer.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def generate_summary(self, file_results, prompt) -> str:
        self.summary_calls.append(list(file_results))
        return self.summary


class FakeGitHub:
    def __init__(self, files: List[ChangedFile], fail_comments_on: Optional[set] = None, review_error: Optional[Exception] = None):
        self.files = files
        self.fail_comments_on = fail_comments_on or set()
        self.review_error = review_error
        self.reviews = []
        self.inline_comments = []
        self.general_comments = []

    async def get_pr_details(self) -> PRDetails:
        return PRDetails(title="Add feature", body="Adds things", head_sha="abc123")

    async def get_changed_files(self, exclude_patterns):
        return list(self.files)

    async def create_review(self, comments, body, event, commit_id):
        if self.review_error is not None:
            raise self.review_error
        self.reviews.append({"comments": list(comments), "body": body, "event": event, "commit_id": commit_id})

    async def post_review_comment(self, comment, commit_id):
        if comment.path in self.fail_comments_on:
            raise ValueError(f"GitHub returned 422: cannot comment on {comment.path}")
        self.inline_comments.append(comment)

    async def post_general_comment(self, body):
        self.general_comments.append(body)
