import logging
import time
from typing import List, Optional, Protocol

from agents.writer_agent import create_review_comments
from aggregator import ReviewAggregator
from config import Settings
from models import (
    ChangedFile,
    FileReview,
    FileReviewResult,
    PRDetails,
    ReviewComment,
    RunSummary,
)
from utils.log import log_group
from utils.retry import with_retry


class Reviewer(Protocol):
    async def review_code(
        self,
        file_path: str,
        patch: str,
        prompt: str,
        pr_title: Optional[str] = None,
        pr_description: Optional[str] = None,
    ) -> FileReview: ...

    async def generate_summary(self, file_results: List[FileReviewResult], prompt: str) -> str: ...


class Publisher(Protocol):
    async def get_pr_details(self) -> PRDetails: ...
    async def get_changed_files(self, exclude_patterns: List[str]) -> List[ChangedFile]: ...
    async def create_review(self, comments, body: str, event: str, commit_id: str): ...
    async def post_review_comment(self, comment: ReviewComment, commit_id: str): ...
    async def post_general_comment(self, body: str): ...


class ReviewOrchestrator:
    """
    Drives one review run: files are analysed one after another, issues become
    inline comments, and every call to GitHub or the model goes through
    with_retry. A failing file is logged and left out; the run goes on.
    """

    def __init__(
        self,
        settings: Settings,
        reviewer: Reviewer,
        github: Optional[Publisher] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.reviewer = reviewer
        self.github = github
        self.logger = logger or logging.getLogger(__name__)
        self.retry_options = settings.retry_options()

    async def _retry(self, operation):
        return await with_retry(operation, self.retry_options, logger=self.logger)

    async def run_review(self) -> RunSummary:
        if self.github is None:
            raise RuntimeError("run_review needs a GitHub client")

        start = time.monotonic()
        self.logger.info("Starting AI code review...")

        pr = await self._retry(self.github.get_pr_details)
        self.logger.info(f"Reviewing PR: {pr.title}")

        files = await self._retry(
            lambda: self.github.get_changed_files(self.settings.exclude_patterns)
        )
        if not files:
            self.logger.info("No files to review")
            return RunSummary(summary="No files to review")

        aggregator = await self.review_files(files, pr.title, pr.body)
        summary = await self._retry(
            lambda: self.reviewer.generate_summary(aggregator.results, self.settings.review_prompt)
        )

        await self._deliver(aggregator, summary, pr.head_sha)

        run = aggregator.to_run_summary(len(files), summary)
        self.logger.info(f"Review completed in {time.monotonic() - start:.1f}s")
        self.logger.info(f"  Files reviewed: {run.files_reviewed}")
        self.logger.info(f"  Total comments: {run.total_comments}")
        self.logger.info(
            f"  Critical: {run.critical_issues}, Warnings: {run.warnings}, "
            f"Suggestions: {run.suggestions}"
        )
        return run

    async def review_files(
        self,
        files: List[ChangedFile],
        pr_title: Optional[str] = None,
        pr_description: Optional[str] = None,
    ) -> ReviewAggregator:
        limit = self.settings.MAX_FILES
        selected = files[:limit] if limit > 0 else files
        if len(selected) < len(files):
            self.logger.warning(
                f"Limited to {len(selected)} files (skipped {len(files) - len(selected)})"
            )

        aggregator = ReviewAggregator()
        for file in selected:
            if file.status == "removed" or not file.patch:
                self.logger.info(f"Skipping {file.filename} (removed or no patch)")
                continue
            try:
                result = await self.review_file(file, pr_title, pr_description)
            except Exception as e:
                self.logger.error(f"Failed to review {file.filename}: {e}")
                continue
            aggregator.add(result)
        return aggregator

    async def review_file(
        self,
        file: ChangedFile,
        pr_title: Optional[str] = None,
        pr_description: Optional[str] = None,
    ) -> FileReviewResult:
        with log_group(self.logger, f"Reviewing {file.filename}"):
            review = await self._retry(
                lambda: self.reviewer.review_code(
                    file.filename, file.patch, self.settings.review_prompt, pr_title, pr_description
                )
            )
            comments = create_review_comments(file.filename, review.reviews, file.patch, self.logger)
            severities = [issue.severity for issue in review.reviews]
            self.logger.info(f"  Found {len(comments)} comment(s)")

            return FileReviewResult(
                file_path=file.filename,
                summary=review.summary,
                comments=comments,
                critical_count=severities.count("critical"),
                warning_count=severities.count("warning"),
                suggestion_count=severities.count("suggestion") + severities.count("info"),
            )

    async def _deliver(self, aggregator: ReviewAggregator, summary: str, commit_id: str) -> None:
        comments = aggregator.comments

        if not comments:
            body = aggregator.format_approval_body(summary)
            if self.settings.POST_AS_REVIEW:
                await self._retry(lambda: self.github.create_review([], body, "APPROVE", commit_id))
            else:
                await self._retry(lambda: self.github.post_general_comment(body))
            return

        body = aggregator.format_review_body(summary)
        if self.settings.POST_AS_REVIEW:
            with log_group(self.logger, f"Creating PR review with {len(comments)} comments"):
                await self._retry(
                    lambda: self.github.create_review(comments, body, "COMMENT", commit_id)
                )
            return

        with log_group(self.logger, f"Posting {len(comments)} review comments"):
            for comment in comments:
                try:
                    await self._retry(
                        lambda c=comment: self.github.post_review_comment(c, commit_id)
                    )
                except Exception as e:
                    self.logger.warning(
                        f"  Failed to post comment on {comment.path}:{comment.line}: {e}"
                    )
        await self._retry(lambda: self.github.post_general_comment(body))
