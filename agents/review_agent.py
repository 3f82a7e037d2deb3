# agents/review_agent.py
import json
import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from errors import ReviewParseError
from models import FileReview, FileReviewResult, Issue

from .llm_client import LLMClient

logger = logging.getLogger(__name__)


def _extract_json_from_text(text: str) -> Any:
    """
    Try multiple ways to extract JSON from model text:
    1. Direct json.loads(text)
    2. Find first '{' and last '}' and parse that substring (single object)
    3. Find first '[' and last ']' and parse that substring
    Returns parsed JSON or raises ReviewParseError.
    """
    try:
        return json.loads(text)
    except ValueError:
        pass

    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start = text.find(open_ch)
        end = text.rfind(close_ch)
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except ValueError:
                pass

    raise ReviewParseError("No JSON found in model output")


def _to_file_review(parsed: Any) -> FileReview:
    if isinstance(parsed, list):
        raw_reviews, summary = parsed, ""
    elif isinstance(parsed, dict):
        raw_reviews = parsed.get("reviews") or []
        summary = str(parsed.get("summary") or "")
    else:
        raise ReviewParseError(f"Unexpected JSON type: {type(parsed).__name__}")

    issues: List[Issue] = []
    for item in raw_reviews:
        try:
            issues.append(Issue.model_validate(item))
        except ValidationError as e:
            # one malformed entry should not cost the whole file
            logger.debug(f"Dropping malformed issue {item!r}: {e}")
    return FileReview(reviews=issues, summary=summary)


class ReviewAgent:
    def __init__(self, llm: LLMClient, max_tokens: int = 4096):
        self.llm = llm
        self.max_tokens = max_tokens

    async def review_code(
        self,
        file_path: str,
        patch: str,
        prompt: str,
        pr_title: Optional[str] = None,
        pr_description: Optional[str] = None,
    ) -> FileReview:
        parts = [prompt, ""]
        if pr_title:
            parts.append(f"Pull request: {pr_title}")
        if pr_description:
            parts.append(f"Description:\n{pr_description}")
        parts.extend([
            f"File: {file_path}",
            "Line numbers refer to the new version of the file; each @@ hunk header gives "
            "the first new line of its hunk.",
            f"Diff:\n```diff\n{patch}\n```",
        ])

        out = await self.llm.complete("\n".join(parts), max_tokens=self.max_tokens)
        return _to_file_review(_extract_json_from_text(out))

    async def generate_summary(self, file_results: List[FileReviewResult], prompt: str) -> str:
        if not file_results:
            return "No files were reviewed."

        listing = "\n".join(
            f"- {r.file_path} ({r.issue_count} issues): {r.summary or 'no summary'}"
            for r in file_results
        )
        summary_prompt = (
            f"{prompt}\n\n"
            "You are now writing the overall pull request summary. Using the per-file "
            "notes below, write 2-4 sentences of plain markdown (no JSON) assessing the "
            "change as a whole.\n\n"
            f"{listing}"
        )
        return await self.llm.complete(summary_prompt, max_tokens=512)
