# utils/github_client.py

import logging
from fnmatch import fnmatch
from typing import Any, Dict, List, Optional

import httpx

from aggregator import truncate_body
from errors import ErrorKind, TransportError
from models import ChangedFile, PRContext, PRDetails, ReviewComment

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
PER_PAGE = 100


def is_excluded(filename: str, patterns: List[str]) -> bool:
    """Glob match; a pattern without '/' is tried against the basename as well."""
    basename = filename.rsplit("/", 1)[-1]
    for pattern in patterns:
        if fnmatch(filename, pattern):
            return True
        if "/" not in pattern and fnmatch(basename, pattern):
            return True
    return False


class GitHubClient:
    def __init__(
        self,
        token: str,
        context: PRContext,
        base_url: str = GITHUB_API_BASE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.context = context
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "PR-Review-Agent",
        }
        if token:
            self.headers["Authorization"] = f"token {token}"

    @staticmethod
    def context_from_event(payload: Dict[str, Any]) -> Optional[PRContext]:
        """PRContext from a `pull_request` event payload, None for other events."""
        pr = payload.get("pull_request")
        if not pr:
            return None
        repository = payload.get("repository") or {}
        return PRContext(
            owner=repository.get("owner", {}).get("login", ""),
            repo=repository.get("name", ""),
            pull_number=payload.get("number") or pr["number"],
        )

    @property
    def _repo_path(self) -> str:
        return f"{self.base_url}/repos/{self.context.owner}/{self.context.repo}"

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout, headers=self.headers, transport=self._transport
        ) as client:
            try:
                resp = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as e:
                raise TransportError(f"ETIMEDOUT: {method} {url}: {e}", ErrorKind.TIMEOUT) from e
            except httpx.ConnectError as e:
                raise TransportError(
                    f"ECONNREFUSED: {method} {url}: {e}", ErrorKind.CONNECTION_REFUSED
                ) from e
            except (httpx.ReadError, httpx.RemoteProtocolError) as e:
                raise TransportError(
                    f"ECONNRESET: {method} {url}: {e}", ErrorKind.CONNECTION_RESET
                ) from e

            if resp.is_error:
                raise TransportError(
                    f"GitHub returned {resp.status_code}: {resp.text}",
                    ErrorKind.from_status(resp.status_code),
                    resp.status_code,
                )
            return resp.json()

    # -----------------------------------------------------------
    # Pull request metadata
    # -----------------------------------------------------------
    async def get_pr_details(self) -> PRDetails:
        pr = await self._request("GET", f"{self._repo_path}/pulls/{self.context.pull_number}")
        return PRDetails(
            title=pr["title"],
            body=pr.get("body"),
            author=(pr.get("user") or {}).get("login", "unknown"),
            base_ref=pr["base"]["ref"],
            head_ref=pr["head"]["ref"],
            head_sha=pr["head"]["sha"],
        )

    async def get_changed_files(self, exclude_patterns: List[str]) -> List[ChangedFile]:
        """All files of the PR with their patches, minus excluded paths."""
        url = f"{self._repo_path}/pulls/{self.context.pull_number}/files"
        files: List[ChangedFile] = []
        page = 1
        while True:
            batch = await self._request("GET", url, params={"per_page": PER_PAGE, "page": page})
            files.extend(ChangedFile.model_validate(f) for f in batch)
            if len(batch) < PER_PAGE:
                break
            page += 1

        kept = []
        for f in files:
            if is_excluded(f.filename, exclude_patterns):
                logger.info(f"  Excluded: {f.filename}")
            else:
                kept.append(f)

        logger.info(f"Found {len(kept)} files to review ({len(files) - len(kept)} excluded)")
        return kept

    # -----------------------------------------------------------
    # Delivery
    # -----------------------------------------------------------
    async def create_review(
        self,
        comments: List[ReviewComment],
        body: str,
        event: str,
        commit_id: str,
    ) -> Dict[str, Any]:
        payload = {
            "commit_id": commit_id,
            "body": truncate_body(body),
            "event": event,
            "comments": [
                {"path": c.path, "line": c.line, "body": c.body, "side": c.side or "RIGHT"}
                for c in comments
            ],
        }
        result = await self._request(
            "POST", f"{self._repo_path}/pulls/{self.context.pull_number}/reviews", json=payload
        )
        logger.info(f"Posted {event} review with {len(comments)} comments")
        return result

    async def post_review_comment(self, comment: ReviewComment, commit_id: str) -> Dict[str, Any]:
        payload = {
            "commit_id": commit_id,
            "path": comment.path,
            "line": comment.line,
            "body": comment.body,
            "side": comment.side or "RIGHT",
        }
        result = await self._request(
            "POST", f"{self._repo_path}/pulls/{self.context.pull_number}/comments", json=payload
        )
        logger.info(f"  Posted comment on {comment.path}:{comment.line}")
        return result

    async def post_general_comment(self, body: str) -> Dict[str, Any]:
        """Conversation-level comment on the PR, not tied to a line."""
        result = await self._request(
            "POST",
            f"{self._repo_path}/issues/{self.context.pull_number}/comments",
            json={"body": truncate_body(body)},
        )
        logger.info("Posted general comment")
        return result
