import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from agents.llm_client import LLMClient
from agents.review_agent import ReviewAgent
from config import Settings, get_settings
from diff_parser import parse_unified_diff
from errors import ConfigError
from models import PRContext, ReviewComment, RunSummary
from orchestrator import ReviewOrchestrator
from utils.github_client import GitHubClient
from utils.log import configure_logging
from utils.retry import with_retry

logger = logging.getLogger("pr_review")


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        configure_logging(get_settings().LOG_LEVEL)
    except ConfigError as e:
        configure_logging()
        logger.error(f"Configuration is invalid, review endpoints will fail: {e}")
    yield


app = FastAPI(title="PR Review Agent (GitHub-enabled)", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PRInput(BaseModel):
    owner: str
    repo: str
    pr_number: int


class ReviewRunResponse(BaseModel):
    status: Literal["success", "failed", "ignored"]
    review_summary: str
    files_reviewed: int = 0
    comments_posted: int = 0
    run: Optional[RunSummary] = None


class DiffReviewResponse(BaseModel):
    review_summary: str
    comments: List[ReviewComment]
    run: RunSummary


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@lru_cache
def _build_review_agent(api_key: str, model: str) -> ReviewAgent:
    return ReviewAgent(LLMClient(api_key, model))


def get_review_agent(settings: Settings = Depends(get_settings)) -> ReviewAgent:
    if not settings.GEMINI_API_KEY:
        raise HTTPException(status_code=503, detail="GEMINI_API_KEY is not configured")
    return _build_review_agent(settings.GEMINI_API_KEY, settings.LLM_MODEL)


def get_github_client_factory(settings: Settings = Depends(get_settings)):
    if not settings.GITHUB_TOKEN:
        raise HTTPException(status_code=503, detail="GITHUB_TOKEN is not configured")

    def factory(context: PRContext) -> GitHubClient:
        return GitHubClient(settings.GITHUB_TOKEN, context, base_url=settings.GITHUB_API_BASE)

    return factory


@app.post("/review-diff", response_model=DiffReviewResponse, summary="Review a unified diff (plain text)")
async def review_diff(
    diff_text: str = Body(..., media_type="text/plain", description="Paste the full unified diff here (plain text)."),
    settings: Settings = Depends(get_settings),
    reviewer: ReviewAgent = Depends(get_review_agent),
):
    files = parse_unified_diff(diff_text)
    if not files:
        raise HTTPException(status_code=400, detail="No files parsed from diff")

    orchestrator = ReviewOrchestrator(settings, reviewer, logger=logger)
    aggregator = await orchestrator.review_files(files)
    summary = await with_retry(
        lambda: reviewer.generate_summary(aggregator.results, settings.review_prompt),
        settings.retry_options(),
        logger=logger,
    )

    return DiffReviewResponse(
        review_summary=summary,
        comments=aggregator.comments,
        run=aggregator.to_run_summary(len(files), summary),
    )


REVIEWABLE_ACTIONS = {"opened", "synchronize", "reopened"}


async def _run_pr_review(context: PRContext, settings: Settings, reviewer, github_factory) -> ReviewRunResponse:
    logger.info(f"Processing PR #{context.pull_number} in {context.owner}/{context.repo}")

    orchestrator = ReviewOrchestrator(settings, reviewer, github=github_factory(context), logger=logger)
    try:
        run = await orchestrator.run_review()
    except Exception as e:
        logger.error(f"❌ Code review failed: {e}")
        if settings.FAIL_ON_ERROR:
            raise HTTPException(status_code=502, detail=f"Review failed: {e}")
        return ReviewRunResponse(status="failed", review_summary=f"Review failed: {e}")

    logger.info("✅ Code review completed successfully")
    return ReviewRunResponse(
        status="success",
        review_summary=run.summary,
        files_reviewed=run.files_reviewed,
        comments_posted=run.total_comments,
        run=run,
    )


@app.post("/review-pr", response_model=ReviewRunResponse, summary="Review a GitHub PR and post the results")
async def review_pr(
    inp: PRInput,
    settings: Settings = Depends(get_settings),
    reviewer: ReviewAgent = Depends(get_review_agent),
    github_factory=Depends(get_github_client_factory),
):
    context = PRContext(owner=inp.owner, repo=inp.repo, pull_number=inp.pr_number)
    return await _run_pr_review(context, settings, reviewer, github_factory)


@app.post("/webhook", response_model=ReviewRunResponse, summary="Review the PR named by a GitHub pull_request event")
async def webhook(
    payload: Dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings),
    reviewer: ReviewAgent = Depends(get_review_agent),
    github_factory=Depends(get_github_client_factory),
):
    context = GitHubClient.context_from_event(payload)
    action = payload.get("action")
    if context is None or (action is not None and action not in REVIEWABLE_ACTIONS):
        logger.info(f"Ignoring event (action: {action or 'none'})")
        return ReviewRunResponse(status="ignored", review_summary="Not a reviewable pull_request event")
    return await _run_pr_review(context, settings, reviewer, github_factory)


@app.get("/")
def root(settings: Settings = Depends(get_settings)):
    return {"status": "PR Review Agent running", "git_integration": bool(settings.GITHUB_TOKEN)}
