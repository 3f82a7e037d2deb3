import logging
from enum import StrEnum
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from errors import ConfigError
from utils.retry import RetryOptions

logger = logging.getLogger(__name__)


class ReviewMode(StrEnum):
    summary = "summary"
    detailed = "detailed"
    security = "security"
    performance = "performance"


DEFAULT_EXCLUDE_PATTERNS = [
    "*.lock", "*.min.js", "*.min.css",
    "dist/**", "build/**", "node_modules/**", "coverage/**",
]

_ISSUE_FORMAT = """Output format (JSON only, no prose around it):
{
  "reviews": [
    {
      "line": <line number in the NEW version of the file>,
      "severity": "critical|warning|suggestion|info",
      "category": "%s",
      "message": "Clear explanation of the issue",
      "suggestion": "Optional single replacement line of code, not advice"
    }
  ],
  "summary": "Brief overall assessment"
}"""

DEFAULT_PROMPTS = {
    ReviewMode.summary: """You are an expert code reviewer. Give a high-level view of the change.

Cover:
1. What the change does
2. Potential concerns at a high level
3. Overall code quality

Output format (JSON only):
{
  "summary": "Overall assessment in 2-3 sentences",
  "reviews": []
}""",

    ReviewMode.detailed: """You are an expert code reviewer. Analyze the changed lines and give actionable feedback.

Review criteria:
1. Security: injection, XSS, unsafe eval, hardcoded secrets
2. Performance: inefficient algorithms, leaks, wasted work
3. Maintainability: smells, duplication, complexity
4. Best practices: error handling, logging, tests
5. Style: deviations from the language's conventions

""" + _ISSUE_FORMAT % "security|performance|maintainability|style|best-practice" + """

Rules:
- Only comment on added lines of the diff
- Be specific and actionable, critical issues first
- Return an empty reviews array when nothing is wrong""",

    ReviewMode.security: """You are a security reviewer. Look only at vulnerabilities and unsafe practices.

Checklist:
1. Injection: SQL, command, XSS
2. Authentication and authorization gaps
3. Data exposure: secrets, sensitive logging, insecure storage
4. Cryptography: weak algorithms, key handling
5. Input validation and unsafe deserialization
6. Vulnerable dependencies when manifests change

""" + _ISSUE_FORMAT % "security" + """

Flag every security concern, even minor ones.""",

    ReviewMode.performance: """You are a performance reviewer. Look for efficiency problems.

Checklist:
1. Algorithmic complexity and needless loops
2. Memory retention and poor data structures
3. Redundant I/O and N+1 queries
4. Missed caching or bad invalidation
5. Blocking calls in async code
6. Unreleased connections, handles and listeners

""" + _ISSUE_FORMAT % "performance",
}


def get_default_prompt(mode: str) -> str:
    try:
        return DEFAULT_PROMPTS[ReviewMode(mode)]
    except ValueError:
        return DEFAULT_PROMPTS[ReviewMode.detailed]


class Settings(BaseSettings):
    # Empty tokens let the service start; the endpoints that need them answer 503.
    GITHUB_TOKEN: str = ""
    GITHUB_API_BASE: str = "https://api.github.com"

    GEMINI_API_KEY: str = ""
    LLM_MODEL: str = "gemini-2.0-flash"

    PROMPT: str = ""
    REVIEW_MODE: ReviewMode = ReviewMode.detailed
    MAX_FILES: int = Field(default=50, ge=0)  # 0 = unlimited
    EXCLUDE_PATTERNS: str = ""
    FAIL_ON_ERROR: bool = False
    POST_AS_REVIEW: bool = True

    RETRY_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    RETRY_BACKOFF_MS: int = Field(default=1000, ge=0)
    RETRY_MAX_BACKOFF_MS: int = Field(default=30000, ge=0)

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("GITHUB_API_BASE")
    @classmethod
    def _check_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError("URL must use HTTP or HTTPS protocol")
        return v.rstrip("/")

    @property
    def exclude_patterns(self) -> List[str]:
        if not self.EXCLUDE_PATTERNS.strip():
            return list(DEFAULT_EXCLUDE_PATTERNS)
        return [p.strip() for p in self.EXCLUDE_PATTERNS.split(",") if p.strip()]

    @property
    def review_prompt(self) -> str:
        return self.PROMPT or get_default_prompt(self.REVIEW_MODE)

    def retry_options(self) -> RetryOptions:
        return RetryOptions(
            max_attempts=self.RETRY_MAX_ATTEMPTS,
            backoff_ms=self.RETRY_BACKOFF_MS,
            max_backoff_ms=self.RETRY_MAX_BACKOFF_MS,
        )


def load_settings(**overrides) -> Settings:
    """Build Settings, reporting validation problems as ConfigError."""
    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.info("Configuration loaded:")
    logger.info(f"  GitHub API: {settings.GITHUB_API_BASE}")
    logger.info(f"  LLM Model: {settings.LLM_MODEL}")
    logger.info(f"  Review Mode: {settings.REVIEW_MODE}")
    logger.info(f"  Max Files: {settings.MAX_FILES or 'unlimited'}")
    logger.info(f"  Exclude Patterns: {', '.join(settings.exclude_patterns)}")
    logger.info(f"  Post as Review: {settings.POST_AS_REVIEW}")
    logger.info(f"  Fail on Error: {settings.FAIL_ON_ERROR}")
    return settings


@lru_cache
def get_settings() -> Settings:
    return load_settings()
