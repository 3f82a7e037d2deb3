from pydantic import BaseModel, Field
from typing import List, Literal, Optional

Severity = Literal["critical", "warning", "suggestion", "info"]


class Issue(BaseModel):
    line: int = Field(ge=1, description="Line number in the new version of the file")
    severity: Severity
    category: str = ""
    message: str
    suggestion: Optional[str] = None


class FileReview(BaseModel):
    reviews: List[Issue] = Field(default_factory=list)
    summary: str = ""


class ReviewComment(BaseModel):
    path: str
    line: int = Field(ge=1, description="Position inside the file's patch")
    body: str
    side: Literal["LEFT", "RIGHT"] = "RIGHT"


class FileReviewResult(BaseModel):
    file_path: str
    summary: str = ""
    comments: List[ReviewComment] = Field(default_factory=list)
    critical_count: int = 0
    warning_count: int = 0
    suggestion_count: int = 0

    @property
    def issue_count(self) -> int:
        return len(self.comments)


class RunSummary(BaseModel):
    total_files: int = 0
    files_reviewed: int = 0
    total_comments: int = 0
    critical_issues: int = 0
    warnings: int = 0
    suggestions: int = 0
    summary: str = ""


class ChangedFile(BaseModel):
    filename: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: Optional[str] = None
    previous_filename: Optional[str] = None


class PRDetails(BaseModel):
    title: str
    body: Optional[str] = None
    author: str = "unknown"
    base_ref: str = ""
    head_ref: str = ""
    head_sha: str


class PRContext(BaseModel):
    owner: str
    repo: str
    pull_number: int
