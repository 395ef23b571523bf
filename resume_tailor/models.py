"""Data models for tailoring jobs and extracted postings."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class JobStatus(str, Enum):
    PROCESSING = "processing"
    REVIEW = "review"
    COMPLETE = "complete"
    ERROR = "error"


# Nothing ever moves back to PROCESSING.
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PROCESSING: frozenset({JobStatus.REVIEW, JobStatus.ERROR}),
    JobStatus.REVIEW: frozenset({JobStatus.REVIEW, JobStatus.COMPLETE, JobStatus.ERROR}),
    JobStatus.COMPLETE: frozenset({JobStatus.COMPLETE, JobStatus.ERROR}),
    JobStatus.ERROR: frozenset({JobStatus.COMPLETE, JobStatus.ERROR}),
}


def can_transition(current: JobStatus, new: JobStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class JobRecord:
    job_id: str
    slug: str
    company: str = ""
    title: str = ""
    link: str = ""
    status: JobStatus = JobStatus.PROCESSING
    message: str = ""
    files: list[str] = field(default_factory=list)
    resume_file: str | None = None
    cover_letter_file: str | None = None
    email_draft: str | None = None
    created_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "slug": self.slug,
            "company": self.company,
            "title": self.title,
            "link": self.link,
            "status": self.status.value,
            "message": self.message,
            "files": list(self.files),
            "resumeFile": self.resume_file,
            "coverLetterFile": self.cover_letter_file,
            "emailDraft": self.email_draft,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobRecord":
        return cls(
            job_id=data["jobId"],
            slug=data.get("slug", ""),
            company=data.get("company", ""),
            title=data.get("title", ""),
            link=data.get("link", ""),
            status=JobStatus(data.get("status", JobStatus.ERROR.value)),
            message=data.get("message", ""),
            files=list(data.get("files") or []),
            resume_file=data.get("resumeFile"),
            cover_letter_file=data.get("coverLetterFile"),
            email_draft=data.get("emailDraft"),
            created_at=data.get("createdAt", ""),
        )

    def summary(self) -> dict[str, Any]:
        """Row shown on the dashboard job list."""
        return {
            "jobId": self.job_id,
            "slug": self.slug,
            "company": self.company or self.slug,
            "title": self.title,
            "status": self.status.value,
            "message": self.message,
            "files": list(self.files),
            "resumeFile": self.resume_file,
            "coverLetterFile": self.cover_letter_file,
        }

    def status_payload(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "status": self.status.value,
            "message": self.message,
            "slug": self.slug,
            "files": list(self.files),
            "resumeFile": self.resume_file,
            "coverLetterFile": self.cover_letter_file,
            "emailDraft": self.email_draft or None,
        }


@dataclass
class JobPosting:
    """Posting text scraped from a job board page (or a manual selection)."""

    source: str = "manual"
    company: str = ""
    title: str = ""
    description: str = ""
    url: str = ""

    def is_empty(self) -> bool:
        return not (self.description or self.title or self.company)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class GeneratedFile:
    filename: str
    content: str
