"""In-memory job map mirrored to a flat JSON file."""
from __future__ import annotations

import copy
import json
import os
import threading
from pathlib import Path
from typing import Any

from resume_tailor.log import get_logger
from resume_tailor.models import JobRecord, JobStatus, can_transition

log = get_logger(__name__)


class JobNotFound(KeyError):
    pass


class InvalidTransition(ValueError):
    pass


class JobStore:
    """Single source of truth for job status.

    Every mutation rewrites the whole file. Callers only ever see copies of
    the stored records; changes go through :meth:`update`.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._jobs: dict[str, JobRecord] = {}
        self._lock = threading.Lock()

    def load(self) -> "JobStore":
        """Read the job file; a missing or corrupt file leaves the store empty."""
        if not self.path.exists():
            return self
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            jobs = [JobRecord.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            log.error("Failed to load %s: %s", self.path.name, exc)
            return self
        with self._lock:
            self._jobs = {job.job_id: job for job in jobs}
        log.info("Loaded %d jobs from disk", len(self._jobs))
        return self

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([job.to_dict() for job in self._jobs.values()], indent=2)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, self.path)

    def add(self, job: JobRecord) -> None:
        with self._lock:
            if job.job_id in self._jobs:
                raise ValueError(f"Duplicate job id {job.job_id}")
            self._jobs[job.job_id] = copy.deepcopy(job)
            self._save()

    def find(self, job_id: str) -> JobRecord | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return copy.deepcopy(job) if job else None

    def get(self, job_id: str) -> JobRecord:
        job = self.find(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def update(self, job_id: str, **changes: Any) -> JobRecord:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFound(job_id)
            if "status" in changes:
                new = JobStatus(changes["status"])
                if not can_transition(job.status, new):
                    raise InvalidTransition(f"{job.status.value} -> {new.value}")
                changes["status"] = new
            for key, value in changes.items():
                if not hasattr(job, key):
                    raise AttributeError(f"JobRecord has no field {key!r}")
                setattr(job, key, value)
            self._save()
            return copy.deepcopy(job)

    def list(self) -> list[JobRecord]:
        """All jobs, newest first."""
        with self._lock:
            return [copy.deepcopy(job) for job in reversed(self._jobs.values())]

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs
