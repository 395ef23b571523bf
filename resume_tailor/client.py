"""HTTP client for the local tailoring server."""
from __future__ import annotations

import time
from typing import Any, Callable

import requests

from resume_tailor.log import get_logger

log = get_logger(__name__)

TERMINAL_STATUSES: frozenset[str] = frozenset({"review", "complete", "done", "error", "failed"})
POLL_INTERVAL = 2.0


class ClientError(RuntimeError):
    pass


class TailorClient:
    def __init__(
        self,
        base_url: str = "http://localhost:3847",
        session: requests.Session | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            r = self.session.request(method, self.base_url + path, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ClientError(f"Could not reach server: {exc}") from exc
        try:
            data = r.json()
        except ValueError:
            data = {}
        if not r.ok:
            message = (data.get("error") or data.get("message")) if isinstance(data, dict) else None
            raise ClientError(message or f"Server responded with {r.status_code}")
        return data

    def generate(self, company: str, title: str, link: str, description: str) -> dict[str, Any]:
        return self._request(
            "POST",
            "/generate",
            json={"company": company, "title": title, "link": link, "description": description},
        )

    def status(self, job_id: str) -> dict[str, Any]:
        return self._request("GET", f"/status/{job_id}")

    def review(self, job_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/review/{job_id}")

    def compile(
        self,
        job_id: str,
        *,
        resume: str | None = None,
        cover_letter: str | None = None,
        email: str | None = None,
        open_pdfs: bool = False,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"openPdfs": open_pdfs}
        if resume is not None:
            body["resume"] = resume
        if cover_letter is not None:
            body["coverLetter"] = cover_letter
        if email is not None:
            body["email"] = email
        return self._request("POST", f"/api/compile/{job_id}", json=body)

    def jobs(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/jobs")

    def applications(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/csv")

    def wait_for_job(
        self,
        job_id: str,
        *,
        interval: float = POLL_INTERVAL,
        timeout: float | None = None,
        on_update: Callable[[dict[str, Any]], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> dict[str, Any]:
        """Poll /status until a terminal status; ClientError on give-up or lost server."""
        started = time.monotonic()
        while True:
            data = self.status(job_id)
            log.debug("[%s] status=%s", job_id, data.get("status"))
            if on_update is not None:
                on_update(data)
            if data.get("status") in TERMINAL_STATUSES:
                return data
            if timeout is not None and time.monotonic() - started >= timeout:
                raise ClientError(f"Gave up waiting for job {job_id}")
            sleep(interval)
