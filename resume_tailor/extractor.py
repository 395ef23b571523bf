"""Read job-posting fields out of a page snapshot."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from resume_tailor.log import get_logger
from resume_tailor.models import JobPosting
from resume_tailor.sites import detect_site

log = get_logger(__name__)

AUTO_EXTRACT_DELAY = 1.5


@dataclass
class PageSnapshot:
    """What the extractor sees of a page: its URL, markup, title and selection."""

    url: str
    html: str
    title: str = ""
    selection: str = ""

    @property
    def hostname(self) -> str:
        return urlparse(self.url).hostname or ""


def _text(soup: BeautifulSoup, selector: str | None) -> str:
    if not selector:
        return ""
    el = soup.select_one(selector)
    return el.get_text().strip() if el else ""


def extract_job_data(snapshot: PageSnapshot) -> JobPosting:
    site = detect_site(snapshot.hostname)
    if site is None:
        return JobPosting(
            source="manual",
            description=(snapshot.selection or "").strip(),
            url=snapshot.url,
        )

    soup = BeautifulSoup(snapshot.html or "", "html.parser")
    company = _text(soup, site.company)
    if not company and site.company_fallback is not None:
        page_title = snapshot.title
        if not page_title and soup.title is not None:
            page_title = soup.title.get_text()
        company = site.company_fallback(page_title or "")

    posting = JobPosting(
        source=site.name,
        company=company,
        title=_text(soup, site.title),
        description=_text(soup, site.description),
        url=snapshot.url,
    )
    log.debug("Extracted %s posting: %r @ %r", site.name, posting.title, posting.company)
    return posting


class ContentScript:
    """Per-page extraction agent.

    Answers ``extract`` requests and pushes one ``jobData`` message on its
    own a short delay after the page loads.
    """

    def __init__(
        self,
        snapshot_source: Callable[[], PageSnapshot],
        send: Callable[[dict[str, Any]], Any],
        delay: float = AUTO_EXTRACT_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.snapshot_source = snapshot_source
        self.send = send
        self.delay = delay
        self.sleep = sleep

    def extract(self) -> JobPosting:
        return extract_job_data(self.snapshot_source())

    def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        if message.get("type") == "extract":
            return {"type": "jobData", "data": self.extract().to_dict()}
        return None

    def on_page_load(self) -> JobPosting | None:
        self.sleep(self.delay)
        posting = self.extract()
        if posting.is_empty():
            return None
        try:
            self.send({"type": "jobData", "data": posting.to_dict()})
        except Exception as exc:
            # Nobody listening yet is normal.
            log.debug("jobData not delivered: %s", exc)
        return posting
