"""
Job boards the extractor understands.

Each board is a fixed SiteConfig variant. Selectors are CSS, tried once;
a board without a company selector supplies a fallback that derives the
company from the page title instead.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

_AT_COMPANY = re.compile(r"\bat\s+(.+?)(?:\s*[-|]|$)", re.IGNORECASE)


def company_from_page_title(page_title: str) -> str:
    """Greenhouse titles read "<Job Title> at <Company>" with an optional suffix."""
    m = _AT_COMPANY.search(page_title or "")
    return m.group(1).strip() if m else ""


@dataclass(frozen=True)
class SiteConfig:
    name: str
    hostname: str
    title: str
    description: str
    company: str | None = None
    company_fallback: Callable[[str], str] | None = None


LINKEDIN = SiteConfig(
    name="linkedin",
    hostname="linkedin.com",
    title=".jobs-unified-top-card__job-title",
    company=".jobs-unified-top-card__company-name",
    description=".jobs-description__content",
)

INDEED = SiteConfig(
    name="indeed",
    hostname="indeed.com",
    title=".jobsearch-JobInfoHeader-title",
    company="[data-company-name]",
    description="#jobDescriptionText",
)

GREENHOUSE = SiteConfig(
    name="greenhouse",
    hostname="greenhouse.io",
    title="h1.app-title",
    company=None,
    description="#content .body",
    company_fallback=company_from_page_title,
)

LEVER = SiteConfig(
    name="lever",
    hostname="lever.co",
    title=".posting-headline h2",
    company=".posting-headline .company-name",
    description=".posting-page .content",
)

SITES: tuple[SiteConfig, ...] = (LINKEDIN, INDEED, GREENHOUSE, LEVER)


def detect_site(hostname: str) -> SiteConfig | None:
    host = (hostname or "").lower()
    for site in SITES:
        if site.hostname in host:
            return site
    return None
