#!/usr/bin/env python3
"""
Extract a posting from a job-board URL and tailor documents for it.

Usage:
  python run_tailor.py https://boards.greenhouse.io/acme/jobs/123
  python run_tailor.py URL --company "Acme" --headed
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from resume_tailor.browser import PlaywrightTab, open_page
from resume_tailor.client import TailorClient
from resume_tailor.config import load_settings
from resume_tailor.log import get_logger
from resume_tailor.panel import Panel
from resume_tailor.relay import MessageRelay

log = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Tailor resume and cover letter to a job posting")
    parser.add_argument("url", help="Job posting URL")
    parser.add_argument("--company", default="", help="Override the extracted company name")
    parser.add_argument("--title", default="", help="Override the extracted job title")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    args = parser.parse_args(argv)

    settings = load_settings()
    relay = MessageRelay()
    panel = Panel(relay, TailorClient(settings.base_url))

    with open_page(args.url, headless=not args.headed) as page:
        tab = PlaywrightTab(page, send=lambda message: relay.handle(message, sender_tab=1))
        relay.register_tab(1, tab)
        tab.on_page_load()
        panel.request_extraction(gentle=False)

    panel.populate_fields({"company": args.company, "title": args.title, "link": args.url})
    if panel.error:
        log.error("%s", panel.error)
        return 1

    log.info("Generating for %s: %s", panel.fields["company"], panel.fields["title"])
    result = panel.start_generation(
        on_update=lambda data: log.info("  %s: %s", data.get("status"), data.get("message")),
    )
    if result is None:
        log.error("%s", panel.error)
        return 1

    log.info("Review: %s/review?id=%s", settings.base_url, panel.job_id)
    if result.get("emailDraft"):
        log.info("Email draft:\n%s", result["emailDraft"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
