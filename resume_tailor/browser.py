"""
Live-page extraction through Playwright.

Opens a posting in Chromium, snapshots the DOM and hands it to the
extractor, so job boards that render client-side still yield text.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from resume_tailor.extractor import AUTO_EXTRACT_DELAY, ContentScript, PageSnapshot
from resume_tailor.log import get_logger
from resume_tailor.retry import retry

log = get_logger(__name__)

_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def snapshot_page(page) -> PageSnapshot:
    """Capture URL, markup, title and the current text selection."""
    try:
        selection = page.evaluate("() => window.getSelection().toString()") or ""
    except Exception as exc:
        log.debug("No selection available: %s", exc)
        selection = ""
    return PageSnapshot(url=page.url, html=page.content(), title=page.title(), selection=selection)


class PlaywrightTab:
    """Content-script handler bound to a live Playwright page."""

    def __init__(self, page, send=None, delay: float = AUTO_EXTRACT_DELAY) -> None:
        self.page = page
        self.script = ContentScript(
            lambda: snapshot_page(self.page),
            send or (lambda _message: None),
            delay=delay,
            sleep=lambda seconds: self.page.wait_for_timeout(seconds * 1000),
        )

    def __call__(self, message: dict[str, Any]) -> dict[str, Any] | None:
        return self.script.handle_message(message)

    def on_page_load(self):
        return self.script.on_page_load()


@retry(max_attempts=3, base_delay=2.0, retryable=(PlaywrightTimeoutError,))
def _goto(page, url: str) -> None:
    page.goto(url, wait_until="domcontentloaded", timeout=25_000)


@contextmanager
def open_page(url: str, *, headless: bool = True) -> Iterator[Any]:
    """Yield a Playwright page showing ``url``; the browser closes on exit."""
    pw_path = os.environ.get("PLAYWRIGHT_BROWSERS_PATH", "")
    if pw_path and not Path(pw_path).exists():
        os.environ.pop("PLAYWRIGHT_BROWSERS_PATH", None)

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=headless)
        try:
            context = browser.new_context(viewport={"width": 1280, "height": 900}, user_agent=_USER_AGENT)
            page = context.new_page()
            page.set_default_timeout(20_000)
            log.info("Opening %s", url)
            _goto(page, url)
            yield page
        finally:
            browser.close()
