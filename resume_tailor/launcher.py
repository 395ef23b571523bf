"""Best-effort opening of local URLs in a browser window."""
from __future__ import annotations

import subprocess
import webbrowser

from resume_tailor.config import Settings
from resume_tailor.log import get_logger

log = get_logger(__name__)


def open_url(url: str, settings: Settings) -> bool:
    """Open ``url`` without waiting on the browser. Failures are logged, never raised."""
    if not settings.open_browser:
        log.debug("Browser opening disabled, skipping %s", url)
        return False
    try:
        if settings.browser_command:
            subprocess.Popen(
                settings.browser_argv() + [url],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            return True
        return webbrowser.open(url)
    except (OSError, ValueError, webbrowser.Error) as exc:
        log.warning("Could not open %s: %s", url, exc)
        return False
