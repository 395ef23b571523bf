"""Panel state: form fields, extraction requests and generation progress."""
from __future__ import annotations

from typing import Any, Callable

from resume_tailor.client import ClientError, TailorClient
from resume_tailor.log import get_logger
from resume_tailor.relay import MessageRelay

log = get_logger(__name__)

FIELDS: tuple[str, ...] = ("company", "title", "link", "description")
REQUIRED: tuple[str, ...] = ("company", "title", "description")


class Panel:
    """Mirrors the side panel.

    ``error`` plays the error banner: set by explicit failures, cleared by
    :meth:`dismiss_error`. Automatic ("gentle") extraction never sets it,
    since it is expected to fail on pages that are not job postings.
    """

    def __init__(self, relay: MessageRelay, client: TailorClient) -> None:
        self.relay = relay
        self.client = client
        self.fields: dict[str, str] = {k: "" for k in FIELDS}
        self.error: str | None = None
        self.job_id: str | None = None
        self.result: dict[str, Any] | None = None
        relay.add_listener(self.on_message)

    def on_message(self, message: dict[str, Any]) -> None:
        if message.get("type") == "jobData" and message.get("data"):
            self.populate_fields(message["data"], only_empty=True)

    def restore_cached(self) -> None:
        cached = self.relay.session.get("latestJobData")
        if cached:
            self.populate_fields(cached, only_empty=True)

    def populate_fields(self, data: dict[str, Any], only_empty: bool = False) -> None:
        incoming = {
            "company": data.get("company") or "",
            "title": data.get("title") or "",
            "link": data.get("link") or data.get("url") or "",
            "description": data.get("description") or "",
        }
        for key, value in incoming.items():
            if value and (not only_empty or not self.fields[key].strip()):
                self.fields[key] = value

    def request_extraction(self, gentle: bool = False) -> bool:
        response = self.relay.handle({"type": "extractFromPage"})
        if not response:
            if not gentle:
                self.show_error("Could not connect to the page. Is the tab on a job posting?")
            return False
        if response.get("error"):
            if not gentle:
                self.show_error(response["error"])
            return False
        if response.get("data"):
            self.populate_fields(response["data"], only_empty=gentle)
            return True
        return False

    def show_error(self, message: str) -> None:
        log.warning("Panel error: %s", message)
        self.error = message

    def dismiss_error(self) -> None:
        self.error = None

    def retry(self, **kwargs: Any) -> dict[str, Any] | None:
        """Error banner "Retry": hide the banner and run generation again."""
        self.dismiss_error()
        return self.start_generation(**kwargs)

    def clear(self) -> None:
        self.fields = {k: "" for k in FIELDS}

    def reset(self) -> None:
        self.clear()
        self.dismiss_error()
        self.job_id = None
        self.result = None

    def start_generation(
        self,
        *,
        timeout: float | None = None,
        on_update: Callable[[dict[str, Any]], None] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> dict[str, Any] | None:
        """Submit the form and poll until the job settles.

        Returns the final status payload, or None with ``error`` set.
        """
        values = {k: self.fields[k].strip() for k in FIELDS}
        if not all(values[k] for k in REQUIRED):
            self.show_error("Please fill in all fields before generating.")
            return None

        self.dismiss_error()
        try:
            started = self.client.generate(**values)
            self.job_id = started["jobId"]
            kwargs: dict[str, Any] = {"timeout": timeout, "on_update": on_update}
            if sleep is not None:
                kwargs["sleep"] = sleep
            final = self.client.wait_for_job(self.job_id, **kwargs)
        except ClientError as exc:
            self.show_error(str(exc) or "Failed to start generation. Is the server running?")
            return None

        if final.get("status") in ("error", "failed"):
            self.show_error(final.get("message") or "Generation failed on the server.")
            return None
        self.result = final
        return final
