"""
Message relay between page tabs and the panel.

Tabs register a handler (a content script); panels register listeners.
Only the extraction round-trip returns a value; everything else is
fire-and-forget.
"""
from __future__ import annotations

from typing import Any, Callable

from resume_tailor.log import get_logger

log = get_logger(__name__)

Message = dict[str, Any]
TabHandler = Callable[[Message], "Message | None"]
Listener = Callable[[Message], None]

NO_ACTIVE_TAB = "No active tab found."
TAB_UNREACHABLE = "Could not reach content script. Make sure you are on a supported job page."


class MessageRelay:
    def __init__(self) -> None:
        self.tabs: dict[int, TabHandler] = {}
        self.active_tab: int | None = None
        self.listeners: list[Listener] = []
        self.session: dict[str, Any] = {}
        self.sidebar_visible = False

    # ── Registration ─────────────────────────────────────────────────────

    def register_tab(self, tab_id: int, handler: TabHandler, *, activate: bool = True) -> None:
        self.tabs[tab_id] = handler
        if activate:
            self.active_tab = tab_id

    def remove_tab(self, tab_id: int) -> None:
        self.tabs.pop(tab_id, None)
        if self.active_tab == tab_id:
            self.active_tab = None

    def activate(self, tab_id: int) -> None:
        self.active_tab = tab_id

    def add_listener(self, listener: Listener) -> None:
        self.listeners.append(listener)

    # ── Dispatch ─────────────────────────────────────────────────────────

    def handle(self, message: Message, sender_tab: int | None = None) -> Message | None:
        kind = message.get("type")
        if kind == "jobData" and sender_tab is not None:
            self.session["latestJobData"] = message.get("data")
            self.broadcast(message)
            return None
        if kind == "extractFromPage":
            return self._extract_from_active_tab()
        if kind == "toggleSidebar":
            return self._toggle_sidebar()
        return None

    def broadcast(self, message: Message) -> None:
        for listener in list(self.listeners):
            try:
                listener(message)
            except Exception as exc:
                log.debug("Listener dropped %s: %s", message.get("type"), exc)

    def _extract_from_active_tab(self) -> Message:
        handler = self.tabs.get(self.active_tab) if self.active_tab is not None else None
        if handler is None:
            return {"error": NO_ACTIVE_TAB}
        try:
            response = handler({"type": "extract"})
        except Exception as exc:
            log.warning("Tab %s unreachable: %s", self.active_tab, exc)
            return {"error": TAB_UNREACHABLE}
        if response is None:
            return {"error": TAB_UNREACHABLE}
        return response

    def _toggle_sidebar(self) -> Message:
        self.sidebar_visible = not self.sidebar_visible
        handler = self.tabs.get(self.active_tab) if self.active_tab is not None else None
        if handler is not None:
            try:
                handler({"type": "toggleSidebar", "visible": self.sidebar_visible})
            except Exception as exc:
                log.debug("Sidebar toggle not delivered: %s", exc)
        return {"visible": self.sidebar_visible}
