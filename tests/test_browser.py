"""Tests for PlaywrightTab against a stand-in page object (no real browser)."""

from resume_tailor.browser import PlaywrightTab, snapshot_page


LEVER_HTML = """<html><body><div class="posting-page">
<div class="posting-headline"><h2>Data Engineer</h2><span class="company-name">Initech</span></div>
<div class="content">Move data.</div>
</div></body></html>"""


class FakePage:
    def __init__(self, url, html, title="", selection="", selection_error=None):
        self.url = url
        self._html = html
        self._title = title
        self._selection = selection
        self._selection_error = selection_error
        self.waited = []

    def content(self):
        return self._html

    def title(self):
        return self._title

    def evaluate(self, _script):
        if self._selection_error:
            raise self._selection_error
        return self._selection

    def wait_for_timeout(self, ms):
        self.waited.append(ms)


def test_snapshot_page():
    page = FakePage("https://example.com/job", "<p>x</p>", title="Job", selection="picked text")
    snap = snapshot_page(page)
    assert snap.url == "https://example.com/job"
    assert snap.title == "Job"
    assert snap.selection == "picked text"


def test_snapshot_survives_selection_error():
    page = FakePage("https://example.com/job", "", selection_error=RuntimeError("detached"))
    assert snapshot_page(page).selection == ""


def test_tab_answers_extract():
    tab = PlaywrightTab(FakePage("https://jobs.lever.co/initech/1", LEVER_HTML))
    response = tab({"type": "extract"})
    assert response["data"]["company"] == "Initech"
    assert response["data"]["source"] == "lever"


def test_page_load_waits_then_sends():
    sent = []
    page = FakePage("https://jobs.lever.co/initech/1", LEVER_HTML)
    tab = PlaywrightTab(page, send=sent.append)
    posting = tab.on_page_load()
    assert page.waited == [1500.0]
    assert posting.title == "Data Engineer"
    assert sent[0]["type"] == "jobData"


def test_manual_page_uses_selection():
    page = FakePage("https://example.com/careers", "<p>x</p>", selection=" Hiring a designer ")
    response = PlaywrightTab(page)({"type": "extract"})
    assert response["data"]["source"] == "manual"
    assert response["data"]["description"] == "Hiring a designer"
