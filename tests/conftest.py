"""
Shared fixtures for resume tailor tests.

Every test gets its own project root under tmp_path with both LaTeX
templates in place; browser opening is disabled.
"""

import subprocess
from unittest.mock import MagicMock

import pytest

from resume_tailor.compiler import CompilerBridge
from resume_tailor.config import Settings
from resume_tailor.generator import DocumentGenerator
from resume_tailor.server import create_app
from resume_tailor.store import JobStore


RESUME_TEX = "\\documentclass{article}\n\\begin{document}\nJane Doe, Engineer\n\\end{document}\n"
COVER_TEX = "\\documentclass{letter}\n\\begin{document}\nDear team,\n\\end{document}\n"

CLAUDE_OUTPUT = """Here are your files.

===FILE: resume-acme.tex===
\\documentclass{article}
Tailored resume for Acme
===END FILE===

===FILE: cover-letter-acme.tex===
\\documentclass{letter}
Tailored cover letter for Acme
===END FILE===

===FILE: email-draft.md===
Hi Acme team, I'd love to chat.
===END FILE===
"""


# ============================================================
# Executors
# ============================================================


class DeferredExecutor:
    """Records submitted work without running it."""

    def __init__(self):
        self.calls = []

    def submit(self, fn, *args, **kwargs):
        self.calls.append((fn, args, kwargs))

    def run_all(self):
        calls, self.calls = self.calls, []
        for fn, args, kwargs in calls:
            fn(*args, **kwargs)


class ImmediateExecutor:
    """Runs submitted work inline, before submit() returns."""

    def submit(self, fn, *args, **kwargs):
        fn(*args, **kwargs)


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=["claude"], returncode=returncode, stdout=stdout, stderr=stderr)


# ============================================================
# Settings / store fixtures
# ============================================================


@pytest.fixture
def project_root(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    (root / "resume.tex").write_text(RESUME_TEX, encoding="utf-8")
    (root / "cover-letter.tex").write_text(COVER_TEX, encoding="utf-8")
    return root


@pytest.fixture
def settings(tmp_path, project_root):
    return Settings(
        project_root=project_root,
        jobs_path=tmp_path / "data" / "jobs.json",
        open_browser=False,
    )


@pytest.fixture
def store(settings):
    return JobStore(settings.jobs_path).load()


@pytest.fixture
def deferred():
    return DeferredExecutor()


@pytest.fixture
def generator(settings, store, deferred):
    return DocumentGenerator(settings, store, executor=deferred)


@pytest.fixture
def compiler(settings, store):
    return CompilerBridge(settings, store)


# ============================================================
# Flask test client
# ============================================================


@pytest.fixture
def app(settings, store, generator, compiler):
    app = create_app(settings, store=store, generator=generator, compiler=compiler)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def fake_session():
    """requests.Session stand-in; set .request.side_effect / return_value per test."""
    return MagicMock()
