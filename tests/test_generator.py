"""
Tests for document generation.

The AI CLI is never spawned: subprocess.run is patched on the generator
module and work submitted to the executor is run by hand.
"""

import subprocess

import pytest

from conftest import CLAUDE_OUTPUT, completed
from resume_tailor.generator import (
    DESCRIPTION_FILE,
    RAW_OUTPUT,
    is_safe_filename,
    parse_claude_output,
    slugify,
)
from resume_tailor.models import JobStatus
from resume_tailor.prompt import TemplateError


@pytest.fixture
def fake_run(monkeypatch):
    """Patch subprocess.run; set ``fake_run.result`` to a CompletedProcess or exception."""

    class FakeRun:
        result = completed(stdout=CLAUDE_OUTPUT)
        calls = []

        def __call__(self, cmd, **kwargs):
            self.calls.append((cmd, kwargs))
            if isinstance(self.result, BaseException):
                raise self.result
            return self.result

    fake = FakeRun()
    fake.calls = []
    monkeypatch.setattr("resume_tailor.generator.subprocess.run", fake)
    return fake


# ============================================================
# Helpers
# ============================================================


class TestSlugify:
    def test_basic(self):
        assert slugify("Acme Corp") == "acme-corp"

    def test_punctuation_collapsed_and_trimmed(self):
        assert slugify("  --Acme, Inc.!! ") == "acme-inc"

    def test_accents_folded(self):
        assert slugify("Café Müller") == "cafe-muller"

    @pytest.mark.parametrize(
        "company, expected",
        [
            ("Ørsted", "orsted"),
            ("Bjørn Løkke AS", "bjorn-lokke-as"),
            ("Łódź Labs", "lodz-labs"),
        ],
    )
    def test_non_decomposing_letters_transliterated(self, company, expected):
        assert slugify(company) == expected

    def test_ampersand_reads_as_and(self):
        assert slugify("AT&T") == "atandt"

    def test_nothing_usable(self):
        assert slugify("!!!") == "job"
        assert slugify("") == "job"


class TestParseClaudeOutput:
    def test_blocks_in_order(self):
        files = parse_claude_output(CLAUDE_OUTPUT)
        assert [f.filename for f in files] == ["resume-acme.tex", "cover-letter-acme.tex", "email-draft.md"]
        assert files[0].content == "\\documentclass{article}\nTailored resume for Acme\n"
        assert files[2].content == "Hi Acme team, I'd love to chat.\n"

    def test_filename_whitespace_trimmed(self):
        files = parse_claude_output("===FILE:   notes.md  ===\nhello\n===END FILE===")
        assert files[0].filename == "notes.md"
        assert files[0].content == "hello\n"

    def test_no_blocks(self):
        assert parse_claude_output("Sorry, I cannot do that.") == []

    def test_unterminated_block_ignored(self):
        assert parse_claude_output("===FILE: a.tex===\nno end marker") == []


class TestIsSafeFilename:
    @pytest.mark.parametrize("name", ["resume-acme.tex", "email-draft.md", "notes"])
    def test_plain_names(self, name):
        assert is_safe_filename(name)

    @pytest.mark.parametrize("name", ["", ".", "..", "../evil.tex", "/etc/passwd", "sub/dir.tex", "..\\x.tex", "C:evil"])
    def test_rejected(self, name):
        assert not is_safe_filename(name)


# ============================================================
# DocumentGenerator
# ============================================================


class TestStart:
    def test_creates_processing_job(self, generator, store, settings, deferred):
        job = generator.start("Acme", "Engineer", "https://jobs.example/1", "Build things")
        assert job.slug == "acme"
        assert job.status is JobStatus.PROCESSING
        assert store.get(job.job_id).message == "Generating tailored documents..."
        assert len(deferred.calls) == 1

        description = (settings.job_dir("acme") / DESCRIPTION_FILE).read_text()
        assert "Company: Acme" in description
        assert description.endswith("Build things")

    def test_missing_template_records_no_job(self, generator, store, project_root, deferred):
        (project_root / "resume.tex").unlink()
        with pytest.raises(TemplateError, match="resume.tex"):
            generator.start("Acme", "Engineer", "", "Build things")
        assert len(store) == 0
        assert deferred.calls == []

    def test_prompt_carries_posting_and_templates(self, generator, deferred):
        generator.start("Acme", "Engineer", "", "Build {{SLUG}} things")
        _fn, args, _kwargs = deferred.calls[0]
        prompt = args[2]
        assert "Jane Doe, Engineer" in prompt
        assert "Dear team," in prompt
        assert "Build {{SLUG}} things" in prompt
        assert "resume-acme.tex" in prompt


class TestRun:
    def test_success_moves_to_review(self, generator, store, settings, deferred, fake_run):
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()

        done = store.get(job.job_id)
        assert done.status is JobStatus.REVIEW
        assert done.files == ["resume-acme.tex", "cover-letter-acme.tex", "email-draft.md"]
        assert done.resume_file == "resume-acme.tex"
        assert done.cover_letter_file == "cover-letter-acme.tex"
        assert done.email_draft == "Hi Acme team, I'd love to chat.\n"

        job_dir = settings.job_dir("acme")
        assert (job_dir / "resume-acme.tex").read_text().startswith("\\documentclass{article}")
        assert (job_dir / RAW_OUTPUT).read_text() == CLAUDE_OUTPUT

    def test_cli_invocation(self, generator, settings, deferred, fake_run, monkeypatch):
        monkeypatch.setenv("CLAUDECODE", "1")
        generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()

        cmd, kwargs = fake_run.calls[0]
        assert cmd[:7] == ["claude", "--print", "--output-format", "text", "--max-turns", "10", "-p"]
        assert kwargs["cwd"] == str(settings.project_root)
        assert kwargs["timeout"] == 300.0
        assert "CLAUDECODE" not in kwargs["env"]

    def test_nonzero_exit(self, generator, store, deferred, fake_run):
        fake_run.result = completed(returncode=1, stderr="rate limited")
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()

        failed = store.get(job.job_id)
        assert failed.status is JobStatus.ERROR
        assert failed.message == "AI CLI exited with code 1: rate limited"

    def test_timeout(self, generator, store, deferred, fake_run):
        fake_run.result = subprocess.TimeoutExpired(cmd="claude", timeout=300)
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()
        assert store.get(job.job_id).message == "AI CLI timed out after 5 minutes"

    def test_spawn_failure(self, generator, store, deferred, fake_run):
        fake_run.result = FileNotFoundError("claude")
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()
        failed = store.get(job.job_id)
        assert failed.status is JobStatus.ERROR
        assert failed.message.startswith("Failed to spawn AI CLI")

    def test_no_blocks_saves_raw_output(self, generator, store, settings, deferred, fake_run):
        fake_run.result = completed(stdout="I could not produce the files.")
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()

        failed = store.get(job.job_id)
        assert failed.status is JobStatus.ERROR
        assert failed.message == "AI CLI produced no parseable files. Raw output saved to job directory."
        assert (settings.job_dir("acme") / RAW_OUTPUT).read_text() == "I could not produce the files."

    def test_unsafe_names_skipped(self, generator, store, settings, tmp_path, deferred, fake_run):
        fake_run.result = completed(stdout=(
            "===FILE: ../../escape.tex===\nbad\n===END FILE===\n"
            "===FILE: resume-acme.tex===\ngood\n===END FILE===\n"
        ))
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()

        done = store.get(job.job_id)
        assert done.status is JobStatus.REVIEW
        assert done.files == ["resume-acme.tex"]
        assert done.email_draft == ""
        assert not (settings.project_root / "escape.tex").exists()
        assert not (tmp_path / "escape.tex").exists()

    def test_only_unsafe_names_is_error(self, generator, store, deferred, fake_run):
        fake_run.result = completed(stdout="===FILE: /tmp/x.tex===\nbad\n===END FILE===\n")
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()
        assert store.get(job.job_id).status is JobStatus.ERROR

    def test_unexpected_crash_marks_error(self, generator, store, deferred, fake_run):
        fake_run.result = RuntimeError("boom")
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()
        failed = store.get(job.job_id)
        assert failed.status is JobStatus.ERROR
        assert failed.message == "Generation failed: boom"

    def test_review_page_failure_keeps_review(self, generator, store, deferred, fake_run, monkeypatch):
        def broken_open(_url, _settings):
            raise RuntimeError("no display")

        monkeypatch.setattr("resume_tailor.generator.open_url", broken_open)
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()

        done = store.get(job.job_id)
        assert done.status is JobStatus.REVIEW
        assert done.message == "Documents generated. Open review page to edit and compile."

    def test_review_page_opened(self, generator, settings, deferred, fake_run, monkeypatch):
        opened = []
        monkeypatch.setattr("resume_tailor.generator.open_url", lambda url, _s: opened.append(url))
        job = generator.start("Acme", "Engineer", "", "Build things")
        deferred.run_all()
        assert opened == [f"{settings.base_url}/review?id={job.job_id}"]
