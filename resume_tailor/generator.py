"""
Tailored document generation.

Runs: posting → job dir → prompt → AI CLI subprocess (background) → parse
===FILE: …=== blocks → write files → job moves to review.
"""
from __future__ import annotations

import os
import re
import subprocess
import uuid
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path, PurePosixPath, PureWindowsPath

from slugify import slugify as _slugify

from resume_tailor.config import Settings
from resume_tailor.launcher import open_url
from resume_tailor.log import get_logger
from resume_tailor.models import GeneratedFile, JobRecord, JobStatus
from resume_tailor.prompt import build_prompt, load_templates
from resume_tailor.store import JobStore

log = get_logger(__name__)

EMAIL_DRAFT = "email-draft.md"
RAW_OUTPUT = "claude-raw-output.txt"
DESCRIPTION_FILE = "job-description.txt"

_FILE_BLOCK = re.compile(r"===FILE:\s*([^\n]+?)===\s*\n(.*?)===END FILE===", re.DOTALL)


def slugify(text: str) -> str:
    """Transliterated ASCII, lowercase, dash-separated identifier; "&" reads as "and"."""
    slug = _slugify(text or "", replacements=[["&", "and"]])
    return slug or "job"


def parse_claude_output(output: str) -> list[GeneratedFile]:
    """Return delimited file blocks in source order; content ends in one newline."""
    return [
        GeneratedFile(filename=m.group(1).strip(), content=m.group(2).strip() + "\n")
        for m in _FILE_BLOCK.finditer(output)
    ]


def is_safe_filename(name: str) -> bool:
    """Plain file name only: no directories, parent segments or drive letters."""
    if not name or name in (".", ".."):
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    if PurePosixPath(name).is_absolute() or PureWindowsPath(name).drive:
        return False
    return True


def resume_tex(slug: str) -> str:
    return f"resume-{slug}.tex"


def cover_letter_tex(slug: str) -> str:
    return f"cover-letter-{slug}.tex"


def _clean_env() -> dict[str, str]:
    """Copy of os.environ without CLAUDECODE so a nested CLI session starts."""
    env = os.environ.copy()
    env.pop("CLAUDECODE", None)
    return env


class DocumentGenerator:
    def __init__(
        self,
        settings: Settings,
        store: JobStore,
        executor: Executor | None = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.executor = executor or ThreadPoolExecutor(thread_name_prefix="generate")

    def start(self, company: str, title: str, link: str, description: str) -> JobRecord:
        """Create the job and hand generation to the executor.

        Raises TemplateError when a template cannot be read; no job is
        recorded in that case.
        """
        slug = slugify(company)
        job_id = str(uuid.uuid4())
        job_dir = self.settings.job_dir(slug)
        job_dir.mkdir(parents=True, exist_ok=True)

        (job_dir / DESCRIPTION_FILE).write_text(
            "\n".join([f"Company: {company}", f"Title: {title}", "", description]),
            encoding="utf-8",
        )

        resume_content, cover_letter_content = load_templates(self.settings)
        prompt = build_prompt(
            self.settings.prompt_template_path,
            resume_content=resume_content,
            cover_letter_content=cover_letter_content,
            company=company,
            title=title,
            description=description,
            slug=slug,
        )

        job = JobRecord(
            job_id=job_id,
            slug=slug,
            company=company,
            title=title,
            link=link or "",
            status=JobStatus.PROCESSING,
            message="Generating tailored documents...",
        )
        self.store.add(job)
        log.info("[%s] Queued generation for %s: %s", job_id, company, title)

        self.executor.submit(self.run, job_id, slug, prompt, job_dir)
        return job

    def run(self, job_id: str, slug: str, prompt: str, job_dir: Path) -> None:
        """Worker body. Every failure ends with the job marked error."""
        try:
            ready = self._generate(job_id, slug, prompt, job_dir)
        except Exception as exc:
            log.exception("[%s] Generation crashed", job_id)
            self._fail(job_id, f"Generation failed: {exc}")
            return
        if ready:
            self._announce(job_id)

    def _announce(self, job_id: str) -> None:
        """Best-effort: the job stays in review whatever happens here."""
        review_url = f"{self.settings.base_url}/review?id={job_id}"
        try:
            open_url(review_url, self.settings)
        except Exception:
            log.exception("[%s] Could not open review page", job_id)
        log.info("[%s] Ready for review: %s", job_id, review_url)

    def _fail(self, job_id: str, message: str) -> None:
        self.store.update(job_id, status=JobStatus.ERROR, message=message)

    def _generate(self, job_id: str, slug: str, prompt: str, job_dir: Path) -> bool:
        cmd = self.settings.ai_argv() + [
            "--print",
            "--output-format", "text",
            "--max-turns", str(self.settings.max_turns),
            "-p", prompt,
        ]
        timeout = self.settings.generation_timeout
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(self.settings.project_root),
                env=_clean_env(),
            )
        except subprocess.TimeoutExpired:
            log.error("[%s] AI CLI timed out after %.0fs", job_id, timeout)
            self._fail(job_id, f"AI CLI timed out after {timeout / 60:g} minutes")
            return False
        except OSError as exc:
            log.error("[%s] Could not spawn AI CLI: %s", job_id, exc)
            self._fail(job_id, f"Failed to spawn AI CLI: {exc}")
            return False

        stdout, stderr = proc.stdout or "", proc.stderr or ""
        if proc.returncode != 0:
            log.error("[%s] AI CLI exited with code %d: %s", job_id, proc.returncode, stderr[:500])
            self._fail(job_id, f"AI CLI exited with code {proc.returncode}: {stderr[:500]}")
            return False

        (job_dir / RAW_OUTPUT).write_text(stdout, encoding="utf-8")

        files = []
        for f in parse_claude_output(stdout):
            if is_safe_filename(f.filename):
                files.append(f)
            else:
                log.warning("[%s] Skipping unsafe file name %r", job_id, f.filename)
        if not files:
            self._fail(job_id, "AI CLI produced no parseable files. Raw output saved to job directory.")
            return False

        written: list[str] = []
        for f in files:
            path = job_dir / f.filename
            path.write_text(f.content, encoding="utf-8")
            written.append(f.filename)
            log.info("[%s] Wrote %s", job_id, path)

        email = next((f.content for f in files if f.filename == EMAIL_DRAFT), "")
        self.store.update(
            job_id,
            status=JobStatus.REVIEW,
            message="Documents generated. Open review page to edit and compile.",
            files=written,
            resume_file=resume_tex(slug),
            cover_letter_file=cover_letter_tex(slug),
            email_draft=email,
        )
        return True
