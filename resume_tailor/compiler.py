"""Compile reviewed LaTeX documents to PDF with latexmk."""
from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from resume_tailor.config import Settings
from resume_tailor.generator import EMAIL_DRAFT, cover_letter_tex, resume_tex
from resume_tailor.launcher import open_url
from resume_tailor.log import get_logger
from resume_tailor.models import JobStatus
from resume_tailor.store import JobStore
from resume_tailor.tracker import append_application

log = get_logger(__name__)


@dataclass
class CompileResult:
    success: bool
    log: str
    error: str = ""

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "log": self.log}
        return {"success": False, "error": self.error, "log": self.log}


def compile_tex_with_log(
    settings: Settings, job_dir: Path, tex_file: str
) -> tuple[bool, str]:
    """Run the compiler on one file; returns (ok, tagged output)."""
    cmd = settings.compiler_argv() + [f"-auxdir={settings.aux_dir}", tex_file]
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(job_dir),
            capture_output=True,
            text=True,
            timeout=settings.compile_timeout,
        )
    except subprocess.TimeoutExpired:
        log.error("Compiler timed out for %s", tex_file)
        return False, f"[timeout] after {settings.compile_timeout:g}s"
    except OSError as exc:
        log.error("Could not spawn compiler for %s: %s", tex_file, exc)
        return False, f"[spawn error] {exc}"

    output = (proc.stdout or "") + (proc.stderr or "")
    if proc.returncode != 0:
        log.error("Compiler failed for %s (code %d)", tex_file, proc.returncode)
        return False, f"[exit {proc.returncode}]\n{output}"
    log.info("Compiled %s successfully", tex_file)
    return True, f"[OK]\n{output}"


class CompilerBridge:
    def __init__(self, settings: Settings, store: JobStore) -> None:
        self.settings = settings
        self.store = store

    def compile(
        self,
        job_id: str,
        *,
        resume: str | None = None,
        cover_letter: str | None = None,
        email: str | None = None,
        open_pdfs: bool = False,
    ) -> CompileResult:
        """Write review edits, compile both documents, record the outcome.

        Raises JobNotFound for an unknown id. Compiler failures never raise:
        both documents are attempted and the result carries the full log.
        """
        job = self.store.get(job_id)
        job_dir = self.settings.job_dir(job.slug)
        tex_files = [resume_tex(job.slug), cover_letter_tex(job.slug)]
        log_text = ""

        try:
            for name, text in (
                (tex_files[0], resume),
                (tex_files[1], cover_letter),
                (EMAIL_DRAFT, email),
            ):
                if text:
                    (job_dir / name).write_text(text, encoding="utf-8")
        except OSError as exc:
            log.error("[%s] Could not save review edits: %s", job_id, exc)
            return CompileResult(False, log_text, f"Could not save edits: {exc}")

        failed: list[str] = []
        for tex_file in tex_files:
            ok, output = compile_tex_with_log(self.settings, job_dir, tex_file)
            log_text += f"--- {tex_file} ---\n{output}\n"
            if not ok:
                failed.append(tex_file)

        if email:
            self.store.update(job_id, email_draft=email)

        if failed:
            message = "Compilation failed: " + ", ".join(failed)
            self.store.update(job_id, status=JobStatus.ERROR, message=message)
            return CompileResult(False, log_text, message)

        job = self.store.update(
            job_id,
            status=JobStatus.COMPLETE,
            message="Compiled successfully.",
            resume_file=f"resume-{job.slug}.pdf",
            cover_letter_file=f"cover-letter-{job.slug}.pdf",
        )

        try:
            append_application(job, self.settings.csv_path)
        except (OSError, ValueError) as exc:
            log.error("[%s] CSV append error: %s", job_id, exc)

        if open_pdfs:
            self._open_pdfs(job_id, job_dir, job.slug)
        return CompileResult(True, log_text)

    def _open_pdfs(self, job_id: str, job_dir: Path, slug: str) -> None:
        stamp = int(time.time() * 1000)
        for kind in ("resume", "cover-letter"):
            if (job_dir / f"{kind}-{slug}.pdf").exists():
                open_url(f"{self.settings.base_url}/files/{job_id}/{kind}?t={stamp}", self.settings)
