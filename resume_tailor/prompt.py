"""Load the document templates and fill the generation prompt."""
from __future__ import annotations

import re
from pathlib import Path

from resume_tailor.config import COVER_LETTER_TEMPLATE, RESUME_TEMPLATE, Settings
from resume_tailor.log import get_logger

log = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{\{([A-Z_]+)\}\}")


class TemplateError(RuntimeError):
    """A template file could not be read. Configuration problem, never retried."""


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateError(f"Failed to read {path.name}: {exc}") from exc


def load_templates(settings: Settings) -> tuple[str, str]:
    """Return (resume, cover letter) LaTeX sources from the project root."""
    resume = _read(settings.project_root / RESUME_TEMPLATE)
    cover_letter = _read(settings.project_root / COVER_LETTER_TEMPLATE)
    return resume, cover_letter


def build_prompt(
    template_path: Path,
    *,
    resume_content: str,
    cover_letter_content: str,
    company: str,
    title: str,
    description: str,
    slug: str,
) -> str:
    """Fill ``{{PLACEHOLDER}}`` slots in the prompt template.

    The template lives in a plain text file so the wording can be edited
    without touching code.
    """
    template = _read(template_path)
    values = {
        "RESUME_CONTENT": resume_content,
        "COVER_LETTER_CONTENT": cover_letter_content,
        "COMPANY": company,
        "TITLE": title,
        "DESCRIPTION": description,
        "SLUG": slug,
    }
    # Single pass so placeholder-like text inside the values stays literal.
    prompt = _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)
    log.debug("Built prompt for %s (%d chars)", slug, len(prompt))
    return prompt
