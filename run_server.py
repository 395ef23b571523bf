#!/usr/bin/env python3
"""Entry point to run the local tailoring server."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from resume_tailor.config import COVER_LETTER_TEMPLATE, RESUME_TEMPLATE, load_settings
from resume_tailor.log import get_logger

log = get_logger(__name__)


def _check_setup(project_root: Path) -> bool:
    """Return True if the document templates are missing."""
    missing = [n for n in (RESUME_TEMPLATE, COVER_LETTER_TEMPLATE) if not (project_root / n).exists()]
    if missing:
        print()
        print(f"  Missing template(s) in {project_root}: {', '.join(missing)}")
        print("  Set TAILOR_PROJECT_ROOT (or project_root in config/settings.yaml).")
        print()
        return True
    return False


if __name__ == "__main__":
    settings = load_settings()
    if _check_setup(settings.project_root):
        sys.exit(1)

    from resume_tailor.server import run

    run(settings)
