"""Load server settings from defaults, config/settings.yaml and env."""
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from resume_tailor.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
PACKAGE_DIR: Path = Path(__file__).resolve().parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"
STATIC_DIR: Path = PACKAGE_DIR / "static"
DEFAULT_PROMPT_TEMPLATE: Path = PACKAGE_DIR / "prompt_template.txt"

RESUME_TEMPLATE = "resume.tex"
COVER_LETTER_TEMPLATE = "cover-letter.tex"


@dataclass
class Settings:
    host: str = "127.0.0.1"
    port: int = 3847
    project_root: Path = field(default_factory=Path.cwd)
    jobs_path: Path = DATA_DIR / "jobs.json"
    csv_path: Path | None = None
    prompt_template_path: Path = DEFAULT_PROMPT_TEMPLATE
    ai_command: str = "claude"
    max_turns: int = 10
    generation_timeout: float = 300.0
    compiler_command: str = "latexmk -pdf -interaction=nonstopmode"
    compile_timeout: float = 180.0
    browser_command: str = ""
    open_browser: bool = True
    poll_interval: float = 2.0

    def __post_init__(self) -> None:
        self.project_root = Path(self.project_root).expanduser()
        self.jobs_path = Path(self.jobs_path).expanduser()
        self.prompt_template_path = Path(self.prompt_template_path).expanduser()
        if self.csv_path is None:
            self.csv_path = self.project_root / "applications.csv"
        else:
            self.csv_path = Path(self.csv_path).expanduser()

    @property
    def jobs_dir(self) -> Path:
        return self.project_root / "jobs"

    @property
    def aux_dir(self) -> Path:
        return self.project_root / "aux"

    @property
    def base_url(self) -> str:
        return f"http://localhost:{self.port}"

    def job_dir(self, slug: str) -> Path:
        return self.jobs_dir / slug

    def ai_argv(self) -> list[str]:
        return shlex.split(self.ai_command)

    def compiler_argv(self) -> list[str]:
        return shlex.split(self.compiler_command)

    def browser_argv(self) -> list[str]:
        return shlex.split(self.browser_command)


_ENV_KEYS: dict[str, str] = {
    "host": "TAILOR_HOST",
    "port": "TAILOR_PORT",
    "project_root": "TAILOR_PROJECT_ROOT",
    "jobs_path": "TAILOR_JOBS_PATH",
    "csv_path": "TAILOR_CSV_PATH",
    "prompt_template_path": "TAILOR_PROMPT_TEMPLATE",
    "ai_command": "TAILOR_AI_COMMAND",
    "max_turns": "TAILOR_MAX_TURNS",
    "generation_timeout": "TAILOR_GENERATION_TIMEOUT",
    "compiler_command": "TAILOR_COMPILER_COMMAND",
    "compile_timeout": "TAILOR_COMPILE_TIMEOUT",
    "browser_command": "TAILOR_BROWSER_COMMAND",
    "open_browser": "TAILOR_OPEN_BROWSER",
    "poll_interval": "TAILOR_POLL_INTERVAL",
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Convert a YAML/env value to the type of the field default."""
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(raw)
        except (TypeError, ValueError):
            log.warning("Invalid value for %s: %r, using %r", name, raw, default)
            return default
    if isinstance(default, float):
        try:
            return float(raw)
        except (TypeError, ValueError):
            log.warning("Invalid value for %s: %r, using %r", name, raw, default)
            return default
    return raw


def load_settings(path: Path | None = None, **overrides: Any) -> Settings:
    """Defaults, then YAML file values, then TAILOR_* env vars, then overrides."""
    base = Settings()
    known = {f.name for f in fields(Settings)}
    values: dict[str, Any] = {}

    path = path or SETTINGS_PATH
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        for key, raw in data.items():
            if key not in known:
                log.warning("Ignoring unknown setting %r in %s", key, path.name)
                continue
            values[key] = raw

    for name, env_key in _ENV_KEYS.items():
        raw = get_env(env_key)
        if raw:
            values[name] = raw

    values.update(overrides)
    coerced = {k: _coerce(k, v, getattr(base, k)) for k, v in values.items()}
    return Settings(**coerced)
