"""
Environment + project-root helpers.

Deployments keep the RPC endpoint and key in a repo-local `.env`, and the CLI, uvicorn
and tests run from different working directories. This module:
- loads `.env` once without overriding variables already set in the process,
- finds the repo root so relative paths such as `data/catalogs/movers.json` resolve the same
  way from anywhere.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


def _looks_like_project_root(path: Path) -> bool:
    return (path / ".env").is_file() or (path / ".git").exists() or (path / "pyproject.toml").is_file()


@lru_cache
def get_project_root() -> Path:
    """Return the best-guess project root directory (cached)."""
    override = os.getenv("MOVERMATCH_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()

    for start in (Path.cwd(), Path(__file__).resolve().parent):
        for candidate in [start.resolve(), *start.resolve().parents]:
            if _looks_like_project_root(candidate):
                return candidate

    return Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `.env` once if present; returns the loaded env path (or None)."""
    explicit = os.getenv("MOVERMATCH_ENV_FILE")
    env_path = Path(explicit).expanduser().resolve() if explicit else get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a possibly-relative path against the project root."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()
