"""
Mover catalog loader.

The catalog is a local JSON file (default: `data/catalogs/movers.json`) holding mover rows in
the same shape the RPC returns. We validate it into typed Pydantic models up front so a bad
row fails loudly at startup rather than silently during a search.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import TypeAdapter

from movermatch.core.env import resolve_project_path
from movermatch.domain.models import MoverRecord


_MOVERS_ADAPTER = TypeAdapter(list[MoverRecord])


def load_movers(path: str | Path) -> list[MoverRecord]:
    """Load and validate a mover catalog JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return _MOVERS_ADAPTER.validate_python(payload)
