from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import ValidationError

from movermatch.domain.models import MoverRecord
from movermatch.matching.types import ProviderCandidate

logger = logging.getLogger(__name__)


def decode_rows(rows: Iterable[Any], *, source: str) -> list[ProviderCandidate]:
    """Turn raw mover rows into candidates, skipping (and logging) rows we cannot place."""
    out: list[ProviderCandidate] = []
    skipped = 0
    for row in rows:
        try:
            record = MoverRecord.model_validate(row)
        except ValidationError as exc:
            skipped += 1
            logger.warning("skipping malformed mover row from %s: %s", source, exc.errors(include_url=False))
            continue
        out.append(record.to_candidate(raw=row if isinstance(row, dict) else None))
    if skipped:
        logger.warning("%s returned %d malformed row(s) out of %d", source, skipped, skipped + len(out))
    return out
