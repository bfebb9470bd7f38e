"""Append-only action log stored as JSON lines.

One record per line. Records are never rewritten; the newest record for a
(market, symbol) pair is the current position reference.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Iterator

from mokka.errors import PersistenceError

logger = logging.getLogger(__name__)


def log_path(log_dir: Path, log_file_type: str, symbol: str, today: date | None = None) -> Path:
    """File holding the actions: one per symbol, or one per day."""
    if log_file_type == "date":
        name = (today or date.today()).isoformat()
    else:
        name = symbol
    return Path(log_dir) / f"{name}.jsonl"


class ActionLog:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def append(self, record: dict[str, Any]) -> None:
        """Write *record* and fsync before returning."""
        line = json.dumps(record, separators=(",", ":"), sort_keys=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as exc:
            raise PersistenceError(f"Could not write to action log {self.path}: {exc}") from exc

    def records(self) -> Iterator[dict[str, Any]]:
        """All well-formed records in insertion order. Bad lines are skipped."""
        if not self.path.exists():
            return
        try:
            with self.path.open(encoding="utf-8") as fh:
                for lineno, line in enumerate(fh, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        record = json.loads(line)
                    except json.JSONDecodeError as exc:
                        logger.warning("Skipping malformed line %d in %s: %s", lineno, self.path, exc)
                        continue
                    if isinstance(record, dict):
                        yield record
                    else:
                        logger.warning("Skipping non-object line %d in %s", lineno, self.path)
        except OSError as exc:
            raise PersistenceError(f"Could not read action log {self.path}: {exc}") from exc

    def _sort_value(self, record: dict[str, Any], key: str) -> int | float:
        value = record.get(key)
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PersistenceError(f"Malformed {key} {value!r} in {self.path}: {record!r}")
        return value

    def query(
        self,
        filters: dict[str, Any] | None = None,
        sort_key: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Records equal to every filter, optionally sorted and truncated."""
        filters = filters or {}
        rows = [
            r for r in self.records()
            if all(r.get(key) == value for key, value in filters.items())
        ]
        if sort_key is not None:
            # Ties are ordered by insertion, newest first when descending
            if descending:
                rows.reverse()
            rows = sorted(rows, key=lambda r: self._sort_value(r, sort_key), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows
