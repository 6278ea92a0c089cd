"""Processed-post ledger — flat JSON array of post ids on disk.

Ids are marked in memory before a post's side effects run and flushed once
per poll cycle. A crash between mark and flush makes the next run reprocess
those posts (at-least-once, duplicates possible, nothing lost).
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from loguru import logger


class ProcessedLedger:
    """Set of already handled feed item ids backed by a JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._ids: set[str] = set()
        self._dirty = False

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Read persisted ids. Missing file is created empty; bad data degrades to empty."""
        try:
            if not self._path.exists():
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text("[]", encoding="utf-8")
                self._ids = set()
                logger.info(f"[LEDGER] Created empty ledger at {self._path}")
                return

            data = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            self._ids = {str(i) for i in data}
            logger.info(f"[LEDGER] Loaded {len(self._ids)} processed ids")
        except (OSError, ValueError) as e:
            logger.error(f"[LEDGER] Failed to load {self._path}, starting empty: {e}")
            self._ids = set()
        self._dirty = False

    def has(self, item_id: str) -> bool:
        return item_id in self._ids

    def mark(self, item_id: str) -> None:
        """Record an id in memory. Durable only after the next flush()."""
        if item_id not in self._ids:
            self._ids.add(item_id)
            self._dirty = True

    def flush(self) -> bool:
        """Write the id set to disk if it changed. Returns False on write failure."""
        if not self._dirty:
            return True
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(sorted(self._ids), indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error(f"[LEDGER] Failed to persist {len(self._ids)} ids: {e}")
            return False
        self._dirty = False
        logger.debug(f"[LEDGER] Persisted {len(self._ids)} ids")
        return True
