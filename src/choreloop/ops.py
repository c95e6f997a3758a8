"""Operational utilities for ChoreLoop."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredLogger:
    """Write JSON lines log entries describing state transitions."""

    def __init__(self, *, path: Path | None = None) -> None:
        self.path = path
        self._entries: list[dict] = []

    def log(self, event_type: str, *, level: str = "info", **fields: object) -> dict:
        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event_type,
            **fields,
        }
        self._entries.append(entry)
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry, default=str) + "\n")
        return entry

    def warning(self, event_type: str, **fields: object) -> dict:
        return self.log(event_type, level="warning", **fields)

    def error(self, event_type: str, **fields: object) -> dict:
        return self.log(event_type, level="error", **fields)

    def tail(self, limit: int = 50) -> tuple[dict, ...]:
        return tuple(self._entries[-limit:])

    def entries(self, *, event: Optional[str] = None, level: Optional[str] = None) -> tuple[dict, ...]:
        records = self._entries
        if event is not None:
            records = [entry for entry in records if entry["event"] == event]
        if level is not None:
            records = [entry for entry in records if entry["level"] == level]
        return tuple(records)


__all__ = ["StructuredLogger"]
