"""Session journal: JSONL fetch events plus raw SMHI payload snapshots."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from .exceptions import JournalError


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        aware = value if value.tzinfo else value.replace(tzinfo=UTC)
        return aware.astimezone(UTC).isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (Enum, Path)):
        return value.value if isinstance(value, Enum) else str(value)
    # AnyUrl and similar value types render through __str__.
    if type(value).__str__ is not object.__str__:
        return str(value)
    raise TypeError(f"{type(value).__name__} cannot be journaled")


def _snapshot_stem(name: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in name)


class JournalWriter:
    """Appends one JSON line per event to a daily file and keeps raw payloads beside it.

    Forecast payloads are stored as JSON; observation CSV bodies are stored
    byte-for-byte as `.csv` so a failed parse can be replayed.
    """

    def __init__(self, journal_dir: Path, raw_payload_dir: Path, session_id: str) -> None:
        self.journal_dir = journal_dir
        self.raw_payload_dir = raw_payload_dir
        self.session_id = session_id
        for directory in (journal_dir, raw_payload_dir):
            directory.mkdir(parents=True, exist_ok=True)
        self.events_path = journal_dir / f"{datetime.now(UTC):%Y%m%d}.jsonl"

    def write_event(
        self,
        event_type: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        line = self._dump_line(
            {
                "ts": datetime.now(UTC).isoformat(),
                "event_type": event_type,
                "session_id": self.session_id,
                "payload": payload,
                "metadata": metadata or {},
            }
        )
        try:
            with self.events_path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            raise JournalError(f"Cannot append to {self.events_path}: {exc}") from exc

    def write_raw_snapshot(
        self,
        name: str,
        payload: dict[str, Any] | str,
        *,
        suffix: str | None = None,
    ) -> Path:
        """Store one raw response body and return where it went.

        The suffix defaults to `csv` for text bodies and `json` otherwise.
        """
        if suffix is None:
            suffix = "csv" if isinstance(payload, str) else "json"
        stamp = f"{datetime.now(UTC):%Y%m%dT%H%M%SZ}"
        path = self.raw_payload_dir / f"{stamp}_{self.session_id}_{_snapshot_stem(name)}.{suffix}"
        if isinstance(payload, str):
            body = payload
        else:
            try:
                body = json.dumps(payload, ensure_ascii=False, indent=2, default=_encode)
            except (TypeError, ValueError) as exc:
                raise JournalError(f"Raw snapshot {name!r} is not serializable: {exc}") from exc
        try:
            path.write_text(body + "\n", encoding="utf-8")
        except OSError as exc:
            raise JournalError(f"Cannot write raw snapshot {path}: {exc}") from exc
        return path

    def read_events(self, event_type: str | None = None) -> list[dict[str, Any]]:
        """Events this session has written to today's file, oldest first."""
        if not self.events_path.exists():
            return []
        try:
            lines = self.events_path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise JournalError(f"Cannot read {self.events_path}: {exc}") from exc
        try:
            events = [json.loads(line) for line in lines if line.strip()]
        except ValueError as exc:
            raise JournalError(f"Corrupt line in {self.events_path}: {exc}") from exc
        return [
            event
            for event in events
            if event.get("session_id") == self.session_id
            and (event_type is None or event.get("event_type") == event_type)
        ]

    @staticmethod
    def _dump_line(record: dict[str, Any]) -> str:
        try:
            return json.dumps(record, default=_encode)
        except (TypeError, ValueError) as exc:
            raise JournalError(f"Journal event is not serializable: {exc}") from exc
