"""Project access history: path → (last accessed, access count)."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from sessionizer.errors import StateIOError
from sessionizer.models import AccessRecord
from sessionizer.paths import normalize_path, path_key
from sessionizer.state.files import atomic_write_text

logger = logging.getLogger(__name__)


class AccessStore:
    """Persisted access history, keyed by normalised project path."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._records: dict[str, AccessRecord] = {}
        self._load()

    # ── Loading ───────────────────────────────────────────────

    def _load(self) -> None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as e:
            raise StateIOError(f"failed to read {self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt access history %s: %s", self.path, e)
            return

        projects = data.get("projects") if isinstance(data, dict) else None
        if not isinstance(projects, dict):
            return

        for key, entry in projects.items():
            record = self._parse_record(key, entry)
            if record is not None:
                self._records[path_key(record.path)] = record

    def _parse_record(self, key: str, entry: object) -> AccessRecord | None:
        if not isinstance(entry, dict):
            return None
        try:
            last = datetime.fromisoformat(str(entry["last_accessed"]))
            count = int(entry.get("access_count", 1))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping unreadable history entry for %s", key)
            return None
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return AccessRecord(
            path=normalize_path(str(entry.get("path") or key)),
            last_accessed=last,
            access_count=max(count, 1),
        )

    # ── Queries ───────────────────────────────────────────────

    def get(self, path: str) -> AccessRecord | None:
        return self._records.get(path_key(path))

    def last_accessed(self, path: str) -> datetime | None:
        record = self.get(path)
        return record.last_accessed if record else None

    def recent(self, limit: int | None = None) -> list[AccessRecord]:
        """Records ordered most recent first."""
        ordered = sorted(
            self._records.values(), key=lambda r: r.last_accessed, reverse=True
        )
        return ordered[:limit] if limit is not None else ordered

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path_key(path) in self._records

    # ── Mutation ──────────────────────────────────────────────

    def record_access(self, path: str, now: datetime | None = None) -> AccessRecord:
        """Create or bump the record for path, then persist the whole history."""
        now = now or datetime.now(timezone.utc)
        key = path_key(path)
        record = self._records.get(key)
        if record:
            record.last_accessed = now
            record.access_count += 1
        else:
            record = AccessRecord(path=normalize_path(path), last_accessed=now)
            self._records[key] = record
        self.save()
        return record

    def save(self) -> None:
        payload = {
            "projects": {
                r.path: {
                    "path": r.path,
                    "last_accessed": r.last_accessed.isoformat(),
                    "access_count": r.access_count,
                }
                for r in self._records.values()
            }
        }
        try:
            atomic_write_text(self.path, json.dumps(payload, indent=2) + "\n")
        except OSError as e:
            raise StateIOError(f"failed to write {self.path}: {e}") from e
