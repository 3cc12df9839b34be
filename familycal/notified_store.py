"""JSON-backed set of already-announced reminder keys with expiry and atomic writes."""

from __future__ import annotations

import contextlib
import json
import logging
import tempfile
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from .models import coerce_instant

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=48)


class NotifiedStore:
    """Set of reminder keys that have already been announced.

    Entries expire after ``retention`` so the file does not grow without
    bound; retention must exceed the scanner lookahead so a reminder is not
    announced twice. The on-disk format is a JSON object mapping key ->
    expiry ISO-8601 string. Without a path the store lives only in memory.
    """

    def __init__(self, path: Optional[str | Path] = None, retention: timedelta = DEFAULT_RETENTION):
        """Create a NotifiedStore.

        Args:
            path: Optional JSON file to persist to
            retention: How long an announced key is remembered
        """
        self._path = Path(path) if path else None
        self._retention = retention
        self._lock = threading.Lock()
        self._store: dict[str, datetime] = {}

        if self._path is not None:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError:
                logger.debug("Could not ensure directory for notified store: %s", self._path.parent)
            self.load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def load(self) -> None:
        """Load entries from disk, replacing the in-memory set.

        A missing or unreadable file leaves the store empty; malformed
        entries are skipped.
        """
        with self._lock:
            self._store = {}
            if self._path is None or not self._path.exists():
                logger.debug("Notified store file not found; starting empty: %s", self._path)
                return

            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, ValueError) as exc:
                logger.warning("Failed to read notified store %s: %s", self._path, exc)
                return

            if not isinstance(data, dict):
                logger.warning("Notified store %s is not a JSON object; ignoring", self._path)
                return

            for key, value in data.items():
                if not key or not isinstance(key, str) or not isinstance(value, str):
                    continue
                try:
                    self._store[key] = coerce_instant(value)
                except ValueError:
                    continue

            logger.debug("Loaded notified store %s (%d entries)", self._path, len(self._store))

    def _persist_locked(self) -> None:
        """Write the store atomically via a temp file in the same directory."""
        if self._path is None:
            return

        data = {k: v.isoformat() for k, v in self._store.items()}
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self._path.parent, delete=False, encoding="utf-8"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(data, tf, ensure_ascii=False)
            tmp_path.replace(self._path)
        except OSError:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise

    def _purge_expired_locked(self, now: datetime) -> None:
        expired = [k for k, expiry in self._store.items() if expiry <= now]
        for k in expired:
            del self._store[k]

    def add(self, key: str, now: Any) -> None:
        """Record a key as announced and persist.

        Raises:
            ValueError: If key is empty
            OSError: If the store file cannot be written
        """
        self.add_many([key], now)

    def add_many(self, keys: list[str], now: Any, until: Any = None) -> None:
        """Record several keys as announced and persist once.

        Keys are kept for the retention period counted from ``now``, or from
        ``until`` when that is later.
        """
        if any(not k or not isinstance(k, str) for k in keys):
            raise ValueError("notified keys must be non-empty strings")
        moment = coerce_instant(now)

        with self._lock:
            self._purge_expired_locked(moment)
            kept_from = moment if until is None else max(moment, coerce_instant(until))
            expiry = kept_from + self._retention
            for k in keys:
                self._store[k] = expiry
            try:
                self._persist_locked()
            except OSError as exc:
                for k in keys:
                    self._store.pop(k, None)
                logger.warning("Failed to persist notified store to %s: %s", self._path, exc)
                raise

    def contains(self, key: str, now: Any) -> bool:
        """Return True if key was announced and has not expired."""
        if not key:
            return False
        moment = coerce_instant(now)
        with self._lock:
            expiry = self._store.get(key)
            return expiry is not None and expiry > moment

    def active_keys(self, now: Any) -> set[str]:
        moment = coerce_instant(now)
        with self._lock:
            return {k for k, expiry in self._store.items() if expiry > moment}

    def clear_all(self) -> int:
        """Remove every entry, persist, and return the number removed."""
        with self._lock:
            count = len(self._store)
            self._store = {}
            self._persist_locked()
            logger.info("Cleared notified store (%d entries)", count)
            return count
