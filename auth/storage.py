"""
auth/storage.py -- Persistence backends for the user collection.

UserStore depends on the UserStorage protocol (load / save of the whole
collection), not on file I/O, so tests can run against MemoryStorage and a
transactional backend can be dropped in later.

JsonFileStorage layout:
    {"users": [ {"id": ..., "name": ..., ...}, ... ]}

  - Created lazily: the first load() writes an empty document if the file is
    missing, creating parent directories as needed.
  - Whole-document replace: save() writes a temp file in the same directory
    and os.replace()s it over the target, so a concurrent reader sees either
    the old or the new document, never a partial one.
  - Reads retry transient OSErrors with exponential backoff (tenacity).
    Corrupt JSON is never retried -- rereading the same bytes cannot help.

The backend provides no cross-call atomicity. Serializing read-modify-write
sequences is UserStore's job.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

from auth.errors import StorageError

logger = logging.getLogger("userservice.store")

_COLLECTION_KEY = "users"


class UserStorage(Protocol):
    def load(self) -> list[dict[str, Any]]: ...

    def save(self, records: list[dict[str, Any]]) -> None: ...


class MemoryStorage:
    """In-process backend. Returns deep copies so callers cannot alias state."""

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self._records: list[dict[str, Any]] = copy.deepcopy(records or [])

    def load(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._records)

    def save(self, records: list[dict[str, Any]]) -> None:
        self._records = copy.deepcopy(records)


class JsonFileStorage:
    """Single JSON document on local disk. See module docstring for layout."""

    def __init__(self, path: str | Path, retry_attempts: int = 3) -> None:
        self.path = Path(path)
        self._retrying = Retrying(
            retry=retry_if_exception_type(OSError),
            stop=stop_after_attempt(retry_attempts),
            wait=wait_exponential(multiplier=0.05, max=1.0) + wait_random(0, 0.05),
            before_sleep=self._log_retry,
            reraise=True,
        )

    def load(self) -> list[dict[str, Any]]:
        try:
            self._ensure_exists()
            raw = self._retrying(self.path.read_text, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Could not read users file {self.path}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Users file {self.path} is not valid JSON") from exc
        if not isinstance(data, dict) or not isinstance(data.get(_COLLECTION_KEY, []), list):
            raise StorageError(f"Users file {self.path} has an unexpected layout")
        return data.get(_COLLECTION_KEY, [])

    def save(self, records: list[dict[str, Any]]) -> None:
        try:
            self._write({_COLLECTION_KEY: records})
        except OSError as exc:
            raise StorageError(f"Could not write users file {self.path}") from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_exists(self) -> None:
        if self.path.exists():
            return
        logger.info("Users file %s not found, creating an empty one", self.path)
        self._write({_COLLECTION_KEY: []})

    def _write(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _log_retry(self, retry_state) -> None:
        logger.warning(
            "Transient error reading %s (attempt %d): %s",
            self.path,
            retry_state.attempt_number,
            retry_state.outcome.exception() if retry_state.outcome else "unknown",
        )
