"""
auth/store.py -- Repository for user records.

Pattern: Repository + Data Mapper. UserStore is the repository; the
User.from_document / to_document pair on the dataclass is the mapper. Route
and gateway code never touch the storage backend directly.

The storage backend is the source of truth on every call: each operation
loads the whole collection fresh, there is no authoritative in-memory copy.

Concurrency:
  create() is a read-validate-write sequence. Two overlapping calls could both
  read the same snapshot, both decide an email is free, and the second save
  would silently drop the first record. A threading.Lock owned by the store
  serializes every mutation inside this process. Reads take no lock -- each
  is a single whole-document load. Separate processes writing the same file
  are NOT coordinated; the service is deployed as a single process.

Email matching is exact (case-sensitive).

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from auth.errors import ConflictError, ValidationError
from auth.models import DEFAULT_ROLE, User
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from auth.storage import UserStorage

logger = logging.getLogger("userservice.store")

_ID_PREFIX = "user_"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserStore:
    """Durable mapping from user id to User, with id/email uniqueness.

    Usage:
        store = UserStore(JsonFileStorage("data/users.json"), PasswordHasher())
        user = store.create({"name": "Ann", "email": "a@x.com", "password": "secret"})
        store.get_by_id(user.id)
    """

    def __init__(self, storage: UserStorage, hasher: PasswordHasher | None = None) -> None:
        self.storage = storage
        self.hasher = hasher or PasswordHasher()
        self._write_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_all(self) -> list[User]:
        """Return every record in insertion order. Creates the backing file if absent."""
        return [User.from_document(doc) for doc in self.storage.load()]

    def get_by_id(self, user_id: str) -> User | None:
        """Linear scan of a fresh load. Returns None if not found."""
        for doc in self.storage.load():
            if doc.get("id") == user_id:
                return User.from_document(doc)
        return None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None for an empty email or no match."""
        if not email:
            return None
        for doc in self.storage.load():
            if doc.get("email") == email:
                return User.from_document(doc)
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, candidate: Mapping[str, Any]) -> User:
        """Validate, complete, and persist a new user record.

        Accepted keys: name (required), id, email, password, role. Others are
        ignored. The plaintext password is replaced by its bcrypt digest
        before anything is written.

        Raises:
            ValidationError: name missing or blank, or password over 72 bytes.
            ConflictError:   email or caller-supplied id already in use.
            StorageError:    the backing document could not be read or written.
        """
        name = candidate.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name required")

        email = candidate.get("email") or None
        password = str(candidate["password"]) if candidate.get("password") else None
        requested_id = candidate.get("id")
        if password and self.hasher.too_long(password):
            raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")

        # Hash outside the lock: bcrypt is the slow part and needs no shared state.
        hashed = self.hasher.hash(password) if password else None

        with self._write_lock:
            docs = self.storage.load()

            if email and any(doc.get("email") == email for doc in docs):
                raise ConflictError(f"User with email {email} already exists")

            existing_ids = {doc.get("id") for doc in docs}
            if requested_id:
                user_id = str(requested_id)
                if user_id in existing_ids:
                    raise ConflictError(f"User with ID {user_id} already exists")
            else:
                user_id = self._next_id(existing_ids)

            user = User(
                id=user_id,
                name=name,
                email=email,
                password=hashed,
                role=candidate.get("role") or DEFAULT_ROLE,
                created_at=_now_iso(),
            )
            docs.append(user.to_document())
            self.storage.save(docs)

        logger.info("Created user %s (role=%s)", user.id, user.role)
        return user

    @staticmethod
    def _next_id(existing_ids: set) -> str:
        """Time-derived id user_<epoch ms>, advanced until unused.

        Two creations inside the same millisecond would otherwise collide.
        """
        stamp = int(time.time() * 1000)
        while f"{_ID_PREFIX}{stamp}" in existing_ids:
            stamp += 1
        return f"{_ID_PREFIX}{stamp}"
