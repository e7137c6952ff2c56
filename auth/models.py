"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class. Dataclasses own the domain shape; the store, gateway and
routes do the work. The only logic here is mapping to and from the persisted
JSON document, whose keys (camelCase createdAt) are shared with existing
consumers of the users file.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_ROLE = "user"


@dataclass
class User:
    """One user record.

    password holds the bcrypt digest once the record is persisted, never the
    plaintext. It is None for users created without a password (they cannot
    log in). email is optional but unique among records that have one.
    """

    id: str
    name: str
    email: str | None = None
    password: str | None = None
    role: str = DEFAULT_ROLE
    created_at: str | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> User:
        return cls(
            id=doc["id"],
            name=doc["name"],
            email=doc.get("email") or None,
            password=doc.get("password") or None,
            role=doc.get("role") or DEFAULT_ROLE,
            created_at=doc.get("createdAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize for the users file. Absent optional fields are omitted."""
        doc: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.email:
            doc["email"] = self.email
        if self.password:
            doc["password"] = self.password
        doc["role"] = self.role
        if self.created_at:
            doc["createdAt"] = self.created_at
        return doc

    def public(self) -> dict[str, Any]:
        """The record as it may leave the service: everything but password."""
        doc = self.to_document()
        doc.pop("password", None)
        return doc


@dataclass(frozen=True)
class Identity:
    """Verified token claims, used as the request-scoped identity context.

    Tokens carry the user id under both "id" and "userId"; either may be the
    one a consumer set, so from_claims() accepts whichever is present.
    """

    id: str
    email: str | None
    name: str | None
    role: str
    claims: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> Identity:
        return cls(
            id=str(claims.get("id") or claims.get("userId") or ""),
            email=claims.get("email"),
            name=claims.get("name"),
            role=claims.get("role") or DEFAULT_ROLE,
            claims=dict(claims),
        )
