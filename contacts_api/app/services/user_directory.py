"""
User directory and username index.

``UserDirectory`` maps an identity to its ``User`` record and
``UsernameIndex`` maps a username back to the identity that registered
it.  Both are mechanisms, not policies: ``insert`` and ``reserve``
overwrite unconditionally and the caller (``DirectoryService``) is
responsible for checking ``contains``/``lookup`` first and for writing
both maps inside the same ``Store.transaction()``.

A user's owned and shared contact lists live in the ``user_contacts``
relation table, one row per (identity, contact, relation) with a
``position`` column preserving insertion order.
"""

import logging
from typing import Callable, List, Optional

from ..core.db import Store
from ..core.exceptions import InternalConsistencyError, UserNotFound
from ..schemas.user import User

logger = logging.getLogger(__name__)

OWNED = "owned"
SHARED = "shared"


class UserDirectory:
    """Keyed map from identity to ``User``."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def get(self, identity: str) -> Optional[User]:
        with self._store.transaction() as cursor:
            row = cursor.execute(
                "SELECT username FROM users WHERE identity = ?",
                (identity,),
            ).fetchone()
            if not row:
                return None
            rows = cursor.execute(
                "SELECT contact_id, relation FROM user_contacts "
                "WHERE identity = ? ORDER BY position ASC",
                (identity,),
            ).fetchall()
        return User(
            username=row["username"],
            owned_contact_ids=[r["contact_id"] for r in rows if r["relation"] == OWNED],
            shared_contact_ids=[r["contact_id"] for r in rows if r["relation"] == SHARED],
        )

    def contains(self, identity: str) -> bool:
        with self._store.transaction() as cursor:
            row = cursor.execute(
                "SELECT 1 FROM users WHERE identity = ?",
                (identity,),
            ).fetchone()
        return row is not None

    def insert(self, identity: str, user: User) -> None:
        """Store ``user`` under ``identity``, replacing any existing record."""
        with self._store.transaction() as cursor:
            cursor.execute(
                "INSERT OR REPLACE INTO users (identity, username) VALUES (?, ?)",
                (identity, user.username),
            )
            self._write_relations(cursor, identity, user)

    def update(self, identity: str, f: Callable[[User], User]) -> User:
        """Read the user, apply ``f`` and write the result back.

        Raises ``UserNotFound`` if ``identity`` has no record.  The
        username is immutable; a changed username returned by ``f`` is
        ignored.
        """
        with self._store.transaction() as cursor:
            current = self.get(identity)
            if current is None:
                raise UserNotFound(f"No user for identity {identity!r}")
            updated = f(current.model_copy(deep=True))
            updated.username = current.username
            self._write_relations(cursor, identity, updated)
        return updated

    def recipients_of(self, contact_id: int) -> List[str]:
        """Return the identities the contact is shared with."""
        with self._store.transaction() as cursor:
            rows = cursor.execute(
                "SELECT identity FROM user_contacts WHERE contact_id = ? AND relation = ? "
                "ORDER BY identity",
                (contact_id, SHARED),
            ).fetchall()
        return [r["identity"] for r in rows]

    def owner_of(self, contact_id: int) -> Optional[str]:
        with self._store.transaction() as cursor:
            row = cursor.execute(
                "SELECT identity FROM user_contacts WHERE contact_id = ? AND relation = ?",
                (contact_id, OWNED),
            ).fetchone()
        return row["identity"] if row else None

    def identities(self) -> List[str]:
        with self._store.transaction() as cursor:
            rows = cursor.execute("SELECT identity FROM users ORDER BY identity").fetchall()
        return [r["identity"] for r in rows]

    def __len__(self) -> int:
        with self._store.transaction() as cursor:
            row = cursor.execute("SELECT COUNT(*) AS count FROM users").fetchone()
        return row["count"]

    @staticmethod
    def _write_relations(cursor, identity: str, user: User) -> None:
        for relation, contact_ids in ((OWNED, user.owned_contact_ids), (SHARED, user.shared_contact_ids)):
            if len(set(contact_ids)) != len(contact_ids):
                logger.error("Duplicate %s contact ids for %s: %s", relation, identity, contact_ids)
                raise InternalConsistencyError(
                    f"Duplicate {relation} contact ids",
                    {"identity": identity, "contact_ids": list(contact_ids)},
                )
        cursor.execute("DELETE FROM user_contacts WHERE identity = ?", (identity,))
        rows = [
            (identity, contact_id, OWNED, position)
            for position, contact_id in enumerate(user.owned_contact_ids)
        ]
        rows += [
            (identity, contact_id, SHARED, position)
            for position, contact_id in enumerate(user.shared_contact_ids)
        ]
        cursor.executemany(
            "INSERT INTO user_contacts (identity, contact_id, relation, position) VALUES (?, ?, ?, ?)",
            rows,
        )


class UsernameIndex:
    """Keyed map from username to identity."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def lookup(self, username: str) -> Optional[str]:
        with self._store.transaction() as cursor:
            row = cursor.execute(
                "SELECT identity FROM usernames WHERE username = ?",
                (username,),
            ).fetchone()
        return row["identity"] if row else None

    def reserve(self, username: str, identity: str) -> None:
        with self._store.transaction() as cursor:
            cursor.execute(
                "INSERT OR REPLACE INTO usernames (username, identity) VALUES (?, ?)",
                (username, identity),
            )

    def release(self, username: str) -> None:
        # No use case deletes accounts yet; kept so the index can be
        # unwound symmetrically once one does.
        with self._store.transaction() as cursor:
            cursor.execute("DELETE FROM usernames WHERE username = ?", (username,))
        logger.info("Released username %s", username)
