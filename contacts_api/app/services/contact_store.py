"""
Owner-agnostic contact storage.

Contact ids come from a persistent counter in the ``counters`` table.
The counter only moves forward, so an id is never handed out twice, even
after the contact holding it was deleted or the process restarted.
``ContactStore`` knows nothing about users; removing references to a
deleted contact is the directory service's job.
"""

import logging
from typing import Optional

from ..core.db import Store
from ..schemas.contact import Contact

logger = logging.getLogger(__name__)

COUNTER_NAME = "contact_id"

# SQLite INTEGER range; ids outside it cannot be stored, so they are never found.
MIN_CONTACT_ID = -(2**63)
MAX_CONTACT_ID = 2**63 - 1


class ContactStore:
    """Keyed map from contact id to ``Contact``."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def allocate_id(self) -> int:
        """Return the next unused id and advance the counter."""
        with self._store.transaction() as cursor:
            row = cursor.execute(
                "SELECT value FROM counters WHERE name = ?",
                (COUNTER_NAME,),
            ).fetchone()
            next_id = row["value"]
            cursor.execute(
                "UPDATE counters SET value = ? WHERE name = ?",
                (next_id + 1, COUNTER_NAME),
            )
        return next_id

    def put(self, contact_id: int, contact: Contact) -> None:
        with self._store.transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO contacts (id, name, email, phone) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    email = excluded.email,
                    phone = excluded.phone,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (contact_id, contact.name, contact.email, contact.phone),
            )

    def get(self, contact_id: int) -> Optional[Contact]:
        if not MIN_CONTACT_ID <= contact_id <= MAX_CONTACT_ID:
            return None
        with self._store.transaction() as cursor:
            row = cursor.execute(
                "SELECT id, name, email, phone FROM contacts WHERE id = ?",
                (contact_id,),
            ).fetchone()
        if not row:
            return None
        return Contact(id=row["id"], name=row["name"], email=row["email"], phone=row["phone"])

    def delete(self, contact_id: int) -> bool:
        """Remove a contact.  Returns ``True`` if a record was deleted."""
        if not MIN_CONTACT_ID <= contact_id <= MAX_CONTACT_ID:
            return False
        with self._store.transaction() as cursor:
            cursor.execute("DELETE FROM contacts WHERE id = ?", (contact_id,))
            affected = cursor.rowcount
        return affected > 0

    def __len__(self) -> int:
        # Diagnostics only; ids come from allocate_id().
        with self._store.transaction() as cursor:
            row = cursor.execute("SELECT COUNT(*) AS count FROM contacts").fetchone()
        return row["count"]
