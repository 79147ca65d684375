"""
Read and write eligibility for contacts.

The owner of a contact may read, edit, delete, share and revoke it.  A
user the contact was shared with may only read it.  The decisions are
pure functions of the caller's own owned and shared id lists.
"""

from typing import Iterable


class AccessController:
    """Stateless access decisions."""

    @staticmethod
    def can_read(
        identity: str,
        contact_id: int,
        owner_view: Iterable[int],
        shared_view: Iterable[int],
    ) -> bool:
        return contact_id in owner_view or contact_id in shared_view

    @staticmethod
    def can_mutate(identity: str, contact_id: int, owner_view: Iterable[int]) -> bool:
        return contact_id in owner_view
