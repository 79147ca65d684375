"""
Use cases of the contact directory.

``DirectoryService`` composes the user directory, the username index,
the contact store and the access controller.  Each public method is one
use case and runs inside a single ``Store.transaction()``: it either
applies all of its writes or, if anything raises, none of them.  Methods
are synchronous and never yield control between reading and writing the
cross-referencing tables.

Expected failures are raised as ``DirectoryError`` subclasses (see
``core.exceptions``).  ``InternalConsistencyError`` signals a broken
store invariant and is logged at ERROR before it propagates.
"""

import logging
import sqlite3
from typing import Dict, List

from ..core.db import Store
from ..core.exceptions import (
    AlreadyHasAccount,
    ContactNotFound,
    Forbidden,
    InternalConsistencyError,
    NoAccount,
    NotShared,
    RecipientNotFound,
    SelfShare,
    UserNotFound,
    UsernameTaken,
)
from ..schemas.contact import Contact, ContactUpdate
from ..schemas.user import User
from .access_control import AccessController
from .contact_store import ContactStore
from .user_directory import UserDirectory, UsernameIndex

logger = logging.getLogger(__name__)


class DirectoryService:
    """Per-identity contact directory."""

    def __init__(self, store: Store) -> None:
        self._store = store
        self.users = UserDirectory(store)
        self.usernames = UsernameIndex(store)
        self.contacts = ContactStore(store)
        self.access = AccessController()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    def create_account(self, identity: str, username: str) -> User:
        """Register ``username`` for ``identity``.

        Raises ``AlreadyHasAccount`` if the identity is already
        registered and ``UsernameTaken`` if another identity holds the
        username.  The user record and the username entry are written in
        the same transaction.
        """
        with self._store.transaction():
            if self.users.contains(identity):
                raise AlreadyHasAccount("User already has an account")
            if self.usernames.lookup(username) is not None:
                raise UsernameTaken("Username already taken", {"username": username})
            user = User(username=username)
            self.users.insert(identity, user)
            self.usernames.reserve(username, identity)
        logger.info("Created account %s", username)
        return user

    def get_account(self, identity: str) -> User:
        with self._store.transaction():
            return self._require_user(identity)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------
    def create_contact(self, identity: str, name: str, email: str, phone: str) -> Contact:
        """Create a contact owned by the caller and return it with its id."""
        with self._store.transaction():
            user = self._require_user(identity)
            contact_id = self.contacts.allocate_id()
            contact = Contact(id=contact_id, name=name, email=email, phone=phone)
            self.contacts.put(contact_id, contact)

            def add_owned(u: User) -> User:
                u.owned_contact_ids.append(contact_id)
                return u

            try:
                self.users.update(identity, add_owned)
            except (UserNotFound, sqlite3.IntegrityError) as exc:
                logger.error("Contact %s created for %s but could not be attached: %s", contact_id, user.username, exc)
                raise InternalConsistencyError(
                    "Contact could not be attached to its owner",
                    {"contact_id": contact_id},
                ) from exc
        logger.info("User %s created contact %s", user.username, contact_id)
        return contact

    def get_contacts(self, identity: str) -> List[Contact]:
        """Return the caller's own contacts in insertion order."""
        with self._store.transaction():
            user = self._require_user(identity)
            return self._dereference(user.owned_contact_ids, user.username)

    def get_shared_contacts(self, identity: str) -> List[Contact]:
        """Return the contacts other users shared with the caller."""
        with self._store.transaction():
            user = self._require_user(identity)
            return self._dereference(user.shared_contact_ids, user.username)

    def get_contact(self, identity: str, contact_id: int) -> Contact:
        """Return one contact the caller owns or was granted."""
        with self._store.transaction():
            user = self._require_user(identity)
            contact = self.contacts.get(contact_id)
            if contact is None:
                raise ContactNotFound("Contact not found", {"contact_id": contact_id})
            if not self.access.can_read(identity, contact_id, user.owned_contact_ids, user.shared_contact_ids):
                logger.warning("User %s denied read of contact %s", user.username, contact_id)
                raise Forbidden("You do not have access to this contact", {"contact_id": contact_id})
            return contact

    def edit_contact(self, identity: str, contact_id: int, updates: ContactUpdate) -> Contact:
        """Overwrite the supplied fields of an owned contact."""
        with self._store.transaction():
            user, contact = self._require_owned(identity, contact_id)
            changes = updates.model_dump(exclude_unset=True, exclude_none=True)
            edited = contact.model_copy(update=changes)
            self.contacts.put(contact_id, edited)
        logger.info("User %s edited contact %s (%s)", user.username, contact_id, ", ".join(sorted(changes)) or "no changes")
        return edited

    def delete_contact(self, identity: str, contact_id: int) -> None:
        """Delete an owned contact and every reference to it."""
        with self._store.transaction():
            user, _ = self._require_owned(identity, contact_id)
            recipients = self.users.recipients_of(contact_id)

            def drop_owned(u: User) -> User:
                u.owned_contact_ids = [cid for cid in u.owned_contact_ids if cid != contact_id]
                return u

            def drop_shared(u: User) -> User:
                u.shared_contact_ids = [cid for cid in u.shared_contact_ids if cid != contact_id]
                return u

            self.contacts.delete(contact_id)
            self.users.update(identity, drop_owned)
            for recipient in recipients:
                self.users.update(recipient, drop_shared)

            if self.users.owner_of(contact_id) is not None or self.users.recipients_of(contact_id):
                logger.error("References to deleted contact %s survived the cascade", contact_id)
                raise InternalConsistencyError(
                    "Deleted contact is still referenced",
                    {"contact_id": contact_id},
                )
        logger.info(
            "User %s deleted contact %s (revoked from %d recipient(s))",
            user.username,
            contact_id,
            len(recipients),
        )

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------
    def share_contact(self, identity: str, contact_id: int, recipient_username: str) -> None:
        """Grant ``recipient_username`` read access to an owned contact.

        Sharing a contact that is already shared with the recipient is a
        no-op.
        """
        with self._store.transaction():
            user, _ = self._require_owned(identity, contact_id)
            recipient, recipient_user = self._require_recipient(identity, recipient_username)
            if contact_id in recipient_user.shared_contact_ids:
                logger.debug("Contact %s already shared with %s", contact_id, recipient_username)
                return

            def add_shared(u: User) -> User:
                u.shared_contact_ids.append(contact_id)
                return u

            self.users.update(recipient, add_shared)
        logger.info("User %s shared contact %s with %s", user.username, contact_id, recipient_username)

    def revoke_shared_contact(self, identity: str, contact_id: int, recipient_username: str) -> None:
        """Withdraw a previously granted share."""
        with self._store.transaction():
            user, _ = self._require_owned(identity, contact_id)
            recipient, recipient_user = self._require_recipient(identity, recipient_username)
            if contact_id not in recipient_user.shared_contact_ids:
                raise NotShared(
                    "Contact not shared with this user",
                    {"contact_id": contact_id, "username": recipient_username},
                )

            def drop_shared(u: User) -> User:
                u.shared_contact_ids = [cid for cid in u.shared_contact_ids if cid != contact_id]
                return u

            self.users.update(recipient, drop_shared)
        logger.info("User %s revoked contact %s from %s", user.username, contact_id, recipient_username)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def stats(self) -> Dict[str, int]:
        with self._store.transaction():
            return {"users": len(self.users), "contacts": len(self.contacts)}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_user(self, identity: str) -> User:
        user = self.users.get(identity)
        if user is None:
            raise NoAccount("Create an account first")
        return user

    def _require_owned(self, identity: str, contact_id: int) -> tuple[User, Contact]:
        """Return the caller and the contact, or raise if the caller is not its owner.

        An id unknown to the store raises ``ContactNotFound`` even for
        callers without ownership; an existing contact owned by someone
        else raises ``Forbidden``.
        """
        user = self._require_user(identity)
        contact = self.contacts.get(contact_id)
        if contact is None:
            raise ContactNotFound("Contact not found", {"contact_id": contact_id})
        if not self.access.can_mutate(identity, contact_id, user.owned_contact_ids):
            logger.warning("User %s denied change to contact %s", user.username, contact_id)
            raise Forbidden("Only the owner can modify this contact", {"contact_id": contact_id})
        return user, contact

    def _require_recipient(self, identity: str, username: str) -> tuple[str, User]:
        recipient = self.usernames.lookup(username)
        if recipient is None:
            raise RecipientNotFound("Recipient not found", {"username": username})
        if recipient == identity:
            raise SelfShare("You cannot share a contact with yourself", {"username": username})
        recipient_user = self.users.get(recipient)
        if recipient_user is None:
            logger.error("Username %s points at identity %s which has no account", username, recipient)
            raise InternalConsistencyError("Username index entry without user", {"username": username})
        return recipient, recipient_user

    def _dereference(self, contact_ids: List[int], username: str) -> List[Contact]:
        result: List[Contact] = []
        for contact_id in contact_ids:
            contact = self.contacts.get(contact_id)
            if contact is None:
                logger.error("User %s references missing contact %s", username, contact_id)
                raise InternalConsistencyError(
                    "Referenced contact is missing from the store",
                    {"contact_id": contact_id},
                )
            result.append(contact)
        return result
