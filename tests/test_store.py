"""
Tests for the persistence layer: the store transaction, the user
directory, the username index and the contact store.
"""

import pytest

from contacts_api.app.core.db import MIGRATIONS, Store
from contacts_api.app.core.exceptions import InternalConsistencyError, UserNotFound
from contacts_api.app.schemas.contact import Contact
from contacts_api.app.schemas.user import User
from contacts_api.app.services.contact_store import ContactStore
from contacts_api.app.services.user_directory import UserDirectory, UsernameIndex


class TestStore:
    """Store transactions and migrations."""

    def test_migrations_applied_once(self, db_path):
        first = Store(db_path)
        assert first.schema_version == MIGRATIONS[-1][0]
        first.close()

        second = Store(db_path)
        with second.transaction() as cursor:
            rows = cursor.execute("SELECT version FROM migrations ORDER BY version").fetchall()
        assert [r["version"] for r in rows] == [v for v, _ in MIGRATIONS]
        second.close()

    def test_transaction_rolls_back_on_error(self, store):
        users = UserDirectory(store)
        with pytest.raises(RuntimeError):
            with store.transaction():
                users.insert("id-a", User(username="alice"))
                raise RuntimeError("boom")
        assert not users.contains("id-a")

    def test_nested_transaction_commits_with_outer(self, store):
        users = UserDirectory(store)
        names = UsernameIndex(store)
        with store.transaction():
            users.insert("id-a", User(username="alice"))
            names.reserve("alice", "id-a")
        assert users.contains("id-a")
        assert names.lookup("alice") == "id-a"

    def test_memory_database(self):
        store = Store(":memory:")
        assert store.path == ":memory:"
        assert ContactStore(store).allocate_id() == 0
        store.close()


class TestUserDirectory:
    """UserDirectory is a plain keyed map."""

    def setup_method(self):
        self.store = Store(":memory:")
        self.users = UserDirectory(self.store)

    def teardown_method(self):
        self.store.close()

    def test_get_missing(self):
        assert self.users.get("nobody") is None
        assert not self.users.contains("nobody")

    def test_insert_and_get(self):
        self.users.insert("id-a", User(username="alice", owned_contact_ids=[3, 1], shared_contact_ids=[7]))
        user = self.users.get("id-a")
        assert user.username == "alice"
        assert user.owned_contact_ids == [3, 1]
        assert user.shared_contact_ids == [7]
        assert len(self.users) == 1

    def test_insert_overwrites(self):
        self.users.insert("id-a", User(username="alice", owned_contact_ids=[1]))
        self.users.insert("id-a", User(username="alice2"))
        user = self.users.get("id-a")
        assert user.username == "alice2"
        assert user.owned_contact_ids == []
        assert len(self.users) == 1

    def test_update_preserves_order(self):
        self.users.insert("id-a", User(username="alice"))
        for contact_id in (5, 2, 9):
            def add(u, cid=contact_id):
                u.owned_contact_ids.append(cid)
                return u

            self.users.update("id-a", add)
        assert self.users.get("id-a").owned_contact_ids == [5, 2, 9]

    def test_update_keeps_username(self):
        self.users.insert("id-a", User(username="alice"))

        def rename(u):
            u.username = "mallory"
            return u

        self.users.update("id-a", rename)
        assert self.users.get("id-a").username == "alice"

    def test_duplicate_ids_are_rejected(self):
        with pytest.raises(InternalConsistencyError):
            self.users.insert("id-a", User(username="alice", owned_contact_ids=[1, 1]))
        assert not self.users.contains("id-a")

        self.users.insert("id-b", User(username="bob"))

        def share_twice(u):
            u.shared_contact_ids += [4, 4]
            return u

        with pytest.raises(InternalConsistencyError):
            self.users.update("id-b", share_twice)
        assert self.users.get("id-b").shared_contact_ids == []

    def test_update_missing_identity(self):
        with pytest.raises(UserNotFound):
            self.users.update("nobody", lambda u: u)

    def test_reverse_lookups(self):
        self.users.insert("id-a", User(username="alice", owned_contact_ids=[0]))
        self.users.insert("id-b", User(username="bob", shared_contact_ids=[0]))
        self.users.insert("id-c", User(username="carol", shared_contact_ids=[0, 4]))
        assert self.users.owner_of(0) == "id-a"
        assert self.users.owner_of(4) is None
        assert self.users.recipients_of(0) == ["id-b", "id-c"]
        assert self.users.identities() == ["id-a", "id-b", "id-c"]


class TestUsernameIndex:
    def setup_method(self):
        self.store = Store(":memory:")
        self.names = UsernameIndex(self.store)

    def teardown_method(self):
        self.store.close()

    def test_reserve_lookup_release(self):
        assert self.names.lookup("alice") is None
        self.names.reserve("alice", "id-a")
        assert self.names.lookup("alice") == "id-a"
        self.names.release("alice")
        assert self.names.lookup("alice") is None

    def test_usernames_are_case_sensitive(self):
        self.names.reserve("alice", "id-a")
        assert self.names.lookup("Alice") is None


class TestContactStore:
    def setup_method(self):
        self.store = Store(":memory:")
        self.contacts = ContactStore(self.store)

    def teardown_method(self):
        self.store.close()

    def test_allocate_id_is_strictly_increasing(self):
        ids = [self.contacts.allocate_id() for _ in range(5)]
        assert ids == [0, 1, 2, 3, 4]

    def test_put_get_delete(self):
        contact_id = self.contacts.allocate_id()
        contact = Contact(id=contact_id, name="Bob", email="bob@x.com", phone="555-1000")
        self.contacts.put(contact_id, contact)
        assert self.contacts.get(contact_id) == contact
        assert len(self.contacts) == 1

        assert self.contacts.delete(contact_id) is True
        assert self.contacts.get(contact_id) is None
        assert self.contacts.delete(contact_id) is False
        assert len(self.contacts) == 0

    def test_out_of_range_ids_are_absent(self):
        assert self.contacts.get(2**63) is None
        assert self.contacts.get(-(2**63) - 1) is None
        assert self.contacts.delete(2**70) is False

    def test_put_overwrites(self):
        self.contacts.put(0, Contact(id=0, name="Bob", email="bob@x.com", phone="1"))
        self.contacts.put(0, Contact(id=0, name="Robert", email="bob@x.com", phone="1"))
        assert self.contacts.get(0).name == "Robert"
        assert len(self.contacts) == 1

    def test_ids_not_reused_after_delete(self):
        first = self.contacts.allocate_id()
        self.contacts.put(first, Contact(id=first, name="a", email="b", phone="c"))
        self.contacts.delete(first)
        assert self.contacts.allocate_id() == first + 1

    def test_counter_survives_reopen(self, db_path):
        store = Store(db_path)
        ContactStore(store).allocate_id()
        ContactStore(store).allocate_id()
        store.close()

        reopened = Store(db_path)
        assert ContactStore(reopened).allocate_id() == 2
        reopened.close()
