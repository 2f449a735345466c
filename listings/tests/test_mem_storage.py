import threading
import unittest
from datetime import datetime, timezone

import bcrypt

from listings.db import MemStorage
from listings.errors import UsernameTakenError
from listings.schemas import InsertProperty, InsertUser


def _lakehouse() -> InsertProperty:
    return InsertProperty(
        title="Lakehouse", price=250000, location="Tahoe", type="house"
    )


class MemStoragePropertyTests(unittest.TestCase):
    def setUp(self):
        self.store = MemStorage()

    def test_create_sets_id_and_timestamps(self):
        before = datetime.now(timezone.utc)
        record = self.store.create_property(_lakehouse())
        after = datetime.now(timezone.utc)

        self.assertTrue(record.id)
        self.assertEqual(record.created_at, record.updated_at)
        self.assertLessEqual(before, record.created_at)
        self.assertLessEqual(record.created_at, after)
        self.assertEqual(record.status, "available")
        self.assertIs(self.store.get_property(record.id), record)

    def test_ids_are_unique(self):
        ids = {self.store.create_property(_lakehouse()).id for _ in range(50)}
        self.assertEqual(len(ids), 50)

    def test_list_in_insertion_order(self):
        first = self.store.create_property(_lakehouse())
        second = self.store.create_property(
            InsertProperty(title="Loft", price=1, location="NYC")
        )
        self.assertEqual(
            [p.id for p in self.store.list_properties()], [first.id, second.id]
        )

    def test_update_merges_and_refreshes_updated_at(self):
        record = self.store.create_property(_lakehouse())
        updated = self.store.update_property(record.id, {"price": 500000})

        self.assertEqual(updated.price, 500000)
        self.assertEqual(updated.title, record.title)
        self.assertEqual(updated.location, record.location)
        self.assertEqual(updated.created_at, record.created_at)
        self.assertGreaterEqual(updated.updated_at, record.updated_at)
        self.assertEqual(self.store.get_property(record.id), updated)

    def test_missing_ids(self):
        self.assertIsNone(self.store.get_property("nope"))
        self.assertIsNone(self.store.update_property("nope", {"price": 1}))
        self.assertFalse(self.store.delete_property("nope"))

    def test_delete_twice(self):
        record = self.store.create_property(_lakehouse())
        self.assertTrue(self.store.delete_property(record.id))
        self.assertFalse(self.store.delete_property(record.id))
        self.assertIsNone(self.store.get_property(record.id))

    def test_reset(self):
        self.store.create_property(_lakehouse())
        self.store.reset()
        self.assertEqual(self.store.list_properties(), [])

    def test_instances_are_isolated(self):
        self.store.create_property(_lakehouse())
        self.assertEqual(MemStorage().list_properties(), [])


class MemStorageUserTests(unittest.TestCase):
    def setUp(self):
        self.store = MemStorage()

    def test_create_user_hashes_password(self):
        user = self.store.create_user(InsertUser(username="alice", password="pw"))
        self.assertNotEqual(user.password_hash, "pw")
        self.assertTrue(bcrypt.checkpw(b"pw", user.password_hash.encode("utf-8")))
        self.assertEqual(user.as_dict(), {"id": user.id, "username": "alice"})
        self.assertNotIn("pw", repr(user))

    def test_lookup_by_id_and_username(self):
        user = self.store.create_user(InsertUser(username="alice", password="pw"))
        self.assertEqual(self.store.get_user(user.id), user)
        self.assertEqual(self.store.get_user_by_username("alice"), user)
        self.assertIsNone(self.store.get_user("missing"))
        self.assertIsNone(self.store.get_user_by_username("bob"))

    def test_duplicate_username_rejected(self):
        self.store.create_user(InsertUser(username="a", password="x"))
        with self.assertRaises(UsernameTakenError):
            self.store.create_user(InsertUser(username="a", password="y"))
        self.assertEqual(len(self.store.users), 1)

    def test_concurrent_duplicate_username_creates_one_user(self):
        errors = []

        def create():
            try:
                self.store.create_user(InsertUser(username="racer", password="x"))
            except UsernameTakenError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=create) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(self.store.users), 1)
        self.assertEqual(len(errors), 3)


if __name__ == "__main__":
    unittest.main()
