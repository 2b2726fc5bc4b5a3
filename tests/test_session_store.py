import json
import os
import tempfile
import unittest

from application.session_store import SESSION_KEY, SessionStore
from domain.models import AuthUser
from domain.repositories import KeyValueStorage
from infrastructure.storage.file_storage import FileKeyValueStorage


class InMemoryStorage(KeyValueStorage):
    def __init__(self):
        self.items = {}

    def get_item(self, key: str):
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class BrokenStorage(InMemoryStorage):
    def get_item(self, key: str):
        raise OSError("disk went away")


class SessionStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = InMemoryStorage()
        self.store = SessionStore(self.storage)
        self.user = AuthUser(player_id="player_123_abc", username="testuser", nickname="TestNick")

    def test_round_trip(self):
        self.store.save(self.user)
        self.assertEqual(self.store.load(), self.user)

    def test_round_trip_with_multibyte_nickname(self):
        user = AuthUser(player_id="player_1_x", username="mathfan", nickname="Ñandú 🚀 数学")
        self.store.save(user)
        self.assertEqual(self.store.load(), user)

    def test_stored_json_uses_session_key_and_shape(self):
        self.store.save(self.user)
        stored = json.loads(self.storage.items[SESSION_KEY])
        self.assertEqual(
            stored,
            {"playerId": "player_123_abc", "username": "testuser", "nickname": "TestNick"},
        )

    def test_save_overwrites_previous_session(self):
        self.store.save(self.user)
        other = AuthUser(player_id="player_9_z", username="other", nickname="other")
        self.store.save(other)
        self.assertEqual(self.store.load(), other)

    def test_load_returns_none_when_absent_empty_or_invalid(self):
        self.assertIsNone(self.store.load())
        for raw in ("", "invalid-json", "{", "null", "[]", '"text"', "42"):
            self.storage.items[SESSION_KEY] = raw
            self.assertIsNone(self.store.load(), raw)

    def test_load_returns_none_for_wrong_shape(self):
        bad_shapes = [
            {"username": "testuser", "nickname": "TestNick"},
            {"playerId": 123, "username": "testuser", "nickname": "TestNick"},
            {"playerId": "player_1_a", "username": None, "nickname": "TestNick"},
            {"playerId": "", "username": "testuser", "nickname": "TestNick"},
        ]
        for shape in bad_shapes:
            self.storage.items[SESSION_KEY] = json.dumps(shape)
            self.assertIsNone(self.store.load(), shape)

    def test_extra_fields_are_tolerated(self):
        self.storage.items[SESSION_KEY] = json.dumps(
            {"playerId": "player_123_abc", "username": "testuser", "nickname": "TestNick", "theme": "dark"}
        )
        self.assertEqual(self.store.load(), self.user)

    def test_deeply_nested_json_reads_as_no_session(self):
        self.storage.items[SESSION_KEY] = "[" * 200000 + "]" * 200000
        self.assertIsNone(self.store.load())

    def test_load_survives_storage_errors(self):
        self.assertIsNone(SessionStore(BrokenStorage()).load())

    def test_clear(self):
        self.store.save(self.user)
        self.store.clear()
        self.assertIsNone(self.store.load())
        # Clearing again is a no-op.
        self.store.clear()
        self.assertNotIn(SESSION_KEY, self.storage.items)


class FileKeyValueStorageTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "sessions", "42.json")
        self.storage = FileKeyValueStorage(self.path)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_reads_as_empty(self):
        self.assertIsNone(self.storage.get_item(SESSION_KEY))
        self.storage.remove_item(SESSION_KEY)
        self.assertFalse(os.path.exists(self.path))

    def test_values_persist_across_instances(self):
        self.storage.set_item("a", "1")
        self.storage.set_item("b", "ü")
        reopened = FileKeyValueStorage(self.path)
        self.assertEqual(reopened.get_item("a"), "1")
        self.assertEqual(reopened.get_item("b"), "ü")

        reopened.remove_item("a")
        self.assertIsNone(self.storage.get_item("a"))
        self.assertEqual(self.storage.get_item("b"), "ü")

    def test_damaged_file_reads_as_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write("{not json")
        self.assertIsNone(self.storage.get_item(SESSION_KEY))

        self.storage.set_item("a", "1")
        self.assertEqual(FileKeyValueStorage(self.path).get_item("a"), "1")

    def test_deeply_nested_file_reads_as_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write("[" * 200000 + "]" * 200000)
        self.assertIsNone(self.storage.get_item(SESSION_KEY))
        self.assertIsNone(SessionStore(self.storage).load())

    def test_deeply_nested_session_value_in_file(self):
        self.storage.set_item(SESSION_KEY, "[" * 200000 + "]" * 200000)
        self.assertIsNone(SessionStore(self.storage).load())

    def test_session_round_trip_through_file(self):
        store = SessionStore(self.storage)
        user = AuthUser(player_id="player_1_x", username="mathfan", nickname="数学")
        store.save(user)
        self.assertEqual(SessionStore(FileKeyValueStorage(self.path)).load(), user)
        store.clear()
        self.assertIsNone(store.load())


if __name__ == "__main__":
    unittest.main()
