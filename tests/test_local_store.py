import json
import os
import tempfile
import unittest

from jamstore.utils.local_store import LocalStore


class LocalStoreTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "nested", "store.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_set_get_remove_persist(self):
        store = LocalStore(self.path)
        self.assertIsNone(store.get("k"))
        self.assertEqual(store.get("k", 3), 3)

        self.assertTrue(store.set("k", {"a": [1, 2]}))
        self.assertEqual(LocalStore(self.path).get("k"), {"a": [1, 2]})

        self.assertTrue(store.remove("k"))
        self.assertTrue(store.remove("k"))
        self.assertIsNone(LocalStore(self.path).get("k"))

    def test_unreadable_file_starts_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w") as f:
            f.write("{not json")
        self.assertIsNone(LocalStore(self.path).get("k"))

        with open(self.path, "w") as f:
            json.dump([1, 2, 3], f)
        self.assertIsNone(LocalStore(self.path).get("k"))

    def test_unserializable_value_keeps_memory(self):
        store = LocalStore(self.path)
        self.assertFalse(store.set("k", object()))
        # in-memory value is still there for the rest of the run
        self.assertIsNotNone(store.get("k"))
