import json
import os
import tempfile
import threading
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

from werkzeug.security import check_password_hash

from coachpro.errors import StorageError
from coachpro.models import Squad, TrainingSession
from coachpro.services.persistence_service import ClubRepository, JsonFileStore, SupabaseStore

from club_fixtures import MemoryStore


class JsonFileStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.store = JsonFileStore(os.path.join(self.tmp.name, "data"))

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_missing_table_loads_empty(self) -> None:
        self.assertEqual(self.store.load("players"), [])

    def test_upsert_replaces_by_id_and_delete_removes(self) -> None:
        self.store.upsert("squads", [{"id": "s1", "name": "Sub-11"}, {"id": "s2", "name": "Sub-13"}])
        self.store.upsert("squads", [{"id": "s1", "name": "Sub-12"}])
        self.assertEqual(
            sorted(r["name"] for r in self.store.load("squads")), ["Sub-12", "Sub-13"]
        )

        self.store.delete("squads", ["s2"])
        self.assertEqual(self.store.load("squads"), [{"id": "s1", "name": "Sub-12"}])

        with open(os.path.join(self.store.data_dir, "squads.json"), encoding="utf-8") as f:
            self.assertEqual(json.load(f), [{"id": "s1", "name": "Sub-12"}])

    def test_concurrent_upserts_keep_every_row(self) -> None:
        def save(n: int) -> None:
            self.store.upsert("players", [{"id": f"p{n}", "name": f"Atleta {n}"}])

        threads = [threading.Thread(target=save, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(self.store.load("players")), 20)

    def test_corrupt_file_raises_storage_error(self) -> None:
        os.makedirs(self.store.data_dir)
        with open(os.path.join(self.store.data_dir, "users.json"), "w", encoding="utf-8") as f:
            f.write("{not json")
        with self.assertRaises(StorageError):
            self.store.load("users")


class SupabaseStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = MagicMock()
        self.store = SupabaseStore(client=self.client)

    def test_requires_credentials_without_client(self) -> None:
        with self.assertRaises(StorageError):
            SupabaseStore(url=None, key=None)

    def test_load_pages_through_results(self) -> None:
        query = self.client.table.return_value.select.return_value.range
        query.return_value.execute.side_effect = [
            SimpleNamespace(data=[{"id": str(i)} for i in range(SupabaseStore.PAGE_SIZE)]),
            SimpleNamespace(data=[{"id": "last"}]),
        ]
        rows = self.store.load("players")
        self.assertEqual(len(rows), SupabaseStore.PAGE_SIZE + 1)
        query.assert_any_call(0, 999)
        query.assert_any_call(1000, 1999)

    def test_upsert_and_delete_calls(self) -> None:
        self.store.upsert("squads", [{"id": "s1", "name": "Sub-11"}])
        self.client.table.return_value.upsert.assert_called_once_with([{"id": "s1", "name": "Sub-11"}])

        self.store.delete("squads", ["s1"])
        self.client.table.return_value.delete.return_value.in_.assert_called_once_with("id", ["s1"])

    def test_client_errors_become_storage_errors(self) -> None:
        self.client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("503")
        with self.assertRaises(StorageError):
            self.store.upsert("squads", [{"id": "s1", "name": "Sub-11"}])


class ClubRepositoryTests(unittest.TestCase):
    def test_empty_backend_is_seeded(self) -> None:
        store = MemoryStore()
        repository = ClubRepository(store)

        self.assertEqual([s.id for s in repository.squads], ["s1", "s2", "s3"])
        self.assertEqual([u.username for u in repository.users], ["admin", "mister", "staff"])
        self.assertEqual(len(repository.players), 2)
        self.assertEqual(store.ids("users"), ["u1", "u2", "u3"])
        stored_hash = store.tables["users"][0]["password_hash"]
        self.assertNotEqual(stored_hash, "123")
        self.assertTrue(check_password_hash(stored_hash, "123"))

    def test_existing_tables_are_not_reseeded(self) -> None:
        store = MemoryStore({"squads": [{"id": "x", "name": "Veteranos"}]})
        repository = ClubRepository(store)
        self.assertEqual([s.name for s in repository.squads], ["Veteranos"])

    def test_malformed_rows_are_skipped(self) -> None:
        store = MemoryStore({"squads": [{"name": "no id"}, {"id": "s9", "name": "Sub-9"}]})
        repository = ClubRepository(store, seed=False)
        self.assertEqual([s.id for s in repository.squads], ["s9"])

    def test_failed_write_marks_table_dirty_until_next_success(self) -> None:
        store = MemoryStore()
        repository = ClubRepository(store)
        store.fail_writes = True

        session = TrainingSession(id="t1", squad_id="s1", date="2025-06-03", time="19:00", description="Treino")
        repository.sessions.append(session)
        self.assertFalse(repository.persist("sessions", [session]))
        self.assertEqual(repository.dirty_tables, {"sessions"})
        self.assertEqual(store.ids("sessions"), [])

        store.fail_writes = False
        squad = Squad(id="s4", name="Sub-17")
        repository.squads.append(squad)
        self.assertTrue(repository.persist("squads", [squad]))
        self.assertEqual(repository.dirty_tables, set())
        self.assertEqual(store.ids("sessions"), ["t1"])

    def test_deletes_survive_a_failed_write(self) -> None:
        store = MemoryStore()
        repository = ClubRepository(store)
        store.fail_writes = True

        repository.players = [p for p in repository.players if p.id != "p1"]
        repository.persist("players", [], deleted_ids=["p1"])
        self.assertIn("p1", store.ids("players"))
        self.assertFalse(repository.flush())

        store.fail_writes = False
        self.assertTrue(repository.flush())
        self.assertEqual(store.ids("players"), ["p2"])


if __name__ == "__main__":
    unittest.main()
