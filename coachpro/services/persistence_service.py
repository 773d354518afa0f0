"""
Persistence service for the CoachPro club manager.

This module mirrors the in-memory club records to a backend store. Two stores
are provided: the hosted Supabase backend and a local JSON directory used for
development and tests. ClubRepository owns the in-memory lists and re-saves any
table whose last write failed.
"""
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set

from werkzeug.security import generate_password_hash

from ..errors import StorageError
from ..models import (
    AttendanceRecord, Match, Player, Squad, TrainingSession, User
)
from ..utils.constants import (
    DEFAULT_PASSWORD, INITIAL_SQUADS, SEED_PLAYERS, SEED_USERS, TABLES,
    TABLE_ATTENDANCE, TABLE_MATCHES, TABLE_PLAYERS, TABLE_SESSIONS,
    TABLE_SQUADS, TABLE_USERS
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

MODEL_BY_TABLE = {
    TABLE_USERS: User,
    TABLE_SQUADS: Squad,
    TABLE_PLAYERS: Player,
    TABLE_SESSIONS: TrainingSession,
    TABLE_ATTENDANCE: AttendanceRecord,
    TABLE_MATCHES: Match,
}


class RecordStore(ABC):
    """Abstract table store: whole-table select, upsert by id, delete by id."""

    @abstractmethod
    def load(self, table: str) -> List[Row]:
        """Return every row of a table."""

    @abstractmethod
    def upsert(self, table: str, rows: List[Row]) -> None:
        """Insert rows, replacing existing rows with the same id."""

    @abstractmethod
    def delete(self, table: str, ids: Iterable[str]) -> None:
        """Remove rows by id."""


class JsonFileStore(RecordStore):
    """
    Store each table as a JSON array in ``<data_dir>/<table>.json``.

    Writes go to a temporary file first and are moved into place, so a crash
    never leaves a half-written table behind. Read-modify-write cycles are
    serialised so concurrent saves to one table cannot drop each other's rows.
    """

    def __init__(self, data_dir: str = "data"):
        self.data_dir = data_dir
        self._lock = threading.RLock()

    def _path(self, table: str) -> str:
        return os.path.join(self.data_dir, f"{table}.json")

    def load(self, table: str) -> List[Row]:
        path = self._path(table)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read table '{table}': {e}") from e
        return data if isinstance(data, list) else []

    def upsert(self, table: str, rows: List[Row]) -> None:
        if not rows:
            return
        with self._lock:
            existing = {row["id"]: row for row in self.load(table)}
            for row in rows:
                existing[row["id"]] = row
            self._write(table, list(existing.values()))

    def delete(self, table: str, ids: Iterable[str]) -> None:
        doomed = set(ids)
        if not doomed:
            return
        with self._lock:
            self._write(table, [row for row in self.load(table) if row["id"] not in doomed])

    def _write(self, table: str, rows: List[Row]) -> None:
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path(table))
        except OSError as e:
            raise StorageError(f"Could not write table '{table}': {e}") from e


class SupabaseStore(RecordStore):
    """Store backed by Supabase tables with an ``id`` primary key."""

    PAGE_SIZE = 1000

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, client: Any = None):
        if client is None:
            if not url or not key:
                raise StorageError("SUPABASE_URL and SUPABASE_KEY are required for the Supabase store")
            from supabase import create_client
            client = create_client(url, key)
            logger.info("Supabase client initialised")
        self._client = client

    def load(self, table: str) -> List[Row]:
        rows: List[Row] = []
        offset = 0
        try:
            while True:
                result = (
                    self._client.table(table)
                    .select("*")
                    .range(offset, offset + self.PAGE_SIZE - 1)
                    .execute()
                )
                page = result.data or []
                rows.extend(page)
                if len(page) < self.PAGE_SIZE:
                    break
                offset += self.PAGE_SIZE
        except Exception as e:
            raise StorageError(f"Could not load table '{table}': {e}") from e
        return rows

    def upsert(self, table: str, rows: List[Row]) -> None:
        if not rows:
            return
        try:
            self._client.table(table).upsert(rows).execute()
        except Exception as e:
            raise StorageError(f"Could not save table '{table}': {e}") from e

    def delete(self, table: str, ids: Iterable[str]) -> None:
        id_list = list(ids)
        if not id_list:
            return
        try:
            self._client.table(table).delete().in_("id", id_list).execute()
        except Exception as e:
            raise StorageError(f"Could not delete from table '{table}': {e}") from e


class ClubRepository:
    """
    In-memory copy of every club table, mirrored to a RecordStore.

    Services mutate the lists held here and then call :meth:`persist`. A write
    that fails is logged and the table is remembered as dirty; the next
    successful mutation or :meth:`flush` saves it again.
    """

    def __init__(self, store: RecordStore, seed: bool = True):
        self.store = store
        self.users: List[User] = []
        self.squads: List[Squad] = []
        self.players: List[Player] = []
        self.sessions: List[TrainingSession] = []
        self.attendance: List[AttendanceRecord] = []
        self.matches: List[Match] = []
        self._dirty: Set[str] = set()
        self._pending_deletes: Dict[str, Set[str]] = {}
        self.reload()
        if seed:
            self._seed_defaults()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def reload(self) -> None:
        """Replace the in-memory lists with the store's contents."""
        for table in TABLES:
            model = MODEL_BY_TABLE[table]
            records = []
            for row in self.store.load(table):
                try:
                    records.append(model.from_dict(row))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning("Skipping malformed %s row %r: %s", table, row.get("id"), e)
            setattr(self, table, records)
        logger.info(
            "Loaded %d users, %d squads, %d players, %d sessions, %d attendance marks, %d matches",
            len(self.users), len(self.squads), len(self.players),
            len(self.sessions), len(self.attendance), len(self.matches),
        )

    def _seed_defaults(self) -> None:
        if not self.squads:
            self.squads = [Squad.from_dict(s) for s in INITIAL_SQUADS]
            self.persist(TABLE_SQUADS)
        if not self.users:
            default_hash = generate_password_hash(DEFAULT_PASSWORD)
            self.users = [
                User.from_dict({**u, "password_hash": default_hash}) for u in SEED_USERS
            ]
            self.persist(TABLE_USERS)
        if not self.players:
            self.players = [Player.from_dict(p) for p in SEED_PLAYERS]
            self.persist(TABLE_PLAYERS)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def records(self, table: str) -> list:
        return getattr(self, table)

    def find(self, table: str, record_id: Optional[str]):
        """Return the record with the given id, or None."""
        if record_id is None:
            return None
        return next((r for r in self.records(table) if r.id == record_id), None)

    # ------------------------------------------------------------------
    # Mirroring
    # ------------------------------------------------------------------
    def persist(
        self,
        table: str,
        changed: Optional[list] = None,
        deleted_ids: Optional[Iterable[str]] = None,
    ) -> bool:
        """
        Mirror a mutation of ``table`` to the store.

        Args:
            table: Table that was mutated
            changed: Records to upsert (defaults to the whole table)
            deleted_ids: Ids removed from the table

        Returns:
            True if the store accepted the write, False if it was deferred
        """
        if deleted_ids:
            self._pending_deletes.setdefault(table, set()).update(deleted_ids)
        if table in self._dirty:
            changed = None  # a previous write failed, resend everything

        records = self.records(table) if changed is None else changed
        try:
            self._write(table, records)
        except StorageError as e:
            self._dirty.add(table)
            logger.error("Saving %s failed, will retry on next change: %s", table, e)
            return False

        self._dirty.discard(table)
        self._retry_dirty()
        return True

    def flush(self) -> bool:
        """Re-save every dirty table. Returns True when nothing is left dirty."""
        self._retry_dirty()
        return not self._dirty

    @property
    def dirty_tables(self) -> Set[str]:
        return set(self._dirty)

    def _retry_dirty(self) -> None:
        for table in list(self._dirty):
            try:
                self._write(table, self.records(table))
            except StorageError as e:
                logger.warning("Retry of %s still failing: %s", table, e)
                continue
            self._dirty.discard(table)
            logger.info("Re-saved %s after earlier failure", table)

    def _write(self, table: str, records: list) -> None:
        pending = self._pending_deletes.get(table)
        if pending:
            self.store.delete(table, pending)
            self._pending_deletes.pop(table, None)
        self.store.upsert(table, [r.to_dict() for r in records])
