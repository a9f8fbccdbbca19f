# cric_api/store.py
from __future__ import annotations

import copy
import itertools
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()

TABLE_NAMES = (
    "teams",
    "players",
    "tournaments",
    "matches",
    "balls",
    "ledgers",  # match_id -> tuple of ball ids, oldest first
    "scorecards",
    "scorecard_keys",  # (match_id, player_id, team_id) -> scorecard id
    "groups",
    "standings",
    "standing_keys",  # (tournament_id, team_id) -> standing id
)


class Table:
    """
    One arena table: opaque key -> record.

    Reads hand out copies, so a record only changes when it is put back
    inside a transaction (repository-style load/modify/save).
    """

    def __init__(self, store: "MemoryStore", name: str):
        self._store = store
        self.name = name
        self._rows: Dict[Hashable, Any] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        with self._store._tx_lock:
            row = self._rows.get(key)
            return copy.copy(row) if row is not None else None

    def __contains__(self, key: Hashable) -> bool:
        with self._store._tx_lock:
            return key in self._rows

    def __len__(self) -> int:
        with self._store._tx_lock:
            return len(self._rows)

    def values(self) -> List[Any]:
        with self._store._tx_lock:
            return [copy.copy(r) for r in self._rows.values()]

    def find(self, predicate: Callable[[Any], bool]) -> List[Any]:
        with self._store._tx_lock:
            return [copy.copy(r) for r in self._rows.values() if predicate(r)]

    def count(self, predicate: Callable[[Any], bool]) -> int:
        with self._store._tx_lock:
            return sum(1 for r in self._rows.values() if predicate(r))

    def put(self, key: Hashable, row: Any) -> Any:
        self._store._record(self, key)
        self._rows[key] = copy.copy(row)
        return row

    def delete(self, key: Hashable) -> None:
        if key not in self._rows:
            raise KeyError(f"{self.name}: no row for key {key!r}")
        self._store._record(self, key)
        del self._rows[key]

    # used by rollback only
    def _restore(self, key: Hashable, old: Any) -> None:
        if old is _MISSING:
            self._rows.pop(key, None)
        else:
            self._rows[key] = old


class MemoryStore:
    """
    In-memory persistence collaborator.

    - Tables are keyed by opaque ids; ownership (match -> balls/scorecards) is by id, not by reference.
    - Every write must happen inside transaction(); an exception rolls all writes back.
    - Reads wait for the running transaction; multi-table reads use snapshot().
    - match_lock(match_id) serialises ledger writers for one match.
    """

    def __init__(self):
        self._tables: Dict[str, Table] = {name: Table(self, name) for name in TABLE_NAMES}
        self._sequences: Dict[str, Iterator[int]] = {name: itertools.count(1) for name in TABLE_NAMES}

        self._tx_lock = threading.RLock()
        self._tx_depth = 0
        self._tx_owner: Optional[int] = None
        # (table, key, previous row or _MISSING), in write order
        self._journal: List[Tuple[Table, Hashable, Any]] = []

        self._match_locks: Dict[int, threading.Lock] = {}
        self._match_locks_guard = threading.Lock()

    def __getattr__(self, name: str) -> Table:
        tables = self.__dict__.get("_tables")
        if tables is not None and name in tables:
            return tables[name]
        raise AttributeError(name)

    def next_id(self, table: str) -> int:
        # Sequences are not rolled back, like database sequences
        return next(self._sequences[table])

    # -----------------------
    # Unit of work
    # -----------------------
    @contextmanager
    def transaction(self):
        """
        Unit of work. Nested calls join the outermost transaction.
        On any exception every write made since the outermost begin is undone, then the exception propagates.
        """
        with self._tx_lock:
            outermost = self._tx_depth == 0
            self._tx_depth += 1
            if outermost:
                self._journal = []
                self._tx_owner = threading.get_ident()
            try:
                yield self
            except BaseException:
                if outermost:
                    self._rollback()
                raise
            finally:
                self._tx_depth -= 1
                if outermost:
                    self._journal = []
                    self._tx_owner = None

    @contextmanager
    def snapshot(self):
        """
        Read unit spanning several tables. Holds the store lock, so no transaction
        is ever seen half-applied (e.g. a batsman updated but not yet the bowler).
        """
        with self._tx_lock:
            yield self

    def _record(self, table: Table, key: Hashable) -> None:
        if self._tx_depth == 0 or self._tx_owner != threading.get_ident():
            raise RuntimeError(f"Write to '{table.name}' outside of a transaction")
        self._journal.append((table, key, table._rows.get(key, _MISSING)))

    def _rollback(self) -> None:
        logger.warning("Rolling back transaction (%d writes)", len(self._journal))
        for table, key, old in reversed(self._journal):
            table._restore(key, old)

    # -----------------------
    # Per-match writer serialisation
    # -----------------------
    def match_lock(self, match_id: int) -> threading.Lock:
        with self._match_locks_guard:
            lock = self._match_locks.get(match_id)
            if lock is None:
                lock = threading.Lock()
                self._match_locks[match_id] = lock
            return lock
