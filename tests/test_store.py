"""Tests for the in-memory persistence collaborator."""

from __future__ import annotations

import threading

import pytest

from cric_api.models import Team
from cric_api.store import MemoryStore


class TestTransactions:
    def test_write_outside_transaction_rejected(self):
        store = MemoryStore()
        with pytest.raises(RuntimeError):
            store.teams.put(1, Team(id=1, name="Thunder"))

    def test_commit(self):
        store = MemoryStore()
        with store.transaction():
            store.teams.put(1, Team(id=1, name="Thunder"))
        assert store.teams.get(1).name == "Thunder"

    def test_rollback_restores_puts_and_deletes(self):
        store = MemoryStore()
        with store.transaction():
            store.teams.put(1, Team(id=1, name="Thunder"))
            store.teams.put(2, Team(id=2, name="Strikers"))

        with pytest.raises(ZeroDivisionError):
            with store.transaction():
                store.teams.put(1, Team(id=1, name="Renamed"))
                store.teams.delete(2)
                store.teams.put(3, Team(id=3, name="Heat"))
                1 / 0

        assert store.teams.get(1).name == "Thunder"
        assert store.teams.get(2).name == "Strikers"
        assert 3 not in store.teams

    def test_nested_transaction_joins_outer(self):
        store = MemoryStore()
        with pytest.raises(ValueError):
            with store.transaction():
                with store.transaction():
                    store.teams.put(1, Team(id=1, name="Thunder"))
                raise ValueError("outer fails")
        assert 1 not in store.teams

    def test_reads_are_copies(self):
        store = MemoryStore()
        with store.transaction():
            store.teams.put(1, Team(id=1, name="Thunder"))
        team = store.teams.get(1)
        team.name = "Changed"
        assert store.teams.get(1).name == "Thunder"

    def test_other_thread_cannot_write_into_open_transaction(self):
        store = MemoryStore()
        errors = []

        def writer():
            try:
                store.teams.put(2, Team(id=2, name="Strikers"))
            except RuntimeError as e:
                errors.append(e)

        with store.transaction():
            store.teams.put(1, Team(id=1, name="Thunder"))
            t = threading.Thread(target=writer)
            t.start()
            t.join()

        assert len(errors) == 1
        assert 2 not in store.teams

    def test_reads_wait_for_commit(self):
        store = MemoryStore()
        seen = []
        started = threading.Event()

        def reader():
            started.set()
            with store.snapshot():
                seen.append((1 in store.teams, 2 in store.teams))

        with store.transaction():
            store.teams.put(1, Team(id=1, name="Thunder"))
            t = threading.Thread(target=reader)
            t.start()
            started.wait()
            store.teams.put(2, Team(id=2, name="Strikers"))
        t.join()

        assert seen == [(True, True)]


class TestMatchLocks:
    def test_same_lock_per_match(self):
        store = MemoryStore()
        assert store.match_lock(1) is store.match_lock(1)
        assert store.match_lock(1) is not store.match_lock(2)
