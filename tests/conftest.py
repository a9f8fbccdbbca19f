"""Shared fixtures for the scoring engine tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

import pytest

from cric_api.engine import ScoringEngine
from cric_api.identity_client import LocalDirectory
from cric_api.models import Ball, Match
from cric_api.store import MemoryStore

FIXED_NOW = datetime(2026, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


@dataclass
class Side:
    """Two registered teams with a few players each."""
    thunder: int
    strikers: int
    bat1: int
    bat2: int
    bat3: int
    bowl1: int
    bowl2: int
    keeper: int


@pytest.fixture
def engine() -> ScoringEngine:
    store = MemoryStore()
    return ScoringEngine(store=store, directory=LocalDirectory(store), clock=lambda: FIXED_NOW)


@pytest.fixture
def side(engine: ScoringEngine) -> Side:
    thunder = engine.register_team("Thunder").id
    strikers = engine.register_team("Strikers").id
    return Side(
        thunder=thunder,
        strikers=strikers,
        bat1=engine.register_player("Bat_1", team_id=thunder).id,
        bat2=engine.register_player("Bat_2", team_id=thunder).id,
        bat3=engine.register_player("Bat_3", team_id=thunder).id,
        bowl1=engine.register_player("Bowl_1", team_id=strikers).id,
        bowl2=engine.register_player("Bowl_2", team_id=strikers).id,
        keeper=engine.register_player("Keeper", team_id=strikers).id,
    )


@pytest.fixture
def friendly(engine: ScoringEngine, side: Side) -> Match:
    return engine.create_match(
        match_type="friendly",
        team_a_id=side.thunder,
        team_b_id=side.strikers,
        match_date=FIXED_NOW,
    )


def payload(side: Side, **overrides: Any) -> Dict[str, Any]:
    """A dot ball from Bowl_1 to Bat_1, Thunder batting."""
    base: Dict[str, Any] = {
        "batting_team_id": side.thunder,
        "bowling_team_id": side.strikers,
        "over_number": 0.1,
        "batsman_id": side.bat1,
        "non_striker_id": side.bat2,
        "bowler_id": side.bowl1,
        "outcome": "dot",
        "runs": 0,
        "extras": 0,
        "is_wicket": False,
    }
    base.update(overrides)
    return base


_OUTCOME_FOR_RUNS = {0: "dot", 1: "single", 2: "double", 3: "triple", 4: "four", 6: "six"}


def bowl(engine: ScoringEngine, match: Match, side: Side, runs: int = 0, **overrides: Any) -> Ball:
    overrides.setdefault("outcome", _OUTCOME_FOR_RUNS[runs])
    return engine.append_ball(match.id, payload(side, runs=runs, **overrides))
