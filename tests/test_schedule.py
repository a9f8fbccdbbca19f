"""Tests for round-robin and knockout fixture generation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from conftest import FIXED_NOW
from cric_api.engine import ScoringEngine
from cric_api.errors import NotFoundError, ValidationFailure
from cric_api.models import Tournament
from cric_api.schedule import round_robin_pairs

START = datetime(2026, 4, 1, 14, 0, 0, tzinfo=timezone.utc)


def teams(engine: ScoringEngine, *names: str) -> List[int]:
    return [engine.register_team(name).id for name in names]


def group_of(engine: ScoringEngine, cup: Tournament, name: str, team_ids: List[int]) -> None:
    group = engine.create_group(cup.id, name, max_teams=len(team_ids))
    for team_id in team_ids:
        engine.add_team_to_group(cup.id, group.id, team_id)


def set_standing(engine: ScoringEngine, cup: Tournament, team_id: int, points: int, nrr: float = 0.0) -> None:
    with engine.store.transaction():
        row = engine.points.load_or_create(cup.id, team_id)
        row.points = points
        row.net_run_rate = nrr
        engine.points.save(row)


class TestRoundRobin:
    def test_pairs(self):
        assert round_robin_pairs([1, 2, 3]) == [(1, 2), (1, 3), (2, 3)]
        assert round_robin_pairs([1]) == []

    def test_four_team_group(self, engine: ScoringEngine):
        cup = engine.register_tournament("Cup", overs=10, start_date=START)
        ids = teams(engine, "T1", "T2", "T3", "T4")
        group_of(engine, cup, "A", ids)

        matches = engine.generate_group_matches(cup.id)

        assert len(matches) == 6
        assert len({frozenset((m.team_a_id, m.team_b_id)) for m in matches}) == 6
        assert all(m.team_a_id != m.team_b_id for m in matches)
        assert [m.match_date for m in matches] == [START + timedelta(days=i) for i in range(6)]
        for m in matches:
            assert (m.stage, m.group_name, m.match_type, m.status) == ("group", "A", "tournament", "scheduled")
            assert m.overs == 10

    def test_dates_continue_across_groups(self, engine: ScoringEngine):
        cup = engine.register_tournament("Cup", start_date=START)
        group_of(engine, cup, "A", teams(engine, "A1", "A2", "A3"))
        group_of(engine, cup, "B", teams(engine, "B1", "B2"))

        matches = engine.generate_group_matches(cup.id)

        assert [m.group_name for m in matches] == ["A", "A", "A", "B"]
        assert matches[-1].match_date == START + timedelta(days=3)

    def test_without_start_date_uses_clock(self, engine: ScoringEngine):
        cup = engine.register_tournament("Cup")
        group_of(engine, cup, "A", teams(engine, "T1", "T2"))

        (match,) = engine.generate_group_matches(cup.id)
        assert match.match_date == FIXED_NOW

    def test_unknown_tournament(self, engine: ScoringEngine):
        with pytest.raises(NotFoundError):
            engine.generate_group_matches(5)


class TestKnockout:
    def test_seeding(self, engine: ScoringEngine):
        cup = engine.register_tournament("Cup")
        t1, t2, t3, t4, t5 = teams(engine, "T1", "T2", "T3", "T4", "T5")
        set_standing(engine, cup, t1, 8)
        set_standing(engine, cup, t2, 6, 0.5)
        set_standing(engine, cup, t3, 6, 0.2)
        set_standing(engine, cup, t4, 4)
        set_standing(engine, cup, t5, 10)  # not advanced

        engine.advance_teams_to_knockout(cup.id, [t3, t1, t4, t2])
        semis = engine.generate_knockout_matches(cup.id)

        assert [(m.team_a_id, m.team_b_id) for m in semis] == [(t1, t4), (t2, t3)]
        for m in semis:
            assert m.stage == "semi_final"
            assert m.match_date == FIXED_NOW + timedelta(days=7)

    def test_qualified_teams_ranked(self, engine: ScoringEngine):
        cup = engine.register_tournament("Cup")
        t1, t2, t3 = teams(engine, "T1", "T2", "T3")
        set_standing(engine, cup, t1, 4, -0.3)
        set_standing(engine, cup, t2, 4, 0.9)
        set_standing(engine, cup, t3, 6)
        engine.advance_teams_to_knockout(cup.id, [t1, t2, t3])

        assert [r.team_id for r in engine.qualified_teams(cup.id)] == [t3, t2, t1]

    def test_too_few_qualified(self, engine: ScoringEngine):
        cup = engine.register_tournament("Cup")
        ids = teams(engine, "T1", "T2", "T3")
        for points, team_id in enumerate(ids):
            set_standing(engine, cup, team_id, points)
        engine.advance_teams_to_knockout(cup.id, ids)

        with pytest.raises(ValidationFailure):
            engine.generate_knockout_matches(cup.id)
        assert engine.list_matches(tournament_id=cup.id) == []

    def test_advance_is_atomic(self, engine: ScoringEngine):
        cup = engine.register_tournament("Cup")
        (t1,) = teams(engine, "T1")
        set_standing(engine, cup, t1, 2)
        stranger = engine.register_team("Stranger").id

        with pytest.raises(NotFoundError):
            engine.advance_teams_to_knockout(cup.id, [t1, stranger])
        assert engine.points.standing(cup.id, t1).is_qualified is False
        assert engine.qualified_teams(cup.id) == []
