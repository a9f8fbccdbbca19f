"""Tests for match lifecycle: create, list, result updates and soft delete."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import FIXED_NOW, Side, bowl
from cric_api.engine import ScoringEngine
from cric_api.errors import NotFoundError, ValidationFailure
from cric_api.models import Match


class TestCreateMatch:
    def test_defaults(self, friendly: Match):
        assert friendly.status == "scheduled"
        assert friendly.overs == 20
        assert friendly.view_count == 0
        assert friendly.is_active

    def test_team_cannot_play_itself(self, engine: ScoringEngine, side: Side):
        with pytest.raises(ValidationFailure):
            engine.create_match(match_type="friendly", team_a_id=side.thunder,
                                team_b_id=side.thunder, match_date=FIXED_NOW)

    def test_unknown_team(self, engine: ScoringEngine, side: Side):
        with pytest.raises(NotFoundError):
            engine.create_match(match_type="friendly", team_a_id=side.thunder,
                                team_b_id=404, match_date=FIXED_NOW)

    def test_unknown_tournament(self, engine: ScoringEngine, side: Side):
        with pytest.raises(NotFoundError):
            engine.create_match(match_type="tournament", tournament_id=9, team_a_id=side.thunder,
                                team_b_id=side.strikers, match_date=FIXED_NOW)
        assert engine.list_matches() == []

    def test_invalid_match_type(self, engine: ScoringEngine, side: Side):
        with pytest.raises(ValidationFailure):
            engine.create_match(match_type="exhibition", team_a_id=side.thunder,
                                team_b_id=side.strikers, match_date=FIXED_NOW)

    def test_naive_date_read_as_utc(self, engine: ScoringEngine, side: Side):
        match = engine.create_match(match_type="friendly", team_a_id=side.thunder,
                                    team_b_id=side.strikers, match_date=datetime(2026, 3, 1, 10, 0, 0))
        assert match.match_date == FIXED_NOW
        assert match.match_date.tzinfo is timezone.utc


class TestReadMatches:
    def test_get_counts_views(self, engine: ScoringEngine, friendly: Match):
        engine.get_match(friendly.id)
        assert engine.get_match(friendly.id).view_count == 2

    def test_list_filters(self, engine: ScoringEngine, friendly: Match, side: Side):
        heat = engine.register_team("Heat").id
        later = engine.create_match(match_type="friendly", team_a_id=side.strikers, team_b_id=heat,
                                    match_date=FIXED_NOW + timedelta(days=2))
        bowl(engine, friendly, side)

        assert [m.id for m in engine.list_matches()] == [later.id, friendly.id]
        assert [m.id for m in engine.list_matches(status="live")] == [friendly.id]
        assert [m.id for m in engine.list_matches(team_id=heat)] == [later.id]
        assert engine.list_matches(tournament_id=1) == []


class TestUpdateResult:
    def test_winner_must_play(self, engine: ScoringEngine, friendly: Match):
        outsider = engine.register_team("Heat").id
        with pytest.raises(ValidationFailure):
            engine.update_match_result(friendly.id, status="completed", winner_id=outsider)
        assert engine.get_match(friendly.id).status == "scheduled"

    def test_unknown_man_of_match(self, engine: ScoringEngine, friendly: Match):
        with pytest.raises(NotFoundError):
            engine.update_match_result(friendly.id, man_of_match_id=999)

    def test_partial_update_keeps_fields(self, engine: ScoringEngine, friendly: Match, side: Side):
        engine.update_match_result(friendly.id, team_a_score="80/2 (10.0)", man_of_match_id=side.bat1)
        match = engine.update_match_result(friendly.id, match_summary="Rain delay")

        assert match.team_a_score == "80/2 (10.0)"
        assert match.man_of_match_id == side.bat1
        assert match.match_summary == "Rain delay"
        assert match.updated_at == FIXED_NOW

    def test_invalid_status(self, engine: ScoringEngine, friendly: Match):
        with pytest.raises(ValidationFailure):
            engine.update_match_result(friendly.id, status="postponed")


class TestDeleteMatch:
    def test_soft_delete_hides_match(self, engine: ScoringEngine, friendly: Match, side: Side):
        engine.delete_match(friendly.id)

        with pytest.raises(NotFoundError):
            engine.get_match(friendly.id)
        with pytest.raises(NotFoundError):
            bowl(engine, friendly, side)
        assert engine.list_matches() == []
        # row is kept, only flagged
        assert engine.store.matches.get(friendly.id).is_active is False

    def test_delete_unknown(self, engine: ScoringEngine):
        with pytest.raises(NotFoundError):
            engine.delete_match(123)
