"""Tests for the live match state read model."""

from __future__ import annotations

import threading

from conftest import Side, bowl, payload
from cric_api.engine import ScoringEngine
from cric_api.models import Match
from cric_api.score_summary import team_score


class TestTeamScore:
    def test_empty(self):
        assert team_score([]) == {"runs": 0, "wickets": 0, "overs": "0.0", "score": "0/0"}


class TestCurrentMatchState:
    def test_scores_per_batting_side(self, engine: ScoringEngine, friendly: Match, side: Side):
        bowl(engine, friendly, side, runs=4)
        bowl(engine, friendly, side, outcome="wide", extras=1)
        bowl(engine, friendly, side, outcome="wicket", is_wicket=True, wicket_type="bowled")

        state = engine.current_match_state(friendly.id)
        assert state["team_a_score"] == {"runs": 5, "wickets": 1, "overs": "0.2", "score": "5/1"}
        assert state["team_b_score"]["score"] == "0/0"
        assert state["match"].status == "live"

    def test_second_innings(self, engine: ScoringEngine, friendly: Match, side: Side):
        for _ in range(6):
            bowl(engine, friendly, side, runs=1)
        engine.append_ball(friendly.id, payload(
            side,
            batting_team_id=side.strikers,
            bowling_team_id=side.thunder,
            batsman_id=side.keeper,
            non_striker_id=None,
            bowler_id=side.bat3,
            outcome="four",
            runs=4,
        ))

        state = engine.current_match_state(friendly.id)
        assert state["team_a_score"]["overs"] == "1.0"
        assert state["team_a_score"]["runs"] == 6
        assert state["team_b_score"] == {"runs": 4, "wickets": 0, "overs": "0.1", "score": "4/0"}

    def test_recent_balls_window(self, engine: ScoringEngine, friendly: Match, side: Side):
        for _ in range(8):
            bowl(engine, friendly, side)

        recent = engine.current_match_state(friendly.id)["recent_balls"]
        assert [b.ball_number for b in recent] == [3, 4, 5, 6, 7, 8]

    def test_no_balls_yet(self, engine: ScoringEngine, friendly: Match):
        state = engine.current_match_state(friendly.id)
        assert state["recent_balls"] == []
        assert state["scorecards"]["team_a"]["batting"] == []


class TestReadsDuringScoring:
    def test_live_score_never_half_applied(self, engine: ScoringEngine, friendly: Match, side: Side):
        total = 300
        done = threading.Event()
        torn, errors = [], []

        def scorer():
            try:
                for _ in range(total):
                    bowl(engine, friendly, side, runs=1)
            finally:
                done.set()

        def poller():
            try:
                while not done.is_set():
                    cards = engine.current_match_state(friendly.id)["scorecards"]["team_a"]
                    batting, bowling = cards["batting"], cards["bowling"]
                    if batting and bowling and batting[0].runs != bowling[0].runs_conceded:
                        torn.append((batting[0].runs, bowling[0].runs_conceded))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=poller) for _ in range(3)]
        threads.append(threading.Thread(target=scorer))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert torn == []
        assert engine.current_match_state(friendly.id)["team_a_score"]["runs"] == total
