# cric_api/leaderboard.py
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Literal, Optional

import pandas as pd

from cric_api.errors import ValidationFailure
from cric_api.models import Scorecard
from cric_api.overs_math import balls_to_overs, overs_to_balls, rate_per_over
from cric_api.scorecards import ScorecardAggregator
from cric_api.store import MemoryStore

LeaderboardType = Literal["batting", "bowling"]
LEADERBOARD_TYPES = ("batting", "bowling")
TOP_N = 3


def _card_frame(cards: List[Scorecard]) -> pd.DataFrame:
    return pd.DataFrame([asdict(c) for c in cards])


def _batting_rows(df: pd.DataFrame) -> List[dict]:
    bat = df[df["balls"] > 0].copy()
    if bat.empty:
        return []

    bat["fifty"] = ((bat["runs"] >= 50) & (bat["runs"] < 100)).astype(int)
    bat["hundred"] = (bat["runs"] >= 100).astype(int)

    g = (
        bat.groupby("player_id")
        .agg(
            total_runs=("runs", "sum"),
            total_balls=("balls", "sum"),
            matches=("match_id", "count"),
            fours=("fours", "sum"),
            sixes=("sixes", "sum"),
            fifties=("fifty", "sum"),
            hundreds=("hundred", "sum"),
            highest_score=("runs", "max"),
        )
        .reset_index()
        .sort_values(["total_runs", "player_id"], ascending=[False, True], kind="mergesort")
    )

    out: List[dict] = []
    for r in g.itertuples(index=False):
        total_runs = int(r.total_runs)
        total_balls = int(r.total_balls)
        matches = int(r.matches)
        out.append({
            "player_id": int(r.player_id),
            "total_runs": total_runs,
            "total_balls": total_balls,
            "matches": matches,
            "fours": int(r.fours),
            "sixes": int(r.sixes),
            "fifties": int(r.fifties),
            "hundreds": int(r.hundreds),
            "highest_score": int(r.highest_score),
            "average": round(total_runs / matches, 2) if matches > 0 else 0.0,
            "strike_rate": round(total_runs / total_balls * 100, 2) if total_balls > 0 else 0.0,
        })
    return out


def _best_figures(rows: pd.DataFrame) -> str:
    best = rows.sort_values(["wickets", "runs_conceded"], ascending=[False, True], kind="mergesort").iloc[0]
    return f"{int(best['wickets'])}/{int(best['runs_conceded'])}"


def _bowling_rows(df: pd.DataFrame) -> List[dict]:
    bowl = df[df["overs_bowled"] > 0].copy()
    if bowl.empty:
        return []

    # Sum through balls: 1.3 + 1.3 overs is 3.0, not 2.6
    bowl["legal_balls"] = bowl["overs_bowled"].map(overs_to_balls)
    figures = {pid: _best_figures(rows) for pid, rows in bowl.groupby("player_id")}

    g = (
        bowl.groupby("player_id")
        .agg(
            total_wickets=("wickets", "sum"),
            legal_balls=("legal_balls", "sum"),
            total_runs_conceded=("runs_conceded", "sum"),
            matches=("match_id", "count"),
            maidens=("maidens", "sum"),
        )
        .reset_index()
        .sort_values(["total_wickets", "player_id"], ascending=[False, True], kind="mergesort")
    )

    out: List[dict] = []
    for r in g.itertuples(index=False):
        total_overs = balls_to_overs(int(r.legal_balls))
        wickets = int(r.total_wickets)
        conceded = int(r.total_runs_conceded)
        out.append({
            "player_id": int(r.player_id),
            "total_wickets": wickets,
            "total_overs": total_overs,
            "total_runs_conceded": conceded,
            "matches": int(r.matches),
            "maidens": int(r.maidens),
            "best_figures": figures[r.player_id],
            "economy": rate_per_over(conceded, total_overs),
            "average": round(conceded / wickets, 2) if wickets > 0 else 0.0,
        })
    return out


class LeaderboardEngine:
    def __init__(self, store: MemoryStore, aggregator: ScorecardAggregator):
        self.store = store
        self.aggregator = aggregator

    def match_leaderboard(self, match_id: int) -> Dict[str, Any]:
        cards = self.aggregator.match_cards(match_id)

        top_batsmen = sorted(
            (c for c in cards if c.balls > 0),
            key=lambda c: c.runs,
            reverse=True,
        )[:TOP_N]

        top_bowlers = sorted(
            (c for c in cards if c.overs_bowled > 0),
            key=lambda c: (-c.wickets, c.economy),
        )[:TOP_N]

        fielders = sorted(
            (c for c in cards if c.fielding_dismissals > 0),
            key=lambda c: c.fielding_dismissals,
            reverse=True,
        )
        best_fielder: Optional[Scorecard] = fielders[0] if fielders else None

        return {
            "top_batsmen": top_batsmen,
            "top_bowlers": top_bowlers,
            "best_fielder": best_fielder,
        }

    def tournament_leaderboard(self, tournament_id: int, kind: str = "batting") -> List[dict]:
        """
        Aggregates every completed (and not deleted) match of the tournament, per player.
        """
        if kind not in LEADERBOARD_TYPES:
            raise ValidationFailure(f"Invalid leaderboard type: {kind} (expected batting|bowling)")

        match_ids = {
            m.id
            for m in self.store.matches.find(
                lambda m: m.tournament_id == tournament_id and m.status == "completed" and m.is_active
            )
        }
        cards = self.store.scorecards.find(lambda c: c.match_id in match_ids)
        if not cards:
            return []

        df = _card_frame(cards)
        if kind == "batting":
            return _batting_rows(df)
        return _bowling_rows(df)
