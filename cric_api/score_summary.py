# cric_api/score_summary.py
from __future__ import annotations

from typing import Any, Dict, List

from cric_api.ball_ledger import BallLedger
from cric_api.config import RECENT_BALLS_WINDOW
from cric_api.models import Ball, Match
from cric_api.overs_math import format_overs
from cric_api.scorecards import ScorecardAggregator


def team_score(balls: List[Ball]) -> Dict[str, Any]:
    """
    Live score for one batting side:
      runs = sum(runs + extras), wickets = count(is_wicket), overs = legal balls in overs notation.
    """
    runs = sum(b.runs + b.extras for b in balls)
    wickets = sum(1 for b in balls if b.is_wicket)
    legal = sum(1 for b in balls if b.is_legal)
    return {
        "runs": runs,
        "wickets": wickets,
        "overs": format_overs(legal),
        "score": f"{runs}/{wickets}",
    }


class ScoreSummarizer:
    """Stateless read model over the ledger and scorecards."""

    def __init__(self, ledger: BallLedger, aggregator: ScorecardAggregator, recent_window: int = RECENT_BALLS_WINDOW):
        self.ledger = ledger
        self.aggregator = aggregator
        self.recent_window = recent_window

    def current_match_state(self, match: Match) -> Dict[str, Any]:
        balls = self.ledger.balls(match.id)
        team_a_balls = [b for b in balls if b.batting_team_id == match.team_a_id]
        team_b_balls = [b for b in balls if b.batting_team_id == match.team_b_id]

        return {
            "match": match,
            "team_a_score": team_score(team_a_balls),
            "team_b_score": team_score(team_b_balls),
            "recent_balls": balls[-self.recent_window:],
            "scorecards": self.aggregator.match_scorecard(match),
        }
