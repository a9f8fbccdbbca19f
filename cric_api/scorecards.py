# cric_api/scorecards.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from cric_api.errors import NotFoundError, ValidationFailure
from cric_api.models import Ball, Match, Scorecard
from cric_api.overs_math import balls_to_overs, overs_to_balls, rate_per_over, strike_rate
from cric_api.store import MemoryStore

logger = logging.getLogger(__name__)


def _dec(value: int, by: int = 1) -> int:
    return max(0, value - by)


def _fielding_credit(ball: Ball) -> Optional[tuple]:
    """
    (player_id, counter) credited for a dismissal in the field, or None.
    Caught-and-bowled is always the bowler's catch.
    """
    if not ball.is_wicket:
        return None
    if ball.wicket_type == "caught_and_bowled":
        return (ball.bowler_id, "catches")
    if ball.fielder_id is None:
        return None
    if ball.wicket_type == "caught":
        return (ball.fielder_id, "catches")
    if ball.wicket_type == "run_out":
        return (ball.fielder_id, "run_outs")
    if ball.wicket_type == "stumped":
        return (ball.fielder_id, "stumpings")
    return None


class ScorecardAggregator:
    """
    Keeps per (match, player, team) scorecards in step with the ball ledger.

    apply/revert write several cards; callers run them inside store.transaction()
    so the batsman, bowler and fielder updates land together or not at all.
    """

    def __init__(self, store: MemoryStore):
        self.store = store

    # -----------------------
    # Loading
    # -----------------------
    def find(self, match_id: int, player_id: int, team_id: int) -> Optional[Scorecard]:
        card_id = self.store.scorecard_keys.get((match_id, player_id, team_id))
        if card_id is None:
            return None
        return self.store.scorecards.get(card_id)

    def _load_or_create(self, match_id: int, player_id: int, team_id: int) -> Scorecard:
        card = self.find(match_id, player_id, team_id)
        if card is not None:
            return card
        card = Scorecard(
            id=self.store.next_id("scorecards"),
            match_id=match_id,
            player_id=player_id,
            team_id=team_id,
        )
        self.store.scorecard_keys.put((match_id, player_id, team_id), card.id)
        return card

    def _require(self, match_id: int, player_id: int, team_id: int) -> Scorecard:
        card = self.find(match_id, player_id, team_id)
        if card is None:
            raise NotFoundError(
                f"No scorecard for player {player_id} (team {team_id}) in match {match_id}"
            )
        return card

    def _save(self, card: Scorecard) -> Scorecard:
        self.store.scorecards.put(card.id, card)
        return card

    def _bowler_legal_balls(self, match_id: int, bowler_id: int, exclude_ball_id: Optional[int] = None) -> int:
        return self.store.balls.count(
            lambda b: b.match_id == match_id
            and b.bowler_id == bowler_id
            and b.is_legal
            and b.id != exclude_ball_id
        )

    def match_cards(self, match_id: int) -> List[Scorecard]:
        return self.store.scorecards.find(lambda c: c.match_id == match_id)

    # -----------------------
    # Ledger events
    # -----------------------
    def apply(self, ball: Ball) -> None:
        # Batsman
        bat = self._load_or_create(ball.match_id, ball.batsman_id, ball.batting_team_id)
        if ball.is_legal:
            bat.balls += 1
        bat.runs += ball.runs
        if ball.runs == 4:
            bat.fours += 1
        if ball.runs == 6:
            bat.sixes += 1
        if ball.is_wicket:
            # the striker's card only, never the non-striker's
            bat.is_out = True
            bat.dismissal_type = ball.wicket_type
        if bat.balls > 0:
            bat.strike_rate = strike_rate(bat.runs, bat.balls)
        self._save(bat)

        # Bowler
        bowl = self._load_or_create(ball.match_id, ball.bowler_id, ball.bowling_team_id)
        legal = self._bowler_legal_balls(ball.match_id, ball.bowler_id)
        bowl.overs_bowled = balls_to_overs(legal)
        bowl.runs_conceded += ball.runs + ball.extras
        if ball.is_wicket:
            bowl.wickets += 1
        if bowl.overs_bowled > 0:
            bowl.economy = rate_per_over(bowl.runs_conceded, bowl.overs_bowled)
        self._save(bowl)

        # Fielder
        credit = _fielding_credit(ball)
        if credit is not None:
            player_id, counter = credit
            fld = self._load_or_create(ball.match_id, player_id, ball.bowling_team_id)
            setattr(fld, counter, getattr(fld, counter) + 1)
            self._save(fld)

        logger.debug(
            "Applied ball %s: batsman %s %d(%d) sr=%.2f, bowler %s %.1f-%d-%d econ=%.2f",
            ball.ball_number, ball.batsman_id, bat.runs, bat.balls, bat.strike_rate,
            ball.bowler_id, bowl.overs_bowled, bowl.runs_conceded, bowl.wickets, bowl.economy,
        )

    def revert(self, ball: Ball) -> None:
        """
        Mirror of apply(). Must run while the ball is still in the ledger:
        the bowler's legal-ball count excludes it explicitly.
        """
        bat = self._require(ball.match_id, ball.batsman_id, ball.batting_team_id)
        if ball.is_legal:
            bat.balls = _dec(bat.balls)
        bat.runs = _dec(bat.runs, ball.runs)
        if ball.runs == 4:
            bat.fours = _dec(bat.fours)
        if ball.runs == 6:
            bat.sixes = _dec(bat.sixes)
        if ball.is_wicket:
            bat.is_out = False
            bat.dismissal_type = None
        bat.strike_rate = strike_rate(bat.runs, bat.balls)
        self._save(bat)

        bowl = self._require(ball.match_id, ball.bowler_id, ball.bowling_team_id)
        legal = self._bowler_legal_balls(ball.match_id, ball.bowler_id, exclude_ball_id=ball.id)
        bowl.overs_bowled = balls_to_overs(legal)
        bowl.runs_conceded = _dec(bowl.runs_conceded, ball.runs + ball.extras)
        if ball.is_wicket:
            bowl.wickets = _dec(bowl.wickets)
        bowl.economy = rate_per_over(bowl.runs_conceded, bowl.overs_bowled)
        self._save(bowl)

        credit = _fielding_credit(ball)
        if credit is not None:
            player_id, counter = credit
            fld = self._require(ball.match_id, player_id, ball.bowling_team_id)
            setattr(fld, counter, _dec(getattr(fld, counter)))
            self._save(fld)

    # -----------------------
    # Manual entry / reads
    # -----------------------
    def add_manual(self, match_id: int, player_id: int, team_id: int, **stats: Any) -> Scorecard:
        """Scorecard typed in by a scorer (e.g. a match not scored ball by ball)."""
        if self.find(match_id, player_id, team_id) is not None:
            raise ValidationFailure(
                f"Scorecard already exists for player {player_id} (team {team_id}) in match {match_id}"
            )

        unknown = set(stats) - set(Scorecard.__dataclass_fields__) - {"id", "match_id", "player_id", "team_id"}
        if unknown:
            raise ValidationFailure(f"Unknown scorecard fields: {sorted(unknown)}")

        card = self._load_or_create(match_id, player_id, team_id)
        for name, value in stats.items():
            if value is not None and name not in {"id", "match_id", "player_id", "team_id"}:
                setattr(card, name, value)

        for name in ("runs", "balls", "fours", "sixes", "wickets", "runs_conceded",
                     "maidens", "catches", "run_outs", "stumpings"):
            if getattr(card, name) < 0:
                raise ValidationFailure(f"{name} cannot be negative")
        try:
            card.overs_bowled = balls_to_overs(overs_to_balls(card.overs_bowled))
        except ValueError as e:
            raise ValidationFailure(f"overs_bowled: {e}") from e

        card.strike_rate = strike_rate(card.runs, card.balls)
        card.economy = rate_per_over(card.runs_conceded, card.overs_bowled)
        return self._save(card)

    def match_scorecard(self, match: Match) -> Dict[str, Dict[str, Any]]:
        """
        Team A batting = team A cards that faced a ball.
        Team A bowling = team B cards that bowled (the attack team A faced).
        """
        cards = sorted(self.match_cards(match.id), key=lambda c: c.runs, reverse=True)
        team_a = [c for c in cards if c.team_id == match.team_a_id]
        team_b = [c for c in cards if c.team_id == match.team_b_id]

        return {
            "team_a": {
                "team_id": match.team_a_id,
                "batting": [c for c in team_a if c.balls > 0],
                "bowling": [c for c in team_b if c.overs_bowled > 0],
            },
            "team_b": {
                "team_id": match.team_b_id,
                "batting": [c for c in team_b if c.balls > 0],
                "bowling": [c for c in team_a if c.overs_bowled > 0],
            },
        }
