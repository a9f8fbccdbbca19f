# cric_api/ball_ledger.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cric_api.errors import NotFoundError, StateConflict, ValidationFailure
from cric_api.models import (
    BALL_OUTCOMES,
    BOUNDARY_RUNS,
    CLOSED_STATUSES,
    ILLEGAL_OUTCOMES,
    WICKET_TYPES,
    Ball,
    Match,
    utc_now,
)
from cric_api.overs_math import overs_to_balls
from cric_api.scorecards import ScorecardAggregator
from cric_api.store import MemoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    """Incoming delivery payload, before it is numbered and stored."""
    batting_team_id: int
    bowling_team_id: int
    over_number: float
    batsman_id: int
    bowler_id: int
    outcome: str

    runs: int = 0
    extras: int = 0
    is_wicket: bool = False
    wicket_type: Optional[str] = None

    non_striker_id: Optional[int] = None
    fielder_id: Optional[int] = None
    commentary: Optional[str] = None


def _is_number(value, *types) -> bool:
    return isinstance(value, types) and not isinstance(value, bool)


def _validate_delivery(match: Match, d: Delivery) -> None:
    if not _is_number(d.runs, int) or not _is_number(d.extras, int):
        raise ValidationFailure("runs and extras must be integers")
    if not _is_number(d.over_number, int, float):
        raise ValidationFailure(f"over_number must be a number, got {d.over_number!r}")
    try:
        overs_to_balls(d.over_number)
    except ValueError as e:
        raise ValidationFailure(f"over_number: {e}") from e
    if not isinstance(d.is_wicket, bool):
        raise ValidationFailure("is_wicket must be true or false")
    if d.outcome not in BALL_OUTCOMES:
        raise ValidationFailure(f"Invalid outcome: {d.outcome}")
    if d.wicket_type is not None and d.wicket_type not in WICKET_TYPES:
        raise ValidationFailure(f"Invalid wicket_type: {d.wicket_type}")
    if d.runs < 0 or d.extras < 0:
        raise ValidationFailure("runs and extras must be >= 0")
    if d.batting_team_id == d.bowling_team_id:
        raise ValidationFailure("batting and bowling team must be different")

    match_teams = {match.team_a_id, match.team_b_id}
    if d.batting_team_id not in match_teams or d.bowling_team_id not in match_teams:
        raise ValidationFailure(f"Teams {d.batting_team_id}/{d.bowling_team_id} are not playing match {match.id}")


class BallLedger:
    """
    Append-only, per-match log of deliveries.

    The log for a match is a tuple of ball ids (oldest first); its last entry is the
    only one that can ever be removed, so ball numbers stay contiguous.
    """

    def __init__(self, store: MemoryStore, aggregator: ScorecardAggregator, directory):
        self.store = store
        self.aggregator = aggregator
        self.directory = directory

    def _log(self, match_id: int) -> Tuple[int, ...]:
        return self.store.ledgers.get(match_id) or ()

    def _open_match(self, match_id: int) -> Match:
        match = self.store.matches.get(match_id)
        if match is None or not match.is_active:
            raise NotFoundError("Match not found")
        if match.status in CLOSED_STATUSES:
            raise StateConflict(f"Match {match_id} is {match.status}; scoring is closed")
        return match

    def _check_identities(self, d: Delivery) -> None:
        if not self.directory.player_exists(d.batsman_id) or not self.directory.player_exists(d.bowler_id):
            raise NotFoundError("Batsman or bowler not found")
        if not self.directory.team_exists(d.batting_team_id) or not self.directory.team_exists(d.bowling_team_id):
            raise NotFoundError("Batting or bowling team not found")

    def _optional_player(self, player_id: Optional[int], role: str) -> Optional[int]:
        if player_id is None:
            return None
        if not self.directory.player_exists(player_id):
            logger.warning("Ignoring unknown %s %s", role, player_id)
            return None
        return player_id

    def append(self, match_id: int, delivery: Delivery) -> Ball:
        with self.store.match_lock(match_id):
            with self.store.transaction():
                match = self._open_match(match_id)
                self._check_identities(delivery)
                _validate_delivery(match, delivery)

                log = self._log(match_id)
                ball = Ball(
                    id=self.store.next_id("balls"),
                    match_id=match_id,
                    batting_team_id=delivery.batting_team_id,
                    bowling_team_id=delivery.bowling_team_id,
                    over_number=delivery.over_number,
                    ball_number=len(log) + 1,
                    batsman_id=delivery.batsman_id,
                    bowler_id=delivery.bowler_id,
                    outcome=delivery.outcome,
                    runs=delivery.runs,
                    extras=delivery.extras,
                    is_wicket=delivery.is_wicket,
                    wicket_type=delivery.wicket_type,
                    non_striker_id=self._optional_player(delivery.non_striker_id, "non-striker"),
                    fielder_id=self._optional_player(delivery.fielder_id, "fielder"),
                    commentary=delivery.commentary,
                    is_boundary=delivery.runs in BOUNDARY_RUNS,
                    is_legal=delivery.outcome not in ILLEGAL_OUTCOMES,
                )

                self.store.balls.put(ball.id, ball)
                self.store.ledgers.put(match_id, log + (ball.id,))
                self.aggregator.apply(ball)

                if match.status == "scheduled":
                    match.status = "live"
                    match.updated_at = utc_now()
                    self.store.matches.put(match.id, match)
                    logger.info("Match %s is live", match_id)

        logger.info(
            "Match %s ball #%d (%s) %s runs=%d extras=%d wicket=%s",
            match_id, ball.ball_number, ball.over_number, ball.outcome, ball.runs, ball.extras, ball.is_wicket,
        )
        return ball

    def undo_last(self, match_id: int) -> Ball:
        with self.store.match_lock(match_id):
            with self.store.transaction():
                self._open_match(match_id)
                log = self._log(match_id)
                if not log:
                    raise NotFoundError("No balls to undo")

                ball = self.store.balls.get(log[-1])
                # scorecards first, so the aggregator never sees a missing ball
                self.aggregator.revert(ball)
                self.store.balls.delete(ball.id)
                self.store.ledgers.put(match_id, log[:-1])

        logger.info("Match %s undid ball #%d", match_id, ball.ball_number)
        return ball

    def last(self, match_id: int) -> Optional[Ball]:
        log = self._log(match_id)
        return self.store.balls.get(log[-1]) if log else None

    def balls(self, match_id: int) -> List[Ball]:
        return [self.store.balls.get(ball_id) for ball_id in self._log(match_id)]
