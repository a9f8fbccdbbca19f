# cric_api/matches.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from cric_api.config import DEFAULT_MATCH_OVERS
from cric_api.errors import NotFoundError, StateConflict, ValidationFailure
from cric_api.models import (
    CLOSED_STATUSES,
    MATCH_STAGES,
    MATCH_STATUSES,
    MATCH_TYPES,
    RESULT_TYPES,
    Match,
    Tournament,
    as_utc,
    utc_now,
)
from cric_api.points_table import PointsTableEngine
from cric_api.store import MemoryStore

logger = logging.getLogger(__name__)


def insert_match(store: MemoryStore, **fields) -> Match:
    """Stores a new match. Caller validates and holds the transaction."""
    fields["match_date"] = as_utc(fields["match_date"])
    match = Match(id=store.next_id("matches"), **fields)
    store.matches.put(match.id, match)
    return match


def require_tournament(store: MemoryStore, tournament_id: int) -> Tournament:
    tournament = store.tournaments.get(tournament_id)
    if tournament is None:
        raise NotFoundError("Tournament not found")
    return tournament


class MatchService:
    def __init__(
        self,
        store: MemoryStore,
        directory,
        points: PointsTableEngine,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.directory = directory
        self.points = points
        self.clock = clock

    def require(self, match_id: int) -> Match:
        match = self.store.matches.get(match_id)
        if match is None or not match.is_active:
            raise NotFoundError("Match not found")
        return match

    def create_match(
        self,
        *,
        match_type: str,
        team_a_id: int,
        team_b_id: int,
        match_date: datetime,
        tournament_id: Optional[int] = None,
        group_name: Optional[str] = None,
        stage: Optional[str] = None,
        venue: Optional[str] = None,
        city: Optional[str] = None,
        overs: Optional[int] = None,
    ) -> Match:
        if team_a_id == team_b_id:
            raise ValidationFailure("A team cannot play against itself")
        if match_type not in MATCH_TYPES:
            raise ValidationFailure(f"Invalid match_type: {match_type}")
        if stage is not None and stage not in MATCH_STAGES:
            raise ValidationFailure(f"Invalid stage: {stage}")
        if overs is not None and overs <= 0:
            raise ValidationFailure("overs must be positive")

        if not self.directory.team_exists(team_a_id) or not self.directory.team_exists(team_b_id):
            raise NotFoundError("One or both teams not found")

        with self.store.transaction():
            if tournament_id is not None:
                require_tournament(self.store, tournament_id)

            match = insert_match(
                self.store,
                match_type=match_type,
                team_a_id=team_a_id,
                team_b_id=team_b_id,
                match_date=match_date,
                tournament_id=tournament_id,
                group_name=group_name,
                stage=stage,
                venue=venue,
                city=city,
                overs=overs or DEFAULT_MATCH_OVERS,
            )

        logger.info("Created %s match %s: %s vs %s", match_type, match.id, team_a_id, team_b_id)
        return match

    def get_match(self, match_id: int) -> Match:
        with self.store.transaction():
            match = self.require(match_id)
            match.view_count += 1
            self.store.matches.put(match.id, match)
        return match

    def list_matches(
        self,
        status: Optional[str] = None,
        tournament_id: Optional[int] = None,
        team_id: Optional[int] = None,
    ) -> List[Match]:
        def keep(m: Match) -> bool:
            if not m.is_active:
                return False
            if status is not None and m.status != status:
                return False
            if tournament_id is not None and m.tournament_id != tournament_id:
                return False
            if team_id is not None and team_id not in (m.team_a_id, m.team_b_id):
                return False
            return True

        return sorted(self.store.matches.find(keep), key=lambda m: m.match_date, reverse=True)

    def update_match_result(
        self,
        match_id: int,
        *,
        status: Optional[str] = None,
        winner_id: Optional[int] = None,
        team_a_score: Optional[str] = None,
        team_b_score: Optional[str] = None,
        match_summary: Optional[str] = None,
        man_of_match_id: Optional[int] = None,
        result: Optional[str] = None,
    ) -> Match:
        """
        Records the result. A tournament match moving to 'completed' with a winner
        (or an explicit tie/no_result) is rolled into the points table in the same transaction.
        """
        if status is not None and status not in MATCH_STATUSES:
            raise ValidationFailure(f"Invalid status: {status}")
        if result is not None and result not in RESULT_TYPES:
            raise ValidationFailure(f"Invalid result: {result}")

        with self.store.transaction():
            match = self.require(match_id)
            if match.status in CLOSED_STATUSES:
                raise StateConflict(f"Match {match_id} is already {match.status}")

            if status:
                match.status = status
            if winner_id is not None:
                if winner_id not in (match.team_a_id, match.team_b_id):
                    raise ValidationFailure("winner must be one of the two teams")
                match.winner_id = winner_id
            if team_a_score:
                match.team_a_score = team_a_score
            if team_b_score:
                match.team_b_score = team_b_score
            if match_summary:
                match.match_summary = match_summary
            if man_of_match_id is not None:
                if not self.directory.player_exists(man_of_match_id):
                    raise NotFoundError("Man of the match player not found")
                match.man_of_match_id = man_of_match_id

            match.updated_at = self.clock()
            self.store.matches.put(match.id, match)

            if match.match_type == "tournament" and match.status == "completed" and match.tournament_id:
                outcome = result or ("win" if match.winner_id is not None else None)
                if outcome is not None and outcome != "win" and match.winner_id is not None:
                    raise ValidationFailure(f"result='{outcome}' cannot have a winner")
                if outcome is None:
                    logger.info("Match %s completed without a winner; points table unchanged", match.id)
                else:
                    tournament = require_tournament(self.store, match.tournament_id)
                    self.points.record_match(match, outcome, default_overs=tournament.overs)

        logger.info("Match %s result updated: status=%s winner=%s", match.id, match.status, match.winner_id)
        return match

    def delete_match(self, match_id: int) -> None:
        with self.store.transaction():
            match = self.require(match_id)
            match.is_active = False
            match.updated_at = self.clock()
            self.store.matches.put(match.id, match)
        logger.info("Match %s soft-deleted", match_id)
