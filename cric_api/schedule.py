# cric_api/schedule.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from itertools import combinations
from typing import Callable, List

from cric_api.config import GROUP_MATCH_SPACING_DAYS, KNOCKOUT_OFFSET_DAYS, MIN_KNOCKOUT_TEAMS
from cric_api.errors import NotFoundError, ValidationFailure
from cric_api.matches import insert_match, require_tournament
from cric_api.models import Match, TournamentTeamStanding, utc_now
from cric_api.points_table import PointsTableEngine
from cric_api.store import MemoryStore

logger = logging.getLogger(__name__)

# Bracket seeding by qualification rank (0-based): 1v4, 2v3
SEMI_FINAL_SEEDS = ((0, 3), (1, 2))


def round_robin_pairs(team_ids: List[int]) -> List[tuple]:
    """Every unordered pair (i < j) exactly once: n teams -> n(n-1)/2 fixtures."""
    return list(combinations(team_ids, 2))


class ScheduleGenerator:
    def __init__(
        self,
        store: MemoryStore,
        points: PointsTableEngine,
        clock: Callable[[], datetime] = utc_now,
        spacing_days: int = GROUP_MATCH_SPACING_DAYS,
        knockout_offset_days: int = KNOCKOUT_OFFSET_DAYS,
    ):
        self.store = store
        self.points = points
        self.clock = clock
        self.spacing_days = spacing_days
        self.knockout_offset_days = knockout_offset_days

    def generate_group_matches(self, tournament_id: int) -> List[Match]:
        created: List[Match] = []
        with self.store.transaction():
            tournament = require_tournament(self.store, tournament_id)
            start = tournament.start_date or self.clock()

            groups = sorted(
                self.store.groups.find(lambda g: g.tournament_id == tournament_id and g.is_active),
                key=lambda g: g.id,
            )
            for group in groups:
                members = sorted(
                    self.store.standings.find(
                        lambda s: s.tournament_id == tournament_id and s.group_id == group.id and s.is_active
                    ),
                    key=lambda s: s.id,
                )
                for team_a, team_b in round_robin_pairs([s.team_id for s in members]):
                    created.append(insert_match(
                        self.store,
                        match_type="tournament",
                        tournament_id=tournament_id,
                        group_name=group.name,
                        stage="group",
                        team_a_id=team_a,
                        team_b_id=team_b,
                        # spread across days, counting across all groups
                        match_date=start + timedelta(days=len(created) * self.spacing_days),
                        overs=tournament.overs,
                        status="scheduled",
                    ))

        logger.info("Tournament %s: generated %d group matches", tournament_id, len(created))
        return created

    def qualified_teams(self, tournament_id: int) -> List[TournamentTeamStanding]:
        """Qualified standings ranked by points desc, then NRR desc."""
        rows = self.store.standings.find(
            lambda s: s.tournament_id == tournament_id and s.is_qualified and s.is_active
        )
        return sorted(rows, key=lambda s: (s.points, s.net_run_rate), reverse=True)

    def generate_knockout_matches(self, tournament_id: int) -> List[Match]:
        with self.store.transaction():
            tournament = require_tournament(self.store, tournament_id)
            seeds = self.qualified_teams(tournament_id)
            if len(seeds) < MIN_KNOCKOUT_TEAMS:
                raise ValidationFailure(
                    f"Not enough qualified teams for knockout ({len(seeds)} < {MIN_KNOCKOUT_TEAMS})"
                )

            match_date = self.clock() + timedelta(days=self.knockout_offset_days)
            semis = [
                insert_match(
                    self.store,
                    match_type="tournament",
                    tournament_id=tournament_id,
                    stage="semi_final",
                    team_a_id=seeds[hi].team_id,
                    team_b_id=seeds[lo].team_id,
                    match_date=match_date,
                    overs=tournament.overs,
                    status="scheduled",
                )
                for hi, lo in SEMI_FINAL_SEEDS
            ]

        logger.info(
            "Tournament %s: semi-finals %s",
            tournament_id, [(m.team_a_id, m.team_b_id) for m in semis],
        )
        return semis

    def advance_teams_to_knockout(self, tournament_id: int, team_ids: List[int]) -> List[TournamentTeamStanding]:
        advanced: List[TournamentTeamStanding] = []
        with self.store.transaction():
            require_tournament(self.store, tournament_id)
            for team_id in team_ids:
                row = self.points.standing(tournament_id, team_id)
                if row is None or not row.is_active:
                    raise NotFoundError(f"Team {team_id} is not part of tournament {tournament_id}")
                row.is_qualified = True
                advanced.append(self.points.save(row))

        logger.info("Tournament %s: advanced teams %s", tournament_id, team_ids)
        return advanced
