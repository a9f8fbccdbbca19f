# cric_api/engine.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from cric_api.ball_ledger import BallLedger, Delivery
from cric_api.errors import NotFoundError, ValidationFailure
from cric_api.identity_client import build_directory
from cric_api.leaderboard import LeaderboardEngine
from cric_api.matches import MatchService, require_tournament
from cric_api.models import (
    Ball,
    Match,
    Player,
    Scorecard,
    Team,
    Tournament,
    TournamentGroup,
    TournamentTeamStanding,
    as_utc,
    utc_now,
)
from cric_api.points_table import PointsTableEngine
from cric_api.schedule import ScheduleGenerator
from cric_api.score_summary import ScoreSummarizer
from cric_api.scorecards import ScorecardAggregator
from cric_api.store import MemoryStore

logger = logging.getLogger(__name__)


class ScoringEngine:
    """
    The scoring core as seen by the transport layer.

    Owns one store and wires the ledger, aggregator, summarizer, leaderboards,
    points table and schedule generator against it.
    """

    def __init__(
        self,
        store: Optional[MemoryStore] = None,
        directory=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store or MemoryStore()
        self.directory = directory or build_directory(self.store)
        self.clock = clock

        self.scorecards = ScorecardAggregator(self.store)
        self.ledger = BallLedger(self.store, self.scorecards, self.directory)
        self.summarizer = ScoreSummarizer(self.ledger, self.scorecards)
        self.leaderboards = LeaderboardEngine(self.store, self.scorecards)
        self.points = PointsTableEngine(self.store)
        self.matches = MatchService(self.store, self.directory, self.points, clock=clock)
        self.schedule = ScheduleGenerator(self.store, self.points, clock=clock)

    # -----------------------
    # Registry (identity records owned elsewhere on the platform)
    # -----------------------
    def register_team(self, name: str) -> Team:
        with self.store.transaction():
            team = Team(id=self.store.next_id("teams"), name=name)
            self.store.teams.put(team.id, team)
        return team

    def register_player(self, name: str, team_id: Optional[int] = None) -> Player:
        with self.store.transaction():
            if team_id is not None and team_id not in self.store.teams:
                raise NotFoundError("Team not found")
            player = Player(id=self.store.next_id("players"), name=name, team_id=team_id)
            self.store.players.put(player.id, player)
        return player

    def register_tournament(self, name: str, overs: int = 20, start_date: Optional[datetime] = None) -> Tournament:
        if overs <= 0:
            raise ValidationFailure("overs must be positive")
        with self.store.transaction():
            tournament = Tournament(
                id=self.store.next_id("tournaments"), name=name, overs=overs,
                start_date=as_utc(start_date) if start_date is not None else None,
            )
            self.store.tournaments.put(tournament.id, tournament)
        return tournament

    def create_group(self, tournament_id: int, name: str, max_teams: int = 4, qualifying_teams: int = 2) -> TournamentGroup:
        if qualifying_teams > max_teams:
            raise ValidationFailure("qualifying_teams cannot exceed max_teams")
        with self.store.transaction():
            require_tournament(self.store, tournament_id)
            group = TournamentGroup(
                id=self.store.next_id("groups"),
                tournament_id=tournament_id,
                name=name,
                max_teams=max_teams,
                qualifying_teams=qualifying_teams,
            )
            self.store.groups.put(group.id, group)
        return group

    def add_team_to_group(self, tournament_id: int, group_id: int, team_id: int) -> TournamentTeamStanding:
        if not self.directory.team_exists(team_id):
            raise NotFoundError("Team not found")
        with self.store.transaction():
            require_tournament(self.store, tournament_id)
            group = self.store.groups.get(group_id)
            if group is None or group.tournament_id != tournament_id or not group.is_active:
                raise NotFoundError("Group not found")

            members = self.store.standings.count(lambda s: s.group_id == group_id and s.is_active)
            row = self.points.load_or_create(tournament_id, team_id)
            if row.group_id == group_id:
                return row
            if members >= group.max_teams:
                raise ValidationFailure(f"Group {group.name} is full ({group.max_teams} teams)")
            row.group_id = group_id
            return self.points.save(row)

    # -----------------------
    # Ball by ball
    # -----------------------
    def append_ball(self, match_id: int, payload: Dict[str, Any]) -> Ball:
        try:
            delivery = Delivery(**payload)
        except TypeError as e:
            raise ValidationFailure(f"Malformed delivery payload: {e}") from e
        return self.ledger.append(match_id, delivery)

    def undo_last_ball(self, match_id: int) -> None:
        self.ledger.undo_last(match_id)

    def match_balls(self, match_id: int) -> List[Ball]:
        with self.store.snapshot():
            self.matches.require(match_id)
            return self.ledger.balls(match_id)

    def current_match_state(self, match_id: int) -> Dict[str, Any]:
        with self.store.snapshot():
            return self.summarizer.current_match_state(self.matches.require(match_id))

    # -----------------------
    # Scorecards / leaderboards
    # -----------------------
    def match_scorecard(self, match_id: int) -> Dict[str, Any]:
        with self.store.snapshot():
            return self.scorecards.match_scorecard(self.matches.require(match_id))

    def add_scorecard(self, match_id: int, player_id: int, team_id: int, **stats: Any) -> Scorecard:
        if not self.directory.player_exists(player_id) or not self.directory.team_exists(team_id):
            raise NotFoundError("Match, player, or team not found")
        with self.store.transaction():
            self.matches.require(match_id)
            return self.scorecards.add_manual(match_id, player_id, team_id, **stats)

    def match_leaderboard(self, match_id: int) -> Dict[str, Any]:
        with self.store.snapshot():
            self.matches.require(match_id)
            return self.leaderboards.match_leaderboard(match_id)

    def tournament_leaderboard(self, tournament_id: int, kind: str = "batting") -> List[dict]:
        with self.store.snapshot():
            require_tournament(self.store, tournament_id)
            return self.leaderboards.tournament_leaderboard(tournament_id, kind)

    def points_table(self, tournament_id: int) -> List[dict]:
        with self.store.snapshot():
            require_tournament(self.store, tournament_id)
            return self.points.points_table(tournament_id)

    # -----------------------
    # Matches
    # -----------------------
    def create_match(self, **fields: Any) -> Match:
        return self.matches.create_match(**fields)

    def get_match(self, match_id: int) -> Match:
        return self.matches.get_match(match_id)

    def list_matches(self, **filters: Any) -> List[Match]:
        with self.store.snapshot():
            return self.matches.list_matches(**filters)

    def update_match_result(self, match_id: int, **result: Any) -> Match:
        return self.matches.update_match_result(match_id, **result)

    def delete_match(self, match_id: int) -> None:
        self.matches.delete_match(match_id)

    # -----------------------
    # Tournament scheduling
    # -----------------------
    def generate_group_matches(self, tournament_id: int) -> List[Match]:
        return self.schedule.generate_group_matches(tournament_id)

    def generate_knockout_matches(self, tournament_id: int) -> List[Match]:
        return self.schedule.generate_knockout_matches(tournament_id)

    def advance_teams_to_knockout(self, tournament_id: int, team_ids: List[int]) -> List[TournamentTeamStanding]:
        return self.schedule.advance_teams_to_knockout(tournament_id, team_ids)

    def qualified_teams(self, tournament_id: int) -> List[TournamentTeamStanding]:
        with self.store.snapshot():
            require_tournament(self.store, tournament_id)
            return self.schedule.qualified_teams(tournament_id)
