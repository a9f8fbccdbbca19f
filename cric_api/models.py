# cric_api/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Literal


# -----------------------------
# Enumerations
# -----------------------------
MatchType = Literal["friendly", "tournament"]
MatchStage = Literal["group", "quarter_final", "semi_final", "final"]
MatchStatus = Literal["scheduled", "live", "completed", "cancelled"]
ResultType = Literal["win", "tie", "no_result"]

BallOutcome = Literal[
    "dot", "single", "double", "triple", "four", "six",
    "wide", "no_ball", "bye", "leg_bye", "wicket",
]
WicketType = Literal[
    "bowled", "caught", "lbw", "run_out", "stumped",
    "hit_wicket", "caught_and_bowled", "retired_hurt",
]

MATCH_TYPES = ("friendly", "tournament")
MATCH_STAGES = ("group", "quarter_final", "semi_final", "final")
MATCH_STATUSES = ("scheduled", "live", "completed", "cancelled")
RESULT_TYPES = ("win", "tie", "no_result")
BALL_OUTCOMES = (
    "dot", "single", "double", "triple", "four", "six",
    "wide", "no_ball", "bye", "leg_bye", "wicket",
)
WICKET_TYPES = (
    "bowled", "caught", "lbw", "run_out", "stumped",
    "hit_wicket", "caught_and_bowled", "retired_hurt",
)

# Deliveries that do not count toward the six-ball over
ILLEGAL_OUTCOMES = frozenset({"wide", "no_ball"})
BOUNDARY_RUNS = frozenset({4, 6})

# A match in one of these states rejects further scoring
CLOSED_STATUSES = frozenset({"completed", "cancelled"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes from API payloads are taken to be UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


# -----------------------------
# Identity registry records
# -----------------------------
@dataclass
class Team:
    id: int
    name: str


@dataclass
class Player:
    id: int
    name: str
    team_id: Optional[int] = None


@dataclass
class Tournament:
    id: int
    name: str
    overs: int = 20
    start_date: Optional[datetime] = None


# -----------------------------
# Match
# -----------------------------
@dataclass
class Match:
    id: int
    match_type: MatchType
    team_a_id: int
    team_b_id: int
    match_date: datetime

    tournament_id: Optional[int] = None
    group_name: Optional[str] = None
    stage: Optional[MatchStage] = None
    venue: Optional[str] = None
    city: Optional[str] = None
    overs: int = 20

    status: MatchStatus = "scheduled"
    winner_id: Optional[int] = None

    # Free-text summaries: "180/7" or "180/7 (20.0)"
    team_a_score: Optional[str] = None
    team_b_score: Optional[str] = None
    match_summary: Optional[str] = None
    man_of_match_id: Optional[int] = None

    view_count: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def other_team(self, team_id: int) -> int:
        return self.team_b_id if team_id == self.team_a_id else self.team_a_id


# -----------------------------
# Ball (one delivery)
# -----------------------------
@dataclass(frozen=True)
class Ball:
    id: int
    match_id: int
    batting_team_id: int
    bowling_team_id: int
    over_number: float  # cricket notation, e.g. 5.3
    ball_number: int  # contiguous 1-based sequence within the match
    batsman_id: int
    bowler_id: int
    outcome: BallOutcome

    runs: int = 0  # off the bat
    extras: int = 0  # wides, no-balls, byes, leg-byes
    is_wicket: bool = False
    wicket_type: Optional[WicketType] = None

    non_striker_id: Optional[int] = None
    fielder_id: Optional[int] = None
    commentary: Optional[str] = None

    is_boundary: bool = False
    is_legal: bool = True
    created_at: datetime = field(default_factory=utc_now)


# -----------------------------
# Scorecard (per match, player, team)
# -----------------------------
@dataclass
class Scorecard:
    id: int
    match_id: int
    player_id: int
    team_id: int

    # Batting
    runs: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    strike_rate: float = 0.0
    is_out: bool = False
    dismissal_type: Optional[str] = None

    # Bowling
    overs_bowled: float = 0.0
    wickets: int = 0
    runs_conceded: int = 0
    maidens: int = 0
    economy: float = 0.0

    # Fielding
    catches: int = 0
    run_outs: int = 0
    stumpings: int = 0

    is_player_of_match: bool = False

    @property
    def fielding_dismissals(self) -> int:
        return self.catches + self.run_outs + self.stumpings


# -----------------------------
# Tournament structure
# -----------------------------
@dataclass
class TournamentGroup:
    id: int
    tournament_id: int
    name: str
    max_teams: int = 4
    qualifying_teams: int = 2
    is_active: bool = True


@dataclass
class TournamentTeamStanding:
    id: int
    tournament_id: int
    team_id: int
    group_id: Optional[int] = None

    points: int = 0
    net_run_rate: float = 0.0

    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    no_results: int = 0

    runs_scored: int = 0
    runs_conceded: int = 0
    # Sums of cricket-notation overs, as parsed from score summaries
    overs_faced: float = 0.0
    overs_bowled: float = 0.0

    is_qualified: bool = False
    is_active: bool = True
