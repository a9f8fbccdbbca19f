# main.py (live scoring + standings)
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from cric_api.config import LOG_LEVEL, validate_config
from cric_api.engine import ScoringEngine
from cric_api.errors import NotFoundError, ScoringError, StateConflict, ValidationFailure
from cric_api.identity_client import IdentityServiceError

logger = logging.getLogger(__name__)

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Cricket Live Scoring API",
    version="0.1.0",
    description="Ball-by-ball scoring, scorecards, leaderboards, points table and fixture generation",
)

engine = ScoringEngine()


@app.on_event("startup")
def on_startup():
    validate_config()
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}


# -----------------------
# Helpers
# -----------------------
def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValidationFailure):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, StateConflict):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, IdentityServiceError):
        return HTTPException(status_code=502, detail=f"Identity service error: {str(e)}")
    return HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")


# -----------------------
# Registry endpoints (thin; identity is owned by the platform)
# -----------------------
class TeamIn(BaseModel):
    name: str = Field(..., min_length=1)


class PlayerIn(BaseModel):
    name: str = Field(..., min_length=1)
    team_id: Optional[int] = None


class TournamentIn(BaseModel):
    name: str = Field(..., min_length=1)
    overs: int = Field(20, ge=1, description="Declared overs limit; used when a score has no (overs) suffix")
    start_date: Optional[datetime] = None


class GroupIn(BaseModel):
    name: str = Field(..., min_length=1, description='e.g. "Group A"')
    max_teams: int = Field(4, ge=2)
    qualifying_teams: int = Field(2, ge=1)


class GroupTeamIn(BaseModel):
    team_id: int


@app.post("/api/teams")
def register_team(req: TeamIn):
    return engine.register_team(req.name)


@app.post("/api/players")
def register_player(req: PlayerIn):
    try:
        return engine.register_player(req.name, team_id=req.team_id)
    except ScoringError as e:
        raise _http_error(e)


@app.post("/api/tournaments")
def register_tournament(req: TournamentIn):
    try:
        return engine.register_tournament(req.name, overs=req.overs, start_date=req.start_date)
    except ScoringError as e:
        raise _http_error(e)


@app.post("/api/tournaments/{tournament_id}/groups")
def create_group(tournament_id: int, req: GroupIn):
    try:
        return engine.create_group(
            tournament_id, req.name, max_teams=req.max_teams, qualifying_teams=req.qualifying_teams,
        )
    except ScoringError as e:
        raise _http_error(e)


@app.post("/api/tournaments/{tournament_id}/groups/{group_id}/teams")
def add_team_to_group(tournament_id: int, group_id: int, req: GroupTeamIn):
    try:
        return engine.add_team_to_group(tournament_id, group_id, req.team_id)
    except (ScoringError, IdentityServiceError) as e:
        raise _http_error(e)


# -----------------------
# Match endpoints
# -----------------------
MatchTypeIn = Literal["friendly", "tournament"]
MatchStageIn = Literal["group", "quarter_final", "semi_final", "final"]
MatchStatusIn = Literal["scheduled", "live", "completed", "cancelled"]


class CreateMatchRequest(BaseModel):
    match_type: MatchTypeIn = "friendly"
    tournament_id: Optional[int] = None
    group_name: Optional[str] = None
    stage: Optional[MatchStageIn] = None
    team_a_id: int
    team_b_id: int
    match_date: datetime
    venue: Optional[str] = None
    city: Optional[str] = None
    overs: Optional[int] = Field(None, ge=1)


class UpdateMatchResultRequest(BaseModel):
    status: Optional[MatchStatusIn] = None
    winner_id: Optional[int] = None
    team_a_score: Optional[str] = Field(None, description='e.g. "180/7" or "180/7 (20.0)"')
    team_b_score: Optional[str] = Field(None, description='e.g. "178/9 (20.0)"')
    match_summary: Optional[str] = None
    man_of_match_id: Optional[int] = None
    result: Optional[Literal["win", "tie", "no_result"]] = Field(
        None, description="Defaults to 'win' when winner_id is set"
    )


@app.post("/api/matches")
def create_match(req: CreateMatchRequest):
    try:
        return engine.create_match(**req.model_dump())
    except (ScoringError, IdentityServiceError) as e:
        raise _http_error(e)


@app.get("/api/matches")
def list_matches(
    status: Optional[MatchStatusIn] = None,
    tournament_id: Optional[int] = None,
    team_id: Optional[int] = None,
):
    return engine.list_matches(status=status, tournament_id=tournament_id, team_id=team_id)


@app.get("/api/matches/{match_id}")
def get_match(match_id: int):
    try:
        return engine.get_match(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.patch("/api/matches/{match_id}/result")
def update_match_result(match_id: int, req: UpdateMatchResultRequest):
    try:
        return engine.update_match_result(match_id, **req.model_dump())
    except (ScoringError, IdentityServiceError) as e:
        raise _http_error(e)


@app.delete("/api/matches/{match_id}")
def delete_match(match_id: int):
    try:
        engine.delete_match(match_id)
    except ScoringError as e:
        raise _http_error(e)
    return {"message": "Match deleted successfully"}


# -----------------------
# Ball-by-ball endpoints
# -----------------------
BallOutcomeIn = Literal[
    "dot", "single", "double", "triple", "four", "six",
    "wide", "no_ball", "bye", "leg_bye", "wicket",
]
WicketTypeIn = Literal[
    "bowled", "caught", "lbw", "run_out", "stumped",
    "hit_wicket", "caught_and_bowled", "retired_hurt",
]


class AddBallRequest(BaseModel):
    batting_team_id: int
    bowling_team_id: int
    over_number: float = Field(..., ge=0, description="Cricket notation, e.g. 5.3")
    batsman_id: int
    non_striker_id: Optional[int] = None
    bowler_id: int
    outcome: BallOutcomeIn
    runs: int = Field(0, ge=0, description="Runs off the bat")
    extras: int = Field(0, ge=0, description="Wides, no-balls, byes, leg-byes")
    is_wicket: bool = False
    wicket_type: Optional[WicketTypeIn] = None
    fielder_id: Optional[int] = None
    commentary: Optional[str] = None


@app.post("/api/matches/{match_id}/balls")
def add_ball(match_id: int, req: AddBallRequest):
    try:
        return engine.append_ball(match_id, req.model_dump())
    except (ScoringError, IdentityServiceError) as e:
        raise _http_error(e)


@app.get("/api/matches/{match_id}/balls")
def get_match_balls(match_id: int):
    try:
        return engine.match_balls(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.delete("/api/matches/{match_id}/balls/undo")
def undo_last_ball(match_id: int):
    try:
        engine.undo_last_ball(match_id)
    except ScoringError as e:
        raise _http_error(e)
    return {"message": "Last ball undone successfully"}


@app.get("/api/matches/{match_id}/live-score")
def live_score(match_id: int):
    try:
        return engine.current_match_state(match_id)
    except ScoringError as e:
        raise _http_error(e)


# -----------------------
# Scorecard + leaderboard endpoints
# -----------------------
class CreateScorecardRequest(BaseModel):
    player_id: int
    team_id: int

    runs: int = Field(0, ge=0)
    balls: int = Field(0, ge=0)
    fours: int = Field(0, ge=0)
    sixes: int = Field(0, ge=0)
    is_out: bool = False
    dismissal_type: Optional[str] = None

    overs_bowled: float = Field(0.0, ge=0)
    wickets: int = Field(0, ge=0)
    runs_conceded: int = Field(0, ge=0)
    maidens: int = Field(0, ge=0)

    catches: int = Field(0, ge=0)
    run_outs: int = Field(0, ge=0)
    stumpings: int = Field(0, ge=0)


@app.post("/api/matches/{match_id}/scorecard")
def add_scorecard(match_id: int, req: CreateScorecardRequest):
    stats: Dict[str, Any] = req.model_dump(exclude={"player_id", "team_id"})
    try:
        return engine.add_scorecard(match_id, req.player_id, req.team_id, **stats)
    except (ScoringError, IdentityServiceError) as e:
        raise _http_error(e)


@app.get("/api/matches/{match_id}/scorecard")
def get_match_scorecard(match_id: int):
    try:
        return engine.match_scorecard(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.get("/api/matches/{match_id}/leaderboard")
def get_match_leaderboard(match_id: int):
    try:
        return engine.match_leaderboard(match_id)
    except ScoringError as e:
        raise _http_error(e)


@app.get("/api/tournaments/{tournament_id}/leaderboard")
def get_tournament_leaderboard(
    tournament_id: int,
    kind: Literal["batting", "bowling"] = Query("batting", alias="type"),
):
    try:
        return engine.tournament_leaderboard(tournament_id, kind)
    except ScoringError as e:
        raise _http_error(e)


# -----------------------
# Standings + fixtures endpoints
# -----------------------
class AdvanceTeamsRequest(BaseModel):
    team_ids: List[int] = Field(..., min_length=1)


@app.get("/api/tournaments/{tournament_id}/points-table")
def get_points_table(tournament_id: int):
    try:
        return engine.points_table(tournament_id)
    except ScoringError as e:
        raise _http_error(e)


@app.post("/api/tournaments/{tournament_id}/generate-group-matches")
def generate_group_matches(tournament_id: int):
    try:
        return engine.generate_group_matches(tournament_id)
    except ScoringError as e:
        raise _http_error(e)


@app.post("/api/tournaments/{tournament_id}/generate-knockout-matches")
def generate_knockout_matches(tournament_id: int):
    try:
        return engine.generate_knockout_matches(tournament_id)
    except ScoringError as e:
        raise _http_error(e)


@app.post("/api/tournaments/{tournament_id}/advance-teams")
def advance_teams(tournament_id: int, req: AdvanceTeamsRequest):
    try:
        engine.advance_teams_to_knockout(tournament_id, req.team_ids)
    except ScoringError as e:
        raise _http_error(e)
    return {"message": "Teams advanced to knockout stage"}


@app.get("/api/tournaments/{tournament_id}/qualified-teams")
def get_qualified_teams(tournament_id: int):
    try:
        return engine.qualified_teams(tournament_id)
    except ScoringError as e:
        raise _http_error(e)
