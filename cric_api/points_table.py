# cric_api/points_table.py
from __future__ import annotations

import logging
import re
from dataclasses import asdict
from typing import Dict, List, Optional, Tuple

from cric_api.errors import ValidationFailure
from cric_api.models import Match, ResultType, TournamentTeamStanding
from cric_api.store import MemoryStore

logger = logging.getLogger(__name__)

# Score summaries: "180/7" or "180/7 (19.4)"
_RUNS_RE = re.compile(r"(\d+)/\d+")
_OVERS_RE = re.compile(r"\(([0-9.]+)\)")

UNGROUPED = "Ungrouped"


def parse_score(score: Optional[str], default_overs: float) -> Optional[Tuple[int, float]]:
    """
    Returns (runs, overs) from a free-text score summary, or None if there is no "runs/wickets" part.

    Missing "(overs)" falls back to default_overs (the tournament's declared limit),
    even when the innings actually ended early.
    """
    if not score:
        return None

    m = _RUNS_RE.search(score)
    if not m:
        return None
    runs = int(m.group(1))

    overs = float(default_overs)
    om = _OVERS_RE.search(score)
    if om:
        try:
            overs = float(om.group(1))
        except ValueError:
            logger.warning("Unparseable overs in score %r, using %s", score, default_overs)

    return runs, overs


def net_run_rate(row: TournamentTeamStanding) -> float:
    """
    NRR = (runs_scored / overs_faced) - (runs_conceded / overs_bowled), on overs notation.
    Left unchanged until both sides have overs.
    """
    if row.overs_faced > 0 and row.overs_bowled > 0:
        return round(row.runs_scored / row.overs_faced - row.runs_conceded / row.overs_bowled, 3)
    return row.net_run_rate


def apply_result(
    row_a: TournamentTeamStanding,
    row_b: TournamentTeamStanding,
    *,
    result: ResultType = "win",
    winner: Optional[int] = None,
) -> None:
    """
    Updates played/won/lost/draws/no_results/points ONLY.
    Run aggregates are updated separately via apply_innings().

    Rules:
    - win: winner must be row_a.team_id or row_b.team_id, points = 2 to winner
    - no_result: both get 1 point, no_results += 1
    - tie: both get 1 point, draws += 1
    """
    if result == "win":
        if winner is None:
            raise ValidationFailure("winner is required when result='win'")
        if winner not in (row_a.team_id, row_b.team_id):
            raise ValidationFailure("winner must be either team A or team B")
    elif result not in ("tie", "no_result"):
        raise ValidationFailure(f"Invalid result: {result}")

    row_a.matches_played += 1
    row_b.matches_played += 1

    if result == "no_result":
        row_a.no_results += 1
        row_b.no_results += 1
        row_a.points += 1
        row_b.points += 1
        return

    if result == "tie":
        row_a.draws += 1
        row_b.draws += 1
        row_a.points += 1
        row_b.points += 1
        return

    if winner == row_a.team_id:
        row_a.wins += 1
        row_a.points += 2
        row_b.losses += 1
    else:
        row_b.wins += 1
        row_b.points += 2
        row_a.losses += 1


def apply_innings(
    row: TournamentTeamStanding,
    *,
    own: Tuple[int, float],
    opponent: Tuple[int, float],
) -> None:
    own_runs, own_overs = own
    opp_runs, opp_overs = opponent

    row.runs_scored += own_runs
    row.runs_conceded += opp_runs
    # Overs are summed in notation form (19.4 + 20.0 = 39.4)
    row.overs_faced = round(row.overs_faced + own_overs, 3)
    row.overs_bowled = round(row.overs_bowled + opp_overs, 3)
    row.net_run_rate = net_run_rate(row)


def compute_sorted_table(rows: List[TournamentTeamStanding]) -> List[dict]:
    """
    Returns standings sorted by:
    1) Points (desc)
    2) NRR (desc)
    """
    sorted_rows = sorted(rows, key=lambda r: (r.points, r.net_run_rate), reverse=True)

    out: List[dict] = []
    for idx, r in enumerate(sorted_rows, start=1):
        row = asdict(r)
        row["pos"] = idx
        out.append(row)
    return out


class PointsTableEngine:
    def __init__(self, store: MemoryStore):
        self.store = store

    def standing(self, tournament_id: int, team_id: int) -> Optional[TournamentTeamStanding]:
        standing_id = self.store.standing_keys.get((tournament_id, team_id))
        return self.store.standings.get(standing_id) if standing_id is not None else None

    def load_or_create(self, tournament_id: int, team_id: int, group_id: Optional[int] = None) -> TournamentTeamStanding:
        row = self.standing(tournament_id, team_id)
        if row is not None:
            return row
        row = TournamentTeamStanding(
            id=self.store.next_id("standings"),
            tournament_id=tournament_id,
            team_id=team_id,
            group_id=group_id,
        )
        self.store.standing_keys.put((tournament_id, team_id), row.id)
        return row

    def save(self, row: TournamentTeamStanding) -> TournamentTeamStanding:
        self.store.standings.put(row.id, row)
        return row

    def _group_id_for(self, match: Match) -> Optional[int]:
        if not match.group_name:
            return None
        groups = self.store.groups.find(
            lambda g: g.tournament_id == match.tournament_id and g.name == match.group_name and g.is_active
        )
        return groups[0].id if groups else None

    def record_match(self, match: Match, result: ResultType, default_overs: float) -> Dict[int, TournamentTeamStanding]:
        """
        Rolls a completed tournament match into both teams' standings.
        Runs inside the caller's transaction (together with the match's status change).
        """
        group_id = self._group_id_for(match)
        row_a = self.load_or_create(match.tournament_id, match.team_a_id, group_id)
        row_b = self.load_or_create(match.tournament_id, match.team_b_id, group_id)

        apply_result(row_a, row_b, result=result, winner=match.winner_id)

        if result != "no_result":
            score_a = parse_score(match.team_a_score, default_overs)
            score_b = parse_score(match.team_b_score, default_overs)
            if score_a and score_b:
                apply_innings(row_a, own=score_a, opponent=score_b)
                apply_innings(row_b, own=score_b, opponent=score_a)
            else:
                logger.warning(
                    "Match %s: score summaries %r / %r not parseable, NRR unchanged",
                    match.id, match.team_a_score, match.team_b_score,
                )

        self.save(row_a)
        self.save(row_b)
        logger.info(
            "Points table updated for tournament %s after match %s (%s): %s=%dpts, %s=%dpts",
            match.tournament_id, match.id, result,
            row_a.team_id, row_a.points, row_b.team_id, row_b.points,
        )
        return {row_a.team_id: row_a, row_b.team_id: row_b}

    def points_table(self, tournament_id: int) -> List[dict]:
        rows = self.store.standings.find(lambda s: s.tournament_id == tournament_id and s.is_active)
        groups = sorted(
            self.store.groups.find(lambda g: g.tournament_id == tournament_id and g.is_active),
            key=lambda g: g.id,
        )

        out: List[dict] = []
        for group in groups:
            out.append({
                "group_id": group.id,
                "group_name": group.name,
                "teams": compute_sorted_table([r for r in rows if r.group_id == group.id]),
            })

        known = {g.id for g in groups}
        ungrouped = [r for r in rows if r.group_id not in known]
        if ungrouped:
            out.append({"group_id": None, "group_name": UNGROUPED, "teams": compute_sorted_table(ungrouped)})
        return out
