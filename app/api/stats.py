from collections import defaultdict

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.core.deps import get_current_user, require_player_access, require_team_access
from app.db.models.user import User
from app.db.models.player import Player
from app.db.models.match import Match, MatchStatus
from app.db.models.match_player import MatchPlayer
from app.db.models.match_event import MatchEvent
from app.db.models.match_award import MatchAward, PLAYER_OF_MATCH
from app.schemas.stats import PlayerStats, TopPerformer, TeamTotals, PlayerSummary, PlayerMatchLine

router = APIRouter(prefix="/teams/{team_id}", tags=["Stats"])


# -----------------------
# Consultas agrupadas
# -----------------------
def completed_match_ids(db: Session, team_id: int) -> list[int]:
    return [
        row[0] for row in db.query(Match.id).filter(
            Match.team_id == team_id,
            Match.is_active == True,
            Match.status == MatchStatus.COMPLETED,
        ).all()
    ]

def event_counts(db: Session, match_ids: list[int], player_id: int | None = None) -> dict[int, dict[str, int]]:
    """{player_id: {event_type: n}} sobre los partidos dados."""
    if not match_ids:
        return {}
    query = (
        db.query(MatchEvent.player_id, MatchEvent.event_type, func.count(MatchEvent.id))
        .filter(MatchEvent.match_id.in_(match_ids))
    )
    if player_id is not None:
        query = query.filter(MatchEvent.player_id == player_id)

    counts = defaultdict(dict)
    for pid, event_type, n in query.group_by(MatchEvent.player_id, MatchEvent.event_type).all():
        counts[pid][event_type] = n
    return counts

def count_by_player(db: Session, column, *filters) -> dict[int, int]:
    rows = db.query(column, func.count()).filter(*filters).group_by(column).all()
    return {pid: n for pid, n in rows}


# -----------------------
# Equipo
# -----------------------
@router.get("/stats")
def team_stats(team_id: int, current_user: User = Depends(get_current_user)):
    """Eventos por jugador y tipo en los partidos completados del equipo."""
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)

        players = (
            db.query(Player)
            .filter(Player.team_id == team_id, Player.is_active == True)
            .all()
        )
        match_ids = completed_match_ids(db, team_id)
        counts = event_counts(db, match_ids)
        played = count_by_player(db, MatchPlayer.player_id, MatchPlayer.match_id.in_(match_ids)) if match_ids else {}
        potm = count_by_player(
            db, MatchAward.player_id,
            MatchAward.match_id.in_(match_ids), MatchAward.award_type == PLAYER_OF_MATCH,
        ) if match_ids else {}

        # Tipos que aparecen en los datos (no hay lista cerrada)
        event_types = sorted({etype for by_type in counts.values() for etype in by_type})

        player_stats = []
        for p in players:
            by_type = counts.get(p.id, {})
            player_stats.append(PlayerStats(
                player_id=p.id,
                player_name=p.name,
                squad_number=p.squad_number,
                matches_played=played.get(p.id, 0),
                player_of_match=potm.get(p.id, 0),
                total_events=sum(by_type.values()),
                events={etype: by_type.get(etype, 0) for etype in event_types},
            ))

        player_stats.sort(key=lambda s: (
            -s.events.get("goal", 0),
            -s.total_events,
            s.squad_number if s.squad_number is not None else 999,
        ))

        totals = TeamTotals(
            total_players=len(players),
            total_matches=len(match_ids),
            events={etype: sum(s.events[etype] for s in player_stats) for etype in event_types},
        )

        # Máximo por tipo (empates: el primero de la lista ya ordenada)
        top_performers = {}
        for etype in event_types:
            best = max(player_stats, key=lambda s: s.events[etype])
            if best.events[etype] > 0:
                top_performers[etype] = TopPerformer(
                    player_id=best.player_id,
                    player_name=best.player_name,
                    count=best.events[etype],
                )

        return {
            "team_totals": totals,
            "player_stats": player_stats,
            "top_performers": top_performers,
            "event_types": event_types,
        }
    finally:
        db.close()


# -----------------------
# Un jugador (portal de familias)
# -----------------------
@router.get("/players/{player_id}/stats")
def player_stats(team_id: int, player_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        _, player, _ = require_player_access(db, team_id, player_id, current_user, "show_stats_to_parents")

        match_ids = completed_match_ids(db, team_id)
        by_type = event_counts(db, match_ids, player_id).get(player_id, {})

        matches_played = captaincies = potm = 0
        if match_ids:
            matches_played = db.query(func.count(MatchPlayer.id)).filter(
                MatchPlayer.player_id == player_id, MatchPlayer.match_id.in_(match_ids)
            ).scalar()
            captaincies = db.query(func.count(MatchPlayer.id)).filter(
                MatchPlayer.player_id == player_id,
                MatchPlayer.match_id.in_(match_ids),
                MatchPlayer.is_captain.is_(True),
            ).scalar()
            potm = db.query(func.count(MatchAward.id)).filter(
                MatchAward.player_id == player_id,
                MatchAward.match_id.in_(match_ids),
                MatchAward.award_type == PLAYER_OF_MATCH,
            ).scalar()

        return PlayerSummary(
            player_id=player.id,
            player_name=player.name,
            squad_number=player.squad_number,
            matches_played=matches_played or 0,
            captaincies=captaincies or 0,
            player_of_match=potm or 0,
            total_events=sum(by_type.values()),
            events=dict(sorted(by_type.items())),
        )
    finally:
        db.close()

@router.get("/players/{player_id}/matches")
def player_matches(team_id: int, player_id: int, current_user: User = Depends(get_current_user)):
    """Partidos en los que fue convocado, con sus eventos en cada uno."""
    db = SessionLocal()
    try:
        require_player_access(db, team_id, player_id, current_user, "show_match_history")

        rows = (
            db.query(Match, MatchPlayer.is_captain)
            .join(MatchPlayer, MatchPlayer.match_id == Match.id)
            .filter(
                MatchPlayer.player_id == player_id,
                Match.team_id == team_id,
                Match.is_active == True,
            )
            .order_by(Match.match_date.desc(), Match.id.desc())
            .all()
        )
        match_ids = [m.id for m, _ in rows]

        per_match = defaultdict(dict)
        potm_ids = set()
        if match_ids:
            for match_id, event_type, n in (
                db.query(MatchEvent.match_id, MatchEvent.event_type, func.count(MatchEvent.id))
                .filter(MatchEvent.player_id == player_id, MatchEvent.match_id.in_(match_ids))
                .group_by(MatchEvent.match_id, MatchEvent.event_type)
                .all()
            ):
                per_match[match_id][event_type] = n

            potm_ids = {
                row[0] for row in db.query(MatchAward.match_id).filter(
                    MatchAward.player_id == player_id,
                    MatchAward.match_id.in_(match_ids),
                    MatchAward.award_type == PLAYER_OF_MATCH,
                ).all()
            }

        return {
            "matches": [
                PlayerMatchLine(
                    match_id=m.id,
                    opponent_name=m.opponent_name,
                    match_date=m.match_date,
                    status=m.status,
                    is_captain=bool(is_captain),
                    player_of_match=m.id in potm_ids,
                    events=per_match.get(m.id, {}),
                )
                for m, is_captain in rows
            ]
        }
    finally:
        db.close()
