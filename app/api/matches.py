from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.db.models.user import User
from app.db.models.player import Player
from app.db.models.match import Match, MatchStatus
from app.db.models.match_player import MatchPlayer
from app.db.models.match_event import MatchEvent
from app.db.models.match_award import MatchAward, PLAYER_OF_MATCH
from app.schemas.match import (
    MatchCreate, MatchUpdate, MatchOut,
    MatchEventCreate, MatchEventOut,
    MatchAwardCreate, MatchAwardOut,
)
from app.schemas.reward import PlayerRewardOut
from app.core.deps import get_current_user, require_team_manager, require_team_access
from app.core.logger import setup_logger
from app.services.rewards_service import evaluate_match_rewards

router = APIRouter(prefix="/teams/{team_id}/matches", tags=["Matches"])
logger = setup_logger(__name__)

def get_team_match(db: Session, team_id: int, match_id: int) -> Match:
    match = db.query(Match).filter(
        Match.id == match_id,
        Match.team_id == team_id,
        Match.is_active == True,
    ).first()
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match

@router.get("/")
def list_matches(team_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)
        matches = (
            db.query(Match)
            .filter(Match.team_id == team_id, Match.is_active == True)
            .order_by(Match.match_date.desc())
            .all()
        )
        return [MatchOut.model_validate(m) for m in matches]
    finally:
        db.close()

@router.post("/", status_code=201)
def create_match(team_id: int, data: MatchCreate, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        team = require_team_manager(db, team_id, current_user, "Only team managers can create matches")
        match = Match(
            team_id=team_id,
            opponent_name=data.opponent_name,
            match_date=data.match_date,
            location=data.location,
            season=team.season,
            status=MatchStatus.SCHEDULED,
        )
        db.add(match)
        db.commit()
        return MatchOut.model_validate(match)
    finally:
        db.close()

@router.get("/{match_id}")
def get_match(team_id: int, match_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)
        return MatchOut.model_validate(get_team_match(db, team_id, match_id))
    finally:
        db.close()

@router.patch("/{match_id}")
def update_match(
    team_id: int,
    match_id: int,
    data: MatchUpdate,
    current_user: User = Depends(get_current_user),
):
    db = SessionLocal()
    try:
        require_team_manager(db, team_id, current_user, "Only team managers can update matches")
        match = get_team_match(db, team_id, match_id)

        # 1. Un partido completado no se reabre ni cambia la convocatoria
        if match.status == MatchStatus.COMPLETED:
            if data.status is not None and data.status != MatchStatus.COMPLETED:
                raise HTTPException(status_code=400, detail="Cannot reopen a completed match")
            if data.player_ids is not None or data.captain_id is not None:
                raise HTTPException(status_code=400, detail="Cannot change the roster of a completed match")

        # 2. Campos simples
        for field in ("opponent_name", "match_date", "location", "status"):
            value = getattr(data, field)
            if value is not None:
                setattr(match, field, value)

        # 3. Convocatoria (se sustituye entera)
        if data.player_ids is not None:
            valid_ids = {
                p[0] for p in db.query(Player.id)
                .filter(Player.team_id == team_id, Player.id.in_(data.player_ids))
                .all()
            }
            if valid_ids != set(data.player_ids):
                raise HTTPException(status_code=400, detail="All players must belong to this team")

            match.players.clear()
            db.flush()
            for player_id in data.player_ids:
                match.players.append(MatchPlayer(
                    player_id=player_id,
                    is_captain=player_id == data.captain_id,
                ))
        elif data.captain_id is not None:
            roster_ids = {mp.player_id for mp in match.players}
            if data.captain_id not in roster_ids:
                raise HTTPException(status_code=400, detail="Captain must be one of the selected players")
            for mp in match.players:
                mp.is_captain = mp.player_id == data.captain_id

        db.commit()
        db.refresh(match)
        return MatchOut.model_validate(match)
    finally:
        db.close()

# -----------------------
# Eventos en directo
# -----------------------
@router.get("/{match_id}/events")
def list_events(team_id: int, match_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)
        get_team_match(db, team_id, match_id)
        events = (
            db.query(MatchEvent)
            .filter(MatchEvent.match_id == match_id)
            .order_by(MatchEvent.id)
            .all()
        )
        return [MatchEventOut.model_validate(e) for e in events]
    finally:
        db.close()

@router.post("/{match_id}/events", status_code=201)
def log_event(
    team_id: int,
    match_id: int,
    data: MatchEventCreate,
    current_user: User = Depends(get_current_user),
):
    db = SessionLocal()
    try:
        require_team_manager(db, team_id, current_user, "Only team managers can log events")
        match = get_team_match(db, team_id, match_id)

        # Un partido completado es inmutable (base de la evaluación de recompensas)
        if match.status == MatchStatus.COMPLETED:
            raise HTTPException(status_code=400, detail="Cannot log events for a completed match")

        player = db.query(Player).filter(Player.id == data.player_id, Player.team_id == team_id).first()
        if not player:
            raise HTTPException(status_code=400, detail="Player does not belong to this team")

        event = MatchEvent(match_id=match_id, **data.model_dump())
        db.add(event)
        db.commit()
        return MatchEventOut.model_validate(event)
    finally:
        db.close()

@router.delete("/{match_id}/events/{event_id}")
def delete_event(
    team_id: int,
    match_id: int,
    event_id: int,
    current_user: User = Depends(get_current_user),
):
    db = SessionLocal()
    try:
        require_team_manager(db, team_id, current_user, "Only team managers can delete events")
        match = get_team_match(db, team_id, match_id)
        if match.status == MatchStatus.COMPLETED:
            raise HTTPException(status_code=400, detail="Cannot delete events of a completed match")

        event = db.query(MatchEvent).filter(MatchEvent.id == event_id, MatchEvent.match_id == match_id).first()
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        db.delete(event)
        db.commit()
        return {"message": "Event deleted"}
    finally:
        db.close()

# -----------------------
# Jugador del Partido
# -----------------------
@router.get("/{match_id}/award")
def get_award(team_id: int, match_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)
        get_team_match(db, team_id, match_id)
        award = db.query(MatchAward).filter(
            MatchAward.match_id == match_id, MatchAward.award_type == PLAYER_OF_MATCH
        ).first()
        return {"award": MatchAwardOut.model_validate(award) if award else None}
    finally:
        db.close()

@router.post("/{match_id}/award")
def set_award(
    team_id: int,
    match_id: int,
    data: MatchAwardCreate,
    current_user: User = Depends(get_current_user),
):
    db = SessionLocal()
    try:
        require_team_manager(db, team_id, current_user, "Only team managers can set Player of the Match")
        match = get_team_match(db, team_id, match_id)
        if match.status != MatchStatus.COMPLETED:
            raise HTTPException(status_code=400, detail="Can only set Player of the Match for completed matches")

        in_roster = db.query(MatchPlayer).filter(
            MatchPlayer.match_id == match_id, MatchPlayer.player_id == data.player_id
        ).first()
        if not in_roster:
            raise HTTPException(status_code=400, detail="Player did not participate in this match")

        # Crear o actualizar (uno por partido)
        award = db.query(MatchAward).filter(
            MatchAward.match_id == match_id, MatchAward.award_type == PLAYER_OF_MATCH
        ).first()
        if award:
            award.player_id = data.player_id
            award.notes = data.notes
        else:
            award = MatchAward(
                match_id=match_id,
                player_id=data.player_id,
                award_type=PLAYER_OF_MATCH,
                notes=data.notes,
            )
            db.add(award)
        db.commit()
        return {"award": MatchAwardOut.model_validate(award)}
    finally:
        db.close()

# -----------------------
# Recompensas
# -----------------------
@router.post("/{match_id}/evaluate-rewards")
def evaluate_rewards(
    team_id: int,
    match_id: int,
    response: Response,
    current_user: User = Depends(get_current_user),
):
    """
    Lanza la evaluación de recompensas tras completar el partido
    (normalmente justo después de elegir al Jugador del Partido).
    """
    db = SessionLocal()
    try:
        require_team_manager(db, team_id, current_user, "Only team managers can trigger reward evaluation")
        match = get_team_match(db, team_id, match_id)
        if match.status != MatchStatus.COMPLETED:
            raise HTTPException(status_code=400, detail="Can only evaluate rewards for completed matches")

        result = evaluate_match_rewards(db, match_id)
        new_rewards = [PlayerRewardOut.model_validate(r) for r in result.new_rewards]

        if not result.success:
            # Los detalles van al log, no al usuario
            for error in result.errors:
                logger.error(f"Partido {match_id}: {error}")
            response.status_code = 207
            return {
                "success": False,
                "error": "Reward evaluation completed with errors",
                "error_count": len(result.errors),
                "new_rewards": new_rewards,
            }

        return {
            "success": True,
            "message": f"Successfully evaluated rewards. {len(new_rewards)} new reward(s) unlocked.",
            "new_rewards": new_rewards,
        }
    finally:
        db.close()
