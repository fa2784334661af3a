from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from app.core.security import SECRET_KEY, ALGORITHM
from app.db.session import SessionLocal
from app.db.models.user import User
from app.db.models.team import Team
from app.db.models.team_member import TeamMember
from app.db.models.player import Player

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_user(token: str = Depends(oauth2_scheme)):
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")

    db = SessionLocal()
    user = db.get(User, user_id)
    db.close()

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return user

def require_admin(
    current_user: User = Depends(get_current_user),
):
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user

# -----------------------
# Acceso a equipos (manager / familia)
# -----------------------
def get_active_team(db: Session, team_id: int) -> Team:
    team = db.query(Team).filter(Team.id == team_id, Team.is_active == True).first()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team

def require_team_manager(db: Session, team_id: int, user: User, detail: str = "Only team managers can do this") -> Team:
    team = get_active_team(db, team_id)
    if team.manager_id != user.id:
        raise HTTPException(status_code=403, detail=detail)
    return team

def is_team_parent(db: Session, team_id: int, user: User, player_id: int | None = None) -> bool:
    query = db.query(TeamMember).filter(TeamMember.user_id == user.id, TeamMember.team_id == team_id)
    if player_id is not None:
        query = query.filter(TeamMember.player_id == player_id)
    return query.first() is not None

def require_team_access(db: Session, team_id: int, user: User) -> Team:
    """Manager del equipo o familia vinculada a algún jugador."""
    team = get_active_team(db, team_id)
    if team.manager_id != user.id and not is_team_parent(db, team_id, user):
        raise HTTPException(status_code=403, detail="Forbidden")
    return team

def require_player_access(db: Session, team_id: int, player_id: int, user: User, privacy_key: str):
    """
    Manager del equipo o familia del jugador.
    Las familias quedan fuera si el jugador tiene `privacy_key` a False.
    Devuelve (team, player, is_manager).
    """
    team = get_active_team(db, team_id)
    player = db.query(Player).filter(Player.id == player_id, Player.team_id == team_id).first()
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    is_manager = team.manager_id == user.id
    if not is_manager and not is_team_parent(db, team_id, user, player_id):
        raise HTTPException(status_code=403, detail="Forbidden")

    privacy = player.privacy_settings or {}
    if not is_manager and privacy.get(privacy_key) is False:
        raise HTTPException(status_code=403, detail="Not available due to privacy settings")

    return team, player, is_manager
