from fastapi import APIRouter, Depends, HTTPException
from app.db.session import SessionLocal
from app.db.models.user import User
from app.db.models.team import Team
from app.db.models.player import Player
from app.db.models.team_member import TeamMember
from app.schemas.team import TeamCreate, TeamOut, PlayerCreate, PlayerOut, ParentLink
from app.core.deps import get_current_user, require_team_manager, require_team_access

router = APIRouter(prefix="/teams", tags=["Teams"])

@router.get("/", response_model=list[TeamOut])
def get_my_teams(current_user: User = Depends(get_current_user)):
    """
    Managers: los equipos que gestionan.
    Familias: los equipos de sus hijos/as.
    """
    db = SessionLocal()
    try:
        if current_user.role == "manager":
            teams = (
                db.query(Team)
                .filter(Team.manager_id == current_user.id, Team.is_active == True)
                .order_by(Team.name)
                .all()
            )
        else:
            teams = (
                db.query(Team)
                .join(TeamMember, TeamMember.team_id == Team.id)
                .filter(TeamMember.user_id == current_user.id, Team.is_active == True)
                .distinct()
                .order_by(Team.name)
                .all()
            )
        return teams
    finally:
        db.close()

@router.post("/", response_model=TeamOut, status_code=201)
def create_team(data: TeamCreate, current_user: User = Depends(get_current_user)):
    if current_user.role != "manager":
        raise HTTPException(status_code=403, detail="Only managers can create teams")

    db = SessionLocal()
    try:
        team = Team(
            name=data.name,
            age_group=data.age_group,
            season=data.season,
            manager_id=current_user.id,
        )
        db.add(team)
        db.commit()
        return team
    finally:
        db.close()

@router.get("/{team_id}/players", response_model=list[PlayerOut])
def list_players(team_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)
        return (
            db.query(Player)
            .filter(Player.team_id == team_id, Player.is_active == True)
            .order_by(Player.squad_number, Player.name)
            .all()
        )
    finally:
        db.close()

@router.post("/{team_id}/players", response_model=PlayerOut, status_code=201)
def create_player(team_id: int, data: PlayerCreate, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        require_team_manager(db, team_id, current_user, "Only team managers can add players")
        player = Player(team_id=team_id, **data.model_dump())
        db.add(player)
        db.commit()
        return player
    finally:
        db.close()

@router.post("/{team_id}/players/{player_id}/parents", status_code=201)
def link_parent(
    team_id: int,
    player_id: int,
    data: ParentLink,
    current_user: User = Depends(get_current_user),
):
    """Da acceso de lectura a una familia (usuario con rol parent)."""
    db = SessionLocal()
    try:
        require_team_manager(db, team_id, current_user, "Only team managers can manage parents")

        player = db.query(Player).filter(Player.id == player_id, Player.team_id == team_id).first()
        if not player:
            raise HTTPException(status_code=404, detail="Player not found")

        parent = db.query(User).filter(User.email == data.email).first()
        if not parent or parent.role != "parent":
            raise HTTPException(status_code=404, detail="Parent user not found")

        existing = db.query(TeamMember).filter(
            TeamMember.user_id == parent.id, TeamMember.player_id == player_id
        ).first()
        if existing:
            raise HTTPException(status_code=409, detail="Parent already linked to this player")

        link = TeamMember(user_id=parent.id, team_id=team_id, player_id=player_id)
        db.add(link)
        db.commit()
        return {"id": link.id, "user_id": parent.id, "player_id": player_id}
    finally:
        db.close()
