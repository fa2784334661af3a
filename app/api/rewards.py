from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.core.deps import get_current_user, require_player_access, require_team_access
from app.core.logger import setup_logger
from app.db.models.user import User
from app.db.models.player import Player
from app.db.models.reward import Reward, PlayerReward, RewardType, CriteriaScope, CriteriaEventType
from app.schemas.reward import RewardOut, RewardWithProgress, PlayerRewardOut, LeaderboardEntry
from app.services.rewards_service import calculate_reward_progress
from app.services.season_stats import SeasonAggregates

router = APIRouter(prefix="/teams/{team_id}", tags=["Rewards"])
logger = setup_logger(__name__)

# --- CATÁLOGO POR DEFECTO ---
REWARD_DEFINITIONS = [
    # --- MATCH (un solo partido) ---
    {"name": "First Goal", "desc": "Score a goal in a match.", "icon": "⚽", "type": "match", "scope": "single_match", "event": "goal", "threshold": 1},
    {"name": "Brace", "desc": "Score 2 goals in a match.", "icon": "✌️", "type": "match", "scope": "single_match", "event": "goal", "threshold": 2},
    {"name": "Hat Trick", "desc": "Score 3 goals in a match.", "icon": "🎩", "type": "match", "scope": "single_match", "event": "goal", "threshold": 3},
    {"name": "Playmaker", "desc": "Provide an assist in a match.", "icon": "🎯", "type": "match", "scope": "single_match", "event": "assist", "threshold": 1},
    {"name": "Brick Wall", "desc": "Make 5 tackles in a match.", "icon": "🧱", "type": "match", "scope": "single_match", "event": "tackle", "threshold": 5},
    {"name": "Safe Hands", "desc": "Make 3 saves in a match.", "icon": "🧤", "type": "match", "scope": "single_match", "event": "save", "threshold": 3},
    {"name": "All Rounder", "desc": "Goal, assist and tackle in the same match.", "icon": "🌟", "type": "match", "scope": "special", "event": None, "threshold": 1,
     "metadata": {"requires": {"goal": 1, "assist": 1, "tackle": 1}}},

    # --- SEASON (agregado de temporada) ---
    {"name": "Goal Machine", "desc": "Score 10 goals in the season.", "icon": "🔥", "type": "season", "scope": "season", "event": "goal", "threshold": 10},
    {"name": "Assist King", "desc": "Provide 10 assists in the season.", "icon": "👑", "type": "season", "scope": "season", "event": "assist", "threshold": 10},
    {"name": "Defensive Rock", "desc": "Make 25 tackles in the season.", "icon": "🪨", "type": "season", "scope": "season", "event": "tackle", "threshold": 25},
    {"name": "Season Legend", "desc": "Log 200 events of any kind in the season.", "icon": "🏅", "type": "season", "scope": "special", "event": None, "threshold": 200,
     "metadata": {"requires": {"total_events": 200}}},
    {"name": "Club Scorer", "desc": "Score 50 career goals.", "icon": "🏟️", "type": "season", "scope": "career", "event": "goal", "threshold": 50},

    # --- LEADERSHIP (capitanía) ---
    {"name": "Captain", "desc": "Captain the team once.", "icon": "©️", "type": "leadership", "scope": "special", "event": None, "threshold": 1,
     "metadata": {"requires": {"captain_count": 1, "grant_scope": "cumulative"}}},
    {"name": "Leader", "desc": "Captain the team 10 times.", "icon": "🦁", "type": "leadership", "scope": "special", "event": None, "threshold": 10,
     "metadata": {"requires": {"captain_count": 10, "grant_scope": "cumulative"}}},
    {"name": "Double Honor", "desc": "Captain and Player of the Match in the same game.", "icon": "🏆", "type": "leadership", "scope": "special", "event": None, "threshold": 1,
     "metadata": {"requires": {"captain_and_potm_same_match": True, "grant_scope": "per_match"}}},
]

def seed_rewards(db: Session) -> int:
    """Sincroniza la lista de definiciones con la DB (por nombre). Devuelve cuántas se crearon."""
    created = 0
    for d in REWARD_DEFINITIONS:
        fields = dict(
            description=d["desc"],
            icon=d["icon"],
            reward_type=RewardType(d["type"]),
            criteria_scope=CriteriaScope(d["scope"]),
            criteria_event_type=CriteriaEventType(d["event"]) if d["event"] else None,
            criteria_threshold=d["threshold"],
            metadata_=d.get("metadata"),
        )
        exists = db.query(Reward).filter(Reward.name == d["name"]).first()
        if not exists:
            db.add(Reward(name=d["name"], **fields))
            created += 1
        else:
            for key, value in fields.items():
                setattr(exists, key, value)

    db.commit()
    logger.info(f"🌱 Catálogo sincronizado ({created} recompensas nuevas)")
    return created

# -----------------------
# Catálogo
# -----------------------
@router.get("/rewards")
def list_rewards(team_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)
        rewards = db.query(Reward).order_by(Reward.reward_type, Reward.criteria_threshold).all()
        return {"rewards": [RewardOut.model_validate(r) for r in rewards]}
    finally:
        db.close()

@router.get("/rewards/leaderboard")
def rewards_leaderboard(team_id: int, current_user: User = Depends(get_current_user)):
    """Quién ha ganado más recompensas en el equipo (empates por dorsal)."""
    db = SessionLocal()
    try:
        require_team_access(db, team_id, current_user)

        players = db.query(Player).filter(Player.team_id == team_id, Player.is_active == True).all()
        player_ids = [p.id for p in players]

        rows = (
            db.query(PlayerReward.player_id, Reward.reward_type)
            .join(Reward, Reward.id == PlayerReward.reward_id)
            .filter(PlayerReward.player_id.in_(player_ids))
            .all()
        ) if player_ids else []

        counts = {pid: {t: 0 for t in RewardType} for pid in player_ids}
        for player_id, reward_type in rows:
            counts[player_id][RewardType(reward_type)] += 1

        leaderboard = []
        for p in players:
            c = counts[p.id]
            leaderboard.append(LeaderboardEntry(
                player_id=p.id,
                player_name=p.name,
                squad_number=p.squad_number,
                total_rewards=sum(c.values()),
                match_rewards=c[RewardType.MATCH],
                season_rewards=c[RewardType.SEASON],
                leadership_rewards=c[RewardType.LEADERSHIP],
            ))

        leaderboard.sort(key=lambda e: (
            -e.total_rewards,
            e.squad_number if e.squad_number is not None else 999,
        ))
        return {"leaderboard": leaderboard}
    finally:
        db.close()

# -----------------------
# Recompensas de un jugador (ganadas + progreso)
# -----------------------
@router.get("/players/{player_id}/rewards")
def get_player_rewards(team_id: int, player_id: int, current_user: User = Depends(get_current_user)):
    db = SessionLocal()
    try:
        # 1. Permisos: manager o familia (si la privacidad lo permite)
        team, player, _ = require_player_access(db, team_id, player_id, current_user, "show_awards")

        # 2. Catálogo + ganadas
        all_rewards = db.query(Reward).order_by(Reward.reward_type, Reward.criteria_threshold).all()
        earned = (
            db.query(PlayerReward)
            .filter(PlayerReward.player_id == player_id)
            .order_by(PlayerReward.achieved_date.desc(), PlayerReward.id.desc())
            .all()
        )

        # La primera concesión de cada recompensa (por si se ganó en varios partidos)
        first_earned = {}
        for grant in earned:
            first_earned[grant.reward_id] = grant

        # 3. Progreso de las bloqueadas (los agregados se comparten entre todas)
        aggregates = SeasonAggregates(db, team.season)
        rewards = []
        for reward in all_rewards:
            base = RewardOut.model_validate(reward).model_dump()
            grant = first_earned.get(reward.id)
            if grant:
                rewards.append(RewardWithProgress(**base, is_earned=True, earned_at=grant.achieved_date))
                continue

            progress = calculate_reward_progress(db, player_id, reward.id, team.season, aggregates)
            rewards.append(RewardWithProgress(
                **base,
                is_earned=False,
                progress=progress.current,
                progress_total=progress.target,
            ))

        return {
            "rewards": rewards,
            "earned_rewards": [PlayerRewardOut.model_validate(g) for g in earned],
        }
    finally:
        db.close()
