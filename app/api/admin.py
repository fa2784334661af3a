from fastapi import APIRouter, HTTPException, Depends
from app.db.session import SessionLocal
from app.db.models.reward import Reward, PlayerReward, CriteriaScope
from app.schemas.reward import RewardCreate, RewardUpdate, RewardOut, RewardRequires
from app.core.deps import require_admin
from app.core.logger import setup_logger
from app.api.rewards import seed_rewards

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = setup_logger(__name__)


# -----------------------
# Catálogo de recompensas
# -----------------------
@router.get("/rewards")
def list_rewards(current_user = Depends(require_admin)):
    db = SessionLocal()
    try:
        rewards = db.query(Reward).order_by(Reward.reward_type, Reward.criteria_threshold).all()
        return [RewardOut.model_validate(r) for r in rewards]
    finally:
        db.close()


@router.post("/rewards", status_code=201)
def create_reward(data: RewardCreate, current_user = Depends(require_admin)):
    db = SessionLocal()
    try:
        if db.query(Reward).filter(Reward.name == data.name).first():
            raise HTTPException(status_code=409, detail="A reward with this name already exists")

        reward = Reward(
            name=data.name,
            description=data.description,
            icon=data.icon,
            reward_type=data.reward_type,
            criteria_scope=data.criteria_scope,
            criteria_event_type=data.criteria_event_type,
            criteria_threshold=data.criteria_threshold,
            metadata_=data.metadata.model_dump(exclude_none=True) if data.metadata else None,
        )
        db.add(reward)
        db.commit()
        logger.info(f"➕ Recompensa creada: {reward.name}")
        return RewardOut.model_validate(reward)
    finally:
        db.close()


@router.patch("/rewards/{reward_id}")
def update_reward(reward_id: int, data: RewardUpdate, current_user = Depends(require_admin)):
    db = SessionLocal()
    try:
        reward = db.get(Reward, reward_id)
        if not reward:
            raise HTTPException(404, "Reward not found")

        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] != reward.name:
            if db.query(Reward).filter(Reward.name == changes["name"]).first():
                raise HTTPException(409, "A reward with this name already exists")

        if "metadata" in changes:
            metadata = data.metadata
            reward.metadata_ = metadata.model_dump(exclude_none=True) if metadata else None
            changes.pop("metadata")

        for key, value in changes.items():
            setattr(reward, key, value)

        # Misma regla que al crear: fuera de special hace falta tipo de evento
        requires = RewardRequires(**((reward.metadata_ or {}).get("requires") or {}))
        if (
            reward.criteria_scope != CriteriaScope.SPECIAL
            and reward.criteria_event_type is None
            and not requires.has_leadership_rule()
        ):
            db.rollback()
            raise HTTPException(400, "criteria_event_type is required unless criteria_scope is special")

        db.commit()
        return RewardOut.model_validate(reward)
    finally:
        db.close()


@router.delete("/rewards/{reward_id}")
def delete_reward(reward_id: int, current_user = Depends(require_admin)):
    db = SessionLocal()
    try:
        reward = db.get(Reward, reward_id)
        if not reward:
            raise HTTPException(404, "Reward not found")

        # Las concesiones nunca se borran: una recompensa ya ganada no se puede eliminar
        if db.query(PlayerReward.id).filter(PlayerReward.reward_id == reward_id).first():
            raise HTTPException(409, "Reward has already been granted to players")

        db.delete(reward)
        db.commit()
        return {"message": "Reward deleted"}
    finally:
        db.close()


@router.post("/rewards/seed")
def seed_reward_catalog(current_user = Depends(require_admin)):
    db = SessionLocal()
    try:
        created = seed_rewards(db)
        return {"message": "Catalog synced", "created": created}
    finally:
        db.close()
