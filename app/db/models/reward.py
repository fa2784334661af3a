from sqlalchemy import String, Integer, ForeignKey, DateTime, JSON, UniqueConstraint, Enum as SqEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
import enum
from typing import TYPE_CHECKING
from app.db.session import Base

if TYPE_CHECKING:
    from app.db.models.player import Player
    from app.db.models.match import Match

# --- ENUMS PARA CATEGORIZACIÓN ---
class RewardType(str, enum.Enum):
    MATCH = "match"             # Solo clasificación (galería / leaderboard)
    SEASON = "season"
    LEADERSHIP = "leadership"   # Capitanía, se evalúa aparte

class CriteriaScope(str, enum.Enum):
    SINGLE_MATCH = "single_match"   # Umbral dentro de un único partido
    SEASON = "season"               # Agregado de los partidos completados del equipo
    CAREER = "career"               # Agregado histórico del jugador
    SPECIAL = "special"             # Reglas compuestas en metadata.requires

class CriteriaEventType(str, enum.Enum):
    GOAL = "goal"
    ASSIST = "assist"
    TACKLE = "tackle"
    SAVE = "save"

# Clave de unicidad para recompensas que no van ligadas a un partido
CUMULATIVE_SCOPE_KEY = "all"

def _enum_values(e):
    return [m.value for m in e]

class Reward(Base):
    __tablename__ = "rewards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(10), nullable=True)  # Emoji

    reward_type: Mapped[RewardType] = mapped_column(SqEnum(RewardType, values_callable=_enum_values))
    criteria_scope: Mapped[CriteriaScope] = mapped_column(SqEnum(CriteriaScope, values_callable=_enum_values))
    criteria_event_type: Mapped[CriteriaEventType | None] = mapped_column(
        SqEnum(CriteriaEventType, values_callable=_enum_values), nullable=True
    )
    criteria_threshold: Mapped[int] = mapped_column(Integer, default=1)

    # Ej: {"requires": {"goal": 1, "assist": 1, "tackle": 1}}
    #     {"requires": {"captain_and_potm_same_match": true, "grant_scope": "per_match"}}
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    grants: Mapped[list["PlayerReward"]] = relationship("PlayerReward", back_populates="reward")

class PlayerReward(Base):
    __tablename__ = "player_rewards"
    # scope_key es el id del partido para recompensas single_match y "all" para el resto:
    # una concesión por jugador (o por jugador y partido), también con evaluaciones concurrentes.
    __table_args__ = (
        UniqueConstraint("player_id", "reward_id", "scope_key", name="uq_player_reward_scope"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    reward_id: Mapped[int] = mapped_column(Integer, ForeignKey("rewards.id"), nullable=False, index=True)
    match_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("matches.id"), nullable=True)
    scope_key: Mapped[str] = mapped_column(String, nullable=False, default=CUMULATIVE_SCOPE_KEY)
    achieved_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    # Ej: {"actual_count": 3}
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    # Relaciones
    player: Mapped["Player"] = relationship("Player", back_populates="rewards")
    reward: Mapped["Reward"] = relationship("Reward", back_populates="grants")
    match: Mapped["Match"] = relationship("Match")
