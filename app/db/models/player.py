from sqlalchemy import Boolean, String, Integer, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, TYPE_CHECKING
from app.db.session import Base

if TYPE_CHECKING:
    from app.db.models.team import Team
    from app.db.models.reward import PlayerReward

class Player(Base):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    position: Mapped[str | None] = mapped_column(String, nullable=True)
    squad_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Lo que pueden ver las familias. Ej: {"show_awards": false}
    privacy_settings: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # Relaciones
    team: Mapped["Team"] = relationship("Team", back_populates="players")
    rewards: Mapped[List["PlayerReward"]] = relationship("PlayerReward", back_populates="player")
