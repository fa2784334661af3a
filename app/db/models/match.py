from sqlalchemy import Boolean, Integer, String, DateTime, ForeignKey, Enum as SqEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
import enum
from typing import List, TYPE_CHECKING
from app.db.session import Base

if TYPE_CHECKING:
    from app.db.models.team import Team
    from app.db.models.match_player import MatchPlayer
    from app.db.models.match_event import MatchEvent
    from app.db.models.match_award import MatchAward

class MatchStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"      # Ya no admite eventos; se pueden evaluar recompensas

class Match(Base):
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    opponent_name: Mapped[str] = mapped_column(String, nullable=False)
    match_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[MatchStatus] = mapped_column(
        SqEnum(MatchStatus, values_callable=lambda e: [m.value for m in e]),
        default=MatchStatus.SCHEDULED,
        index=True,
    )
    # Copia de la temporada del equipo al crear el partido
    season: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relaciones
    team: Mapped["Team"] = relationship("Team", back_populates="matches")
    players: Mapped[List["MatchPlayer"]] = relationship(
        "MatchPlayer", back_populates="match", order_by="MatchPlayer.id", cascade="all, delete-orphan"
    )
    events: Mapped[List["MatchEvent"]] = relationship("MatchEvent", back_populates="match")
    awards: Mapped[List["MatchAward"]] = relationship("MatchAward", back_populates="match")
