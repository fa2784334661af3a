from sqlalchemy import Boolean, String, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, TYPE_CHECKING
from app.db.session import Base

if TYPE_CHECKING:
    from app.db.models.user import User
    from app.db.models.player import Player
    from app.db.models.match import Match
    from app.db.models.team_member import TeamMember

class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    manager_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    age_group: Mapped[str | None] = mapped_column(String, nullable=True)  # Ej: "U10"
    season: Mapped[str | None] = mapped_column(String, nullable=True)     # Ej: "2025/26"
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relaciones
    manager: Mapped["User"] = relationship("User", back_populates="managed_teams")
    players: Mapped[List["Player"]] = relationship("Player", back_populates="team")
    matches: Mapped[List["Match"]] = relationship("Match", back_populates="team")
    members: Mapped[List["TeamMember"]] = relationship("TeamMember", back_populates="team")
