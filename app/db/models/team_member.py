from sqlalchemy import Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base
from sqlalchemy import UniqueConstraint


class TeamMember(Base):
    """Vínculo familia -> equipo -> jugador (acceso de solo lectura)."""
    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("user_id", "player_id", name="uq_user_player"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)

    # Relaciones
    user: Mapped["User"] = relationship("User", back_populates="memberships")
    team: Mapped["Team"] = relationship("Team", back_populates="members")
    player: Mapped["Player"] = relationship("Player")
