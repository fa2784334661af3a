from sqlalchemy import Boolean, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base

class MatchPlayer(Base):
    """Convocatoria de un partido. Debería haber un único capitán."""
    __tablename__ = "match_players"
    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_player"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[int] = mapped_column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    is_captain: Mapped[bool] = mapped_column(Boolean, default=False)

    # Relaciones
    match: Mapped["Match"] = relationship("Match", back_populates="players")
    player: Mapped["Player"] = relationship("Player")
