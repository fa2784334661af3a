# app/db/models/match_award.py
from sqlalchemy import Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.session import Base

PLAYER_OF_MATCH = "player_of_match"

class MatchAward(Base):
    __tablename__ = "match_awards"
    __table_args__ = (
        UniqueConstraint("match_id", "award_type", name="uq_match_award_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[int] = mapped_column(Integer, ForeignKey("matches.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    award_type: Mapped[str] = mapped_column(String, default=PLAYER_OF_MATCH)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    # Relaciones
    match: Mapped["Match"] = relationship("Match", back_populates="awards")
    player: Mapped["Player"] = relationship("Player")
