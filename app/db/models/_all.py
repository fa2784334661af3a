# Importa todos los modelos para que SQLAlchemy resuelva las relaciones
# (y create_all vea todas las tablas) antes de usarlos.
from app.db.models.user import User
from app.db.models.team import Team
from app.db.models.player import Player
from app.db.models.team_member import TeamMember
from app.db.models.match import Match, MatchStatus
from app.db.models.match_player import MatchPlayer
from app.db.models.match_event import MatchEvent
from app.db.models.match_award import MatchAward
from app.db.models.reward import Reward, PlayerReward

__all__ = [
    "User", "Team", "Player", "TeamMember", "Match", "MatchStatus",
    "MatchPlayer", "MatchEvent", "MatchAward", "Reward", "PlayerReward",
]
