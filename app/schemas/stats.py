from pydantic import BaseModel
from datetime import datetime
from app.db.models.match import MatchStatus

# --- Estadísticas de equipo ---
class PlayerStats(BaseModel):
    player_id: int
    player_name: str
    squad_number: int | None = None
    matches_played: int = 0
    player_of_match: int = 0
    total_events: int = 0
    events: dict[str, int] = {}

class TopPerformer(BaseModel):
    player_id: int
    player_name: str
    count: int

class TeamTotals(BaseModel):
    total_players: int
    total_matches: int
    events: dict[str, int] = {}

# --- Un jugador ---
class PlayerSummary(PlayerStats):
    captaincies: int = 0

class PlayerMatchLine(BaseModel):
    match_id: int
    opponent_name: str
    match_date: datetime
    status: MatchStatus
    is_captain: bool
    player_of_match: bool
    events: dict[str, int] = {}
