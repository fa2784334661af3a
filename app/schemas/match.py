from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from app.db.models.match import MatchStatus

class MatchCreate(BaseModel):
    opponent_name: str = Field(min_length=1, max_length=100)
    match_date: datetime
    location: str | None = None

class MatchUpdate(BaseModel):
    opponent_name: str | None = None
    match_date: datetime | None = None
    location: str | None = None
    status: MatchStatus | None = None
    # Convocatoria completa (sustituye la anterior)
    player_ids: list[int] | None = None
    captain_id: int | None = None

    @model_validator(mode="after")
    def captain_in_roster(self):
        if self.captain_id is not None and self.player_ids is not None:
            if self.captain_id not in self.player_ids:
                raise ValueError("Captain must be one of the selected players")
        return self

class MatchPlayerOut(BaseModel):
    player_id: int
    is_captain: bool

    class Config:
        from_attributes = True

class MatchOut(BaseModel):
    id: int
    team_id: int
    opponent_name: str
    match_date: datetime
    location: str | None = None
    status: MatchStatus
    season: str | None = None
    players: list[MatchPlayerOut] = []

    class Config:
        from_attributes = True

class MatchEventCreate(BaseModel):
    player_id: int
    event_type: str = Field(pattern=r"^[a-z_]{1,30}$")
    period: int | None = Field(default=None, ge=1)
    minute: int | None = Field(default=None, ge=0, le=200)

class MatchEventOut(BaseModel):
    id: int
    match_id: int
    player_id: int
    event_type: str
    period: int | None = None
    minute: int | None = None

    class Config:
        from_attributes = True

class MatchAwardCreate(BaseModel):
    player_id: int
    notes: str | None = None

class MatchAwardOut(BaseModel):
    id: int
    match_id: int
    player_id: int
    award_type: str
    notes: str | None = None

    class Config:
        from_attributes = True
