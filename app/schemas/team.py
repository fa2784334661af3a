from pydantic import BaseModel, EmailStr, Field

# Esquemas para Equipos
class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age_group: str | None = None
    season: str | None = None   # Ej: "2025/26"

class TeamOut(BaseModel):
    id: int
    name: str
    manager_id: int
    age_group: str | None = None
    season: str | None = None
    is_active: bool

    class Config:
        from_attributes = True

# Esquemas para Jugadores
class PlayerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    position: str | None = None
    squad_number: int | None = Field(default=None, ge=0, le=99)
    privacy_settings: dict | None = None

class PlayerOut(BaseModel):
    id: int
    team_id: int
    name: str
    position: str | None = None
    squad_number: int | None = None
    privacy_settings: dict | None = None

    class Config:
        from_attributes = True

class ParentLink(BaseModel):
    email: EmailStr
