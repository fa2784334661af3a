from pydantic import AliasChoices, BaseModel, Field, model_validator
from datetime import datetime
from typing import Literal
from app.db.models.reward import RewardType, CriteriaScope, CriteriaEventType

# --- metadata.requires ---
class RewardRequires(BaseModel):
    goal: int | None = Field(default=None, ge=0)
    assist: int | None = Field(default=None, ge=0)
    tackle: int | None = Field(default=None, ge=0)
    save: int | None = Field(default=None, ge=0)
    total_events: int | None = Field(default=None, ge=0)
    captain_count: int | None = Field(default=None, ge=0)
    captain_and_potm_same_match: bool | None = None
    # Solo capitanía: si la concesión queda ligada al partido o es acumulada
    grant_scope: Literal["per_match", "cumulative"] | None = None

    def has_leadership_rule(self) -> bool:
        return bool(self.captain_and_potm_same_match or self.captain_count)

class RewardMetadata(BaseModel):
    requires: RewardRequires | None = None
    actual_count: int | None = Field(default=None, ge=0)

# --- Catálogo (admin) ---
class RewardCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    reward_type: RewardType
    criteria_event_type: CriteriaEventType | None = None
    criteria_threshold: int = Field(ge=1)
    criteria_scope: CriteriaScope
    icon: str | None = Field(default=None, max_length=10)
    metadata: RewardMetadata | None = None

    @model_validator(mode="after")
    def event_type_required(self):
        requires = self.metadata.requires if self.metadata else None
        leadership = requires is not None and requires.has_leadership_rule()
        if (
            self.criteria_scope != CriteriaScope.SPECIAL
            and self.criteria_event_type is None
            and not leadership
        ):
            raise ValueError("criteria_event_type is required unless criteria_scope is special")
        return self

class RewardUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=500)
    reward_type: RewardType | None = None
    criteria_event_type: CriteriaEventType | None = None
    criteria_threshold: int | None = Field(default=None, ge=1)
    criteria_scope: CriteriaScope | None = None
    icon: str | None = Field(default=None, max_length=10)
    metadata: RewardMetadata | None = None

class RewardOut(BaseModel):
    id: int
    name: str
    description: str
    icon: str | None = None
    reward_type: RewardType
    criteria_scope: CriteriaScope
    criteria_event_type: CriteriaEventType | None = None
    criteria_threshold: int
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("metadata_", "metadata"))

    class Config:
        from_attributes = True

class RewardWithProgress(RewardOut):
    is_earned: bool
    earned_at: datetime | None = None
    progress: int | None = None
    progress_total: int | None = None

# --- Concesiones ---
class PlayerRewardOut(BaseModel):
    id: int
    player_id: int
    reward_id: int
    match_id: int | None = None
    achieved_date: datetime
    metadata: dict | None = Field(default=None, validation_alias=AliasChoices("metadata_", "metadata"))

    class Config:
        from_attributes = True

class LeaderboardEntry(BaseModel):
    player_id: int
    player_name: str
    squad_number: int | None = None
    total_rewards: int
    match_rewards: int
    season_rewards: int
    leadership_rewards: int
