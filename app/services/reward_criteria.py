"""
Criterios de recompensa como variantes (tagged union) seleccionadas por `criteria_scope`.

Cada fila del catálogo se traduce UNA vez por evaluación a un objeto inmutable con:
  - evaluate(ctx) -> CriteriaOutcome   (¿se cumple en este partido? ¿con qué cuenta?)
  - progress(player_id, aggregates)    (contador "actual" para la barra de progreso)

Añadir una forma nueva de regla = una clase nueva + una entrada en el parser.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

from app.db.models.reward import Reward, RewardType, CriteriaScope, CUMULATIVE_SCOPE_KEY
from app.services.season_stats import SeasonAggregates

# "Todoterreno": estos tres mínimos tienen que venir juntos; "save" es opcional
COMPOSITE_REQUIRED_TYPES = ("goal", "assist", "tackle")
COMPOSITE_OPTIONAL_TYPES = ("save",)

GRANT_PER_MATCH = "per_match"
GRANT_CUMULATIVE = "cumulative"


# ==============================================================================
# 1. DATOS DE ENTRADA / SALIDA
# ==============================================================================

@dataclass
class PlayerEventCounts:
    """Eventos de UN jugador en UN partido."""
    player_id: int
    total: int = 0
    by_type: Counter = field(default_factory=Counter)

    def add(self, event_type: str):
        self.by_type[event_type] += 1
        self.total += 1

    def get(self, event_type: str) -> int:
        return self.by_type.get(event_type, 0)


@dataclass
class CriteriaContext:
    player_id: int
    counts: PlayerEventCounts
    aggregates: SeasonAggregates
    match_id: int
    captain_id: Optional[int] = None
    potm_id: Optional[int] = None


@dataclass(frozen=True)
class CriteriaOutcome:
    satisfied: bool
    actual_count: int = 0


NOT_MET = CriteriaOutcome(False)


# ==============================================================================
# 2. VARIANTES
# ==============================================================================

class RewardCriteria:
    # Si la concesión lleva match_id
    per_match_grant = False

    def evaluate(self, ctx: CriteriaContext) -> CriteriaOutcome:
        return NOT_MET

    def progress(self, player_id: int, aggregates: SeasonAggregates) -> int:
        return 0


@dataclass(frozen=True)
class SingleMatchThreshold(RewardCriteria):
    event_type: str
    threshold: int
    per_match_grant = True

    def evaluate(self, ctx):
        count = ctx.counts.get(self.event_type)
        return CriteriaOutcome(count >= self.threshold, count)


@dataclass(frozen=True)
class SeasonThreshold(RewardCriteria):
    event_type: str
    threshold: int

    def evaluate(self, ctx):
        count = ctx.aggregates.season_event_count(ctx.player_id, self.event_type)
        return CriteriaOutcome(count >= self.threshold, count)

    def progress(self, player_id, aggregates):
        return aggregates.season_event_count(player_id, self.event_type)


@dataclass(frozen=True)
class CareerThreshold(RewardCriteria):
    event_type: str
    threshold: int

    def evaluate(self, ctx):
        count = ctx.aggregates.career_event_count(ctx.player_id, self.event_type)
        return CriteriaOutcome(count >= self.threshold, count)

    def progress(self, player_id, aggregates):
        return aggregates.career_event_count(player_id, self.event_type)


@dataclass(frozen=True)
class SameMatchComposite(RewardCriteria):
    """Todos los mínimos en el MISMO partido (ej: "Todoterreno": gol + asistencia + entrada)."""
    minimums: tuple  # ((event_type, minimo), ...)

    def evaluate(self, ctx):
        met = all(ctx.counts.get(etype) >= minimum for etype, minimum in self.minimums)
        return CriteriaOutcome(met, ctx.counts.total)


@dataclass(frozen=True)
class SeasonTotalEvents(RewardCriteria):
    """Eventos de TODOS los tipos en la temporada."""
    total_events: int

    def evaluate(self, ctx):
        season_total = ctx.aggregates.season_event_count(ctx.player_id)
        return CriteriaOutcome(season_total >= self.total_events, ctx.counts.total)

    def progress(self, player_id, aggregates):
        return aggregates.season_event_count(player_id)


@dataclass(frozen=True)
class CaptainAndPotm(RewardCriteria):
    """Capitán y Jugador del Partido en el mismo encuentro."""
    grant_scope: str = GRANT_PER_MATCH

    @property
    def per_match_grant(self):
        return self.grant_scope == GRANT_PER_MATCH

    def evaluate(self, ctx):
        met = (
            ctx.captain_id is not None
            and ctx.player_id == ctx.captain_id
            and ctx.potm_id == ctx.captain_id
        )
        if not met:
            return NOT_MET
        return CriteriaOutcome(True, ctx.aggregates.captain_count(ctx.player_id))


@dataclass(frozen=True)
class CaptainCount(RewardCriteria):
    captain_count: int
    grant_scope: str = GRANT_CUMULATIVE

    @property
    def per_match_grant(self):
        return self.grant_scope == GRANT_PER_MATCH

    def evaluate(self, ctx):
        count = ctx.aggregates.captain_count(ctx.player_id)
        return CriteriaOutcome(count >= self.captain_count, count)

    def progress(self, player_id, aggregates):
        return aggregates.captain_count(player_id)


@dataclass(frozen=True)
class Unsatisfiable(RewardCriteria):
    reason: str = ""



# ==============================================================================
# 3. PARSER (scope -> variante)
# ==============================================================================

class CatalogError(ValueError):
    """Fila del catálogo con metadata que no se puede interpretar."""


def get_requires(reward: Reward) -> dict:
    metadata = reward.metadata_ or {}
    if not isinstance(metadata, dict):
        raise CatalogError(f"Recompensa {reward.name}: metadata no es un objeto")
    requires = metadata.get("requires") or {}
    if not isinstance(requires, dict):
        raise CatalogError(f"Recompensa {reward.name}: metadata.requires no es un objeto")
    return requires


def _as_int(reward: Reward, requires: dict, key: str) -> int:
    try:
        return int(requires[key])
    except (TypeError, ValueError):
        raise CatalogError(f"Recompensa {reward.name}: requires.{key} no es un número ({requires[key]!r})")


def _event_type(reward: Reward) -> Optional[str]:
    if reward.criteria_event_type is None:
        return None
    return getattr(reward.criteria_event_type, "value", reward.criteria_event_type)


def _parse_single_match(reward, requires):
    etype = _event_type(reward)
    if not etype:
        return Unsatisfiable("single_match sin tipo de evento")
    return SingleMatchThreshold(etype, reward.criteria_threshold)


def _parse_season(reward, requires):
    etype = _event_type(reward)
    if not etype:
        return Unsatisfiable("season sin tipo de evento")
    return SeasonThreshold(etype, reward.criteria_threshold)


def _parse_career(reward, requires):
    etype = _event_type(reward)
    if not etype:
        return Unsatisfiable("career sin tipo de evento")
    return CareerThreshold(etype, reward.criteria_threshold)


def _parse_special(reward, requires):
    # 1. Todoterreno: solo si vienen gol, asistencia y entrada
    if all(requires.get(etype) for etype in COMPOSITE_REQUIRED_TYPES):
        minimums = tuple(
            (etype, _as_int(reward, requires, etype))
            for etype in COMPOSITE_REQUIRED_TYPES + COMPOSITE_OPTIONAL_TYPES
            if requires.get(etype)
        )
        return SameMatchComposite(minimums)

    # 2. Eventos totales de temporada
    if requires.get("total_events"):
        return SeasonTotalEvents(_as_int(reward, requires, "total_events"))

    # 3. Lo demás (capitanía incluida) no se cumple en el bucle de jugadores
    return Unsatisfiable("special sin requisitos reconocidos")


_SCOPE_PARSERS: dict[CriteriaScope, Callable] = {
    CriteriaScope.SINGLE_MATCH: _parse_single_match,
    CriteriaScope.SEASON: _parse_season,
    CriteriaScope.CAREER: _parse_career,
    CriteriaScope.SPECIAL: _parse_special,
}


def parse_criteria(reward: Reward) -> RewardCriteria:
    """Criterio que se evalúa para cada jugador con eventos en el partido."""
    requires = get_requires(reward)
    parser = _SCOPE_PARSERS.get(CriteriaScope(reward.criteria_scope))
    if parser is None:
        return Unsatisfiable(f"scope desconocido: {reward.criteria_scope}")
    return parser(reward, requires)


def parse_leadership_criteria(reward: Reward) -> Optional[RewardCriteria]:
    """Criterio de capitanía. Solo lo tienen las recompensas de tipo leadership."""
    if RewardType(reward.reward_type) != RewardType.LEADERSHIP:
        return None

    requires = get_requires(reward)
    if requires.get("captain_and_potm_same_match"):
        return CaptainAndPotm(requires.get("grant_scope") or GRANT_PER_MATCH)
    if requires.get("captain_count"):
        return CaptainCount(
            _as_int(reward, requires, "captain_count"),
            requires.get("grant_scope") or GRANT_CUMULATIVE,
        )
    return None


def parse_progress_criteria(reward: Reward) -> RewardCriteria:
    """
    Criterio para la barra de progreso. En special manda lo acumulable:
    capitanías si hay captain_count, si no eventos totales de temporada.
    """
    if CriteriaScope(reward.criteria_scope) != CriteriaScope.SPECIAL:
        return parse_criteria(reward)

    requires = get_requires(reward)
    if requires.get("captain_count"):
        return CaptainCount(_as_int(reward, requires, "captain_count"))
    if requires.get("total_events"):
        return SeasonTotalEvents(_as_int(reward, requires, "total_events"))
    return Unsatisfiable("special sin progreso acumulable")


# ==============================================================================
# 4. REGLA DEL CATÁLOGO (snapshot de la fila + variantes)
# ==============================================================================

@dataclass(frozen=True)
class RewardRule:
    reward_id: int
    name: str
    reward_type: RewardType
    criteria_scope: CriteriaScope
    criteria: RewardCriteria
    # Solo en el paso de capitanía
    leadership: Optional[RewardCriteria] = None

    @property
    def is_leadership(self) -> bool:
        return self.leadership is not None

    @property
    def match_scoped(self) -> bool:
        """Solo las single_match se pueden ganar una vez por partido."""
        return self.criteria_scope == CriteriaScope.SINGLE_MATCH

    def scope_key(self, match_id: int) -> str:
        return str(match_id) if self.match_scoped else CUMULATIVE_SCOPE_KEY

    @classmethod
    def from_reward(cls, reward: Reward) -> "RewardRule":
        return cls(
            reward_id=reward.id,
            name=reward.name,
            reward_type=RewardType(reward.reward_type),
            criteria_scope=CriteriaScope(reward.criteria_scope),
            criteria=parse_criteria(reward),
            leadership=parse_leadership_criteria(reward),
        )
