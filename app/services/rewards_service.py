from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logger import setup_logger
from app.db.models.match import Match, MatchStatus
from app.db.models.match_award import MatchAward, PLAYER_OF_MATCH
from app.db.models.match_event import MatchEvent
from app.db.models.match_player import MatchPlayer
from app.db.models.reward import Reward, PlayerReward
from app.services.reward_criteria import (
    CatalogError,
    CriteriaContext,
    PlayerEventCounts,
    RewardCriteria,
    RewardRule,
    parse_progress_criteria,
)
from app.services.season_stats import SeasonAggregates

logger = setup_logger(__name__)


@dataclass
class EvaluationResult:
    new_rewards: list[PlayerReward] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class RewardProgress:
    current: int
    target: int


# ==============================================================================
# 1. LECTURAS
# ==============================================================================

def load_player_event_counts(db: Session, match_id: int) -> dict[int, PlayerEventCounts]:
    """Agrupa los eventos del partido por jugador (todos los tipos, dinámico)."""
    rows = (
        db.query(MatchEvent.player_id, MatchEvent.event_type)
        .filter(MatchEvent.match_id == match_id)
        .order_by(MatchEvent.id)
        .all()
    )

    counts: dict[int, PlayerEventCounts] = {}
    for player_id, event_type in rows:
        if player_id not in counts:
            counts[player_id] = PlayerEventCounts(player_id)
        counts[player_id].add(event_type)
    return counts


def get_player_of_match(db: Session, match_id: int) -> Optional[int]:
    row = (
        db.query(MatchAward.player_id)
        .filter(MatchAward.match_id == match_id, MatchAward.award_type == PLAYER_OF_MATCH)
        .first()
    )
    return row[0] if row else None


def get_match_captain(db: Session, match_id: int) -> Optional[int]:
    """
    Capitán del partido. Si hay varios marcados (dato anómalo) nos quedamos con
    el primero de la convocatoria; si no hay ninguno, None.
    """
    captains = [
        row[0]
        for row in db.query(MatchPlayer.player_id)
        .filter(MatchPlayer.match_id == match_id, MatchPlayer.is_captain.is_(True))
        .order_by(MatchPlayer.id)
        .all()
    ]
    if len(captains) > 1:
        logger.warning(f"⚠️ Partido {match_id} tiene {len(captains)} capitanes, usamos {captains[0]}")
    return captains[0] if captains else None


def load_reward_rules(db: Session) -> list[RewardRule]:
    """Lanza CatalogError si alguna fila tiene metadata corrupta."""
    return [RewardRule.from_reward(r) for r in db.query(Reward).order_by(Reward.id).all()]


def has_existing_grant(db: Session, player_id: int, reward_id: int, match_id: Optional[int] = None) -> bool:
    """
    ¿Ya tiene el jugador esta recompensa?
    Con match_id solo cuenta una concesión de ESE partido (single_match).
    """
    query = db.query(PlayerReward.id).filter(
        PlayerReward.player_id == player_id,
        PlayerReward.reward_id == reward_id,
    )
    if match_id is not None:
        query = query.filter(PlayerReward.match_id == match_id)
    return query.first() is not None


# ==============================================================================
# 2. ESCRITURA
# ==============================================================================

def grant_reward(
    db: Session,
    player_id: int,
    rule: RewardRule,
    match_id: int,
    actual_count: int,
    criteria: Optional[RewardCriteria] = None,
) -> Optional[PlayerReward]:
    """
    Inserta la concesión y hace commit. Devuelve None si otra evaluación
    concurrente ya la había insertado (violación de la restricción única).
    Cualquier otro error de base de datos se propaga.
    `criteria` es la variante que se ha cumplido (por defecto la del scope).
    """
    criteria = criteria or rule.criteria
    grant = PlayerReward(
        player_id=player_id,
        reward_id=rule.reward_id,
        match_id=match_id if criteria.per_match_grant else None,
        scope_key=rule.scope_key(match_id),
        metadata_={"actual_count": actual_count},
    )
    db.add(grant)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.debug(f"Recompensa {rule.name} ya concedida a jugador {player_id} (concurrente)")
        return None
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"🏆 DESBLOQUEADO: {rule.name} -> jugador {player_id} (partido {match_id})")
    return grant


def _try_grant(db, result: EvaluationResult, player_id: int, rule: RewardRule, match_id: int, actual_count: int, criteria=None):
    try:
        grant = grant_reward(db, player_id, rule, match_id, actual_count, criteria)
    except SQLAlchemyError as e:
        logger.error(f"❌ Error creando recompensa {rule.name} para jugador {player_id}: {e}")
        result.errors.append(f"Error creating reward {rule.name} for player {player_id}")
        return
    if grant is not None:
        result.new_rewards.append(grant)


# ==============================================================================
# 3. ORQUESTADOR PRINCIPAL
# ==============================================================================

def evaluate_match_rewards(db: Session, match_id: int) -> EvaluationResult:
    """
    Evalúa y concede recompensas a todos los jugadores de un partido completado.

    Se puede relanzar sin miedo: solo concede lo que falte. Un fallo al insertar
    una recompensa se anota en `errors` y se sigue con el resto.
    """
    result = EvaluationResult()

    # --- 1. PRECONDICIONES Y LECTURAS (si falla algo aquí no se evalúa nada) ---
    try:
        match = db.get(Match, match_id)
        if not match:
            result.errors.append("Match not found")
            return result

        if match.status != MatchStatus.COMPLETED:
            result.errors.append("Match must be completed before evaluating rewards")
            return result

        season = match.season or (match.team.season if match.team else None)
        event_counts = load_player_event_counts(db, match_id)
        potm_id = get_player_of_match(db, match_id)
        captain_id = get_match_captain(db, match_id)
    except SQLAlchemyError as e:
        logger.error(f"❌ Error leyendo datos del partido {match_id}: {e}")
        db.rollback()
        result.errors.append("Error loading match data for reward evaluation")
        return result

    try:
        rules = load_reward_rules(db)
    except (SQLAlchemyError, CatalogError) as e:
        logger.error(f"❌ Error cargando el catálogo de recompensas: {e}")
        db.rollback()
        result.errors.append("Error loading reward catalog")
        return result

    logger.info(
        f"🔎 Evaluando recompensas partido {match_id}: {len(event_counts)} jugadores, "
        f"{len(rules)} recompensas, capitán={captain_id}, MVP={potm_id}"
    )

    aggregates = SeasonAggregates(db, season)

    # --- 2. RECOMPENSAS POR EVENTOS ---
    for player_id, counts in event_counts.items():
        ctx = CriteriaContext(
            player_id=player_id,
            counts=counts,
            aggregates=aggregates,
            match_id=match_id,
            captain_id=captain_id,
            potm_id=potm_id,
        )
        # Los criterios de capitanía no cuentan aquí (paso 3)
        for rule in rules:
            try:
                if has_existing_grant(db, player_id, rule.reward_id, match_id if rule.match_scoped else None):
                    continue
                outcome = rule.criteria.evaluate(ctx)
            except SQLAlchemyError as e:
                logger.error(f"❌ Error evaluando {rule.name} para jugador {player_id}: {e}")
                db.rollback()
                result.errors.append(f"Error evaluating reward {rule.name} for player {player_id}")
                continue

            if outcome.satisfied:
                _try_grant(db, result, player_id, rule, match_id, outcome.actual_count)

    # --- 3. CAPITANÍA (aunque el capitán no tenga eventos) ---
    if captain_id is not None:
        evaluate_leadership_rewards(
            db,
            rules,
            captain_id,
            match_id,
            potm_id,
            aggregates,
            event_counts.get(captain_id) or PlayerEventCounts(captain_id),
            result,
        )

    logger.info(
        f"✅ Partido {match_id}: {len(result.new_rewards)} recompensas nuevas, {len(result.errors)} errores"
    )
    return result


def evaluate_leadership_rewards(
    db: Session,
    rules: list[RewardRule],
    captain_id: int,
    match_id: int,
    potm_id: Optional[int],
    aggregates: SeasonAggregates,
    counts: PlayerEventCounts,
    result: EvaluationResult,
):
    ctx = CriteriaContext(
        player_id=captain_id,
        counts=counts,
        aggregates=aggregates,
        match_id=match_id,
        captain_id=captain_id,
        potm_id=potm_id,
    )

    for rule in rules:
        if not rule.is_leadership:
            continue
        try:
            if has_existing_grant(db, captain_id, rule.reward_id):
                continue
            outcome = rule.leadership.evaluate(ctx)
        except SQLAlchemyError as e:
            logger.error(f"❌ Error evaluando {rule.name} para capitán {captain_id}: {e}")
            db.rollback()
            result.errors.append(f"Error evaluating leadership reward {rule.name}")
            continue

        if outcome.satisfied:
            _try_grant(db, result, captain_id, rule, match_id, outcome.actual_count, rule.leadership)


# ==============================================================================
# 4. PROGRESO (solo lectura)
# ==============================================================================

def calculate_reward_progress(
    db: Session,
    player_id: int,
    reward_id: int,
    season: Optional[str] = None,
    aggregates: Optional[SeasonAggregates] = None,
) -> RewardProgress:
    """
    current / target para una recompensa bloqueada. No concede nada.
    Las single_match no tienen progreso (un partido no acumula): current = 0.
    """
    reward = db.get(Reward, reward_id)
    if not reward:
        logger.debug(f"Recompensa {reward_id} no encontrada")
        return RewardProgress(0, 0)

    if aggregates is None:
        aggregates = SeasonAggregates(db, season)

    try:
        criteria = parse_progress_criteria(reward)
    except CatalogError as e:
        logger.warning(f"⚠️ Sin progreso para {reward.name}: {e}")
        return RewardProgress(0, reward.criteria_threshold)

    current = criteria.progress(player_id, aggregates)
    return RewardProgress(current, reward.criteria_threshold)
