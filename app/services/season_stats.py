from collections import Counter
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import Config
from app.core.logger import setup_logger
from app.db.models.match import Match, MatchStatus
from app.db.models.match_event import MatchEvent
from app.db.models.match_player import MatchPlayer
from app.db.models.player import Player

logger = setup_logger(__name__)


class SeasonAggregates:
    """
    Contadores agregados que necesitan las reglas de temporada / carrera / capitanía.

    Se recalculan SIEMPRE desde los eventos en bruto (sin contadores cacheados en DB),
    pero cada consulta se hace una sola vez por evaluación:
      - partidos completados de un equipo -> una vez por equipo
      - eventos de temporada de un jugador -> una consulta agrupada por jugador
    Vive lo que dura una llamada; no se comparte entre peticiones.
    """

    def __init__(self, db: Session, season: Optional[str] = None, filter_by_season: Optional[bool] = None):
        self.db = db
        self.season = season
        if filter_by_season is None:
            filter_by_season = Config.SEASON_REWARDS_FILTER_BY_SEASON
        self.filter_by_season = filter_by_season

        self._team_by_player: dict[int, Optional[int]] = {}
        self._match_ids_by_team: dict[int, list[int]] = {}
        self._season_counts: dict[int, Counter] = {}
        self._career_counts: dict[int, Counter] = {}
        self._captain_counts: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Resolución de equipo y partidos
    # ------------------------------------------------------------------

    def team_for_player(self, player_id: int) -> Optional[int]:
        if player_id not in self._team_by_player:
            row = self.db.query(Player.team_id).filter(Player.id == player_id).first()
            self._team_by_player[player_id] = row[0] if row else None
        return self._team_by_player[player_id]

    def completed_match_ids(self, team_id: int) -> list[int]:
        if team_id not in self._match_ids_by_team:
            query = self.db.query(Match.id).filter(
                Match.team_id == team_id,
                Match.status == MatchStatus.COMPLETED,
            )
            if self.filter_by_season and self.season:
                query = query.filter(Match.season == self.season)

            ids = [row[0] for row in query.all()]
            logger.debug(f"Equipo {team_id}: {len(ids)} partidos completados")
            self._match_ids_by_team[team_id] = ids
        return self._match_ids_by_team[team_id]

    # ------------------------------------------------------------------
    # Contadores
    # ------------------------------------------------------------------

    def season_event_count(self, player_id: int, event_type: Optional[str] = None) -> int:
        """Eventos del jugador en los partidos completados de su equipo (0 si no tiene equipo)."""
        if player_id not in self._season_counts:
            team_id = self.team_for_player(player_id)
            if team_id is None:
                logger.debug(f"Jugador {player_id} sin equipo: agregados de temporada a 0")
                self._season_counts[player_id] = Counter()
            else:
                match_ids = self.completed_match_ids(team_id)
                self._season_counts[player_id] = self._count_by_type(player_id, match_ids)

        return self._pick(self._season_counts[player_id], event_type)

    def career_event_count(self, player_id: int, event_type: Optional[str] = None) -> int:
        """Eventos del jugador en cualquier partido completado, de cualquier equipo."""
        if player_id not in self._career_counts:
            rows = (
                self.db.query(MatchEvent.event_type, func.count(MatchEvent.id))
                .join(Match, Match.id == MatchEvent.match_id)
                .filter(
                    MatchEvent.player_id == player_id,
                    Match.status == MatchStatus.COMPLETED,
                )
                .group_by(MatchEvent.event_type)
                .all()
            )
            self._career_counts[player_id] = Counter({etype: count for etype, count in rows})

        return self._pick(self._career_counts[player_id], event_type)

    def captain_count(self, player_id: int) -> int:
        """Partidos (de siempre, sin filtrar por temporada) en los que fue capitán."""
        if player_id not in self._captain_counts:
            self._captain_counts[player_id] = (
                self.db.query(func.count(MatchPlayer.id))
                .filter(MatchPlayer.player_id == player_id, MatchPlayer.is_captain.is_(True))
                .scalar()
            ) or 0
        return self._captain_counts[player_id]

    # ------------------------------------------------------------------

    def _count_by_type(self, player_id: int, match_ids: list[int]) -> Counter:
        if not match_ids:
            return Counter()

        rows = (
            self.db.query(MatchEvent.event_type, func.count(MatchEvent.id))
            .filter(MatchEvent.player_id == player_id, MatchEvent.match_id.in_(match_ids))
            .group_by(MatchEvent.event_type)
            .all()
        )
        counts = Counter({etype: count for etype, count in rows})
        logger.debug(f"Jugador {player_id}: {sum(counts.values())} eventos de temporada {dict(counts)}")
        return counts

    @staticmethod
    def _pick(counts: Counter, event_type: Optional[str]) -> int:
        if event_type:
            return counts.get(event_type, 0)
        return sum(counts.values())
