import os

# Base de datos en memoria ANTES de importar la app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["SEASON_REWARDS_FILTER_BY_SEASON"] = "False"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import SessionLocal, engine, Base
from app.db.models import _all
from app.db.models.user import User
from app.db.models.team import Team
from app.db.models.player import Player
from app.db.models.team_member import TeamMember
from app.db.models.match import Match, MatchStatus
from app.db.models.match_player import MatchPlayer
from app.db.models.match_event import MatchEvent
from app.db.models.match_award import MatchAward, PLAYER_OF_MATCH
from app.db.models.reward import Reward, PlayerReward, RewardType, CriteriaScope, CriteriaEventType
from app.core.security import create_access_token, hash_password


class Builder:
    """Atajos para montar escenarios de partido en la DB de test."""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def user(self, role="manager", email=None, password="secret"):
        n = self._next()
        user = User(
            email=email or f"{role}{n}@test.com",
            username=f"{role}{n}",
            hashed_password=hash_password(password),
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def team(self, manager=None, season="2025/26", name="Riverside U10"):
        manager = manager or self.user("manager")
        team = Team(name=name, manager_id=manager.id, season=season)
        self.db.add(team)
        self.db.commit()
        return team

    def player(self, team, name=None, squad_number=None, privacy_settings=None):
        n = self._next()
        player = Player(
            team_id=team.id,
            name=name or f"Player {n}",
            squad_number=squad_number,
            privacy_settings=privacy_settings,
        )
        self.db.add(player)
        self.db.commit()
        return player

    def link_parent(self, parent, team, player):
        link = TeamMember(user_id=parent.id, team_id=team.id, player_id=player.id)
        self.db.add(link)
        self.db.commit()
        return link

    def match(
        self,
        team,
        events=(),
        status=MatchStatus.COMPLETED,
        roster=(),
        captains=(),
        potm=None,
        season="__team__",
    ):
        """
        events: [(player, "goal"), ...]
        roster: jugadores convocados (los capitanes y el MVP se añaden solos)
        """
        match = Match(
            team_id=team.id,
            opponent_name=f"Rival {self._next()}",
            match_date=datetime(2025, 10, 1, 10, 0),
            status=status,
            season=team.season if season == "__team__" else season,
        )
        self.db.add(match)
        self.db.commit()

        squad = []
        for p in list(roster) + list(captains) + ([potm] if potm else []):
            if p.id not in [s.id for s in squad]:
                squad.append(p)
        captain_ids = {c.id for c in captains}
        # Los capitanes primero, en el orden recibido
        squad.sort(key=lambda p: [c.id for c in captains].index(p.id) if p.id in captain_ids else len(captains))
        for p in squad:
            self.db.add(MatchPlayer(match_id=match.id, player_id=p.id, is_captain=p.id in captain_ids))
        self.db.commit()

        for p, event_type in events:
            self.db.add(MatchEvent(match_id=match.id, player_id=p.id, event_type=event_type))
        if potm:
            self.db.add(MatchAward(match_id=match.id, player_id=potm.id, award_type=PLAYER_OF_MATCH))
        self.db.commit()
        return match

    def complete(self, match):
        match.status = MatchStatus.COMPLETED
        self.db.commit()
        return match

    def reward(
        self,
        name,
        scope="single_match",
        event_type="goal",
        threshold=1,
        reward_type=None,
        requires=None,
    ):
        if reward_type is None:
            reward_type = {"single_match": "match", "season": "season", "career": "season"}.get(scope, "match")
        reward = Reward(
            name=name,
            description=name,
            icon="🏅",
            reward_type=RewardType(reward_type),
            criteria_scope=CriteriaScope(scope),
            criteria_event_type=CriteriaEventType(event_type) if event_type else None,
            criteria_threshold=threshold,
            metadata_={"requires": requires} if requires else None,
        )
        self.db.add(reward)
        self.db.commit()
        return reward

    def grants(self, player=None):
        self.db.expire_all()
        query = self.db.query(PlayerReward)
        if player is not None:
            query = query.filter(PlayerReward.player_id == player.id)
        return query.order_by(PlayerReward.id).all()


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def build(db):
    return Builder(db)


@pytest.fixture
def client(db):
    from main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}
    return _headers


@pytest.fixture
def failing_rewards():
    """Añade ids de recompensa a este set para que su INSERT falle."""
    failing = set()

    def before_insert(mapper, connection, target):
        if target.reward_id in failing:
            raise SQLAlchemyError("simulated storage failure")

    event.listen(PlayerReward, "before_insert", before_insert)
    yield failing
    event.remove(PlayerReward, "before_insert", before_insert)
