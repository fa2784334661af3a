import random
from datetime import datetime, timedelta

# --- DB & MODELOS ---
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
from app.core.security import hash_password

from app.api.rewards import seed_rewards
from app.services.rewards_service import evaluate_match_rewards

# --- CONFIGURACIÓN ---
SEASON = "2025/26"
NUM_PLAYERS = 12
COMPLETED_MATCHES = 6
EVENT_WEIGHTS = {"goal": 2, "assist": 2, "tackle": 5, "save": 2, "shot": 4}
# ---------------------

PLAYER_NAMES = [
    "Leo", "Mia", "Noah", "Emma", "Lucas", "Olivia", "Hugo", "Sofia",
    "Mateo", "Lola", "Dani", "Vega", "Iker", "Alba", "Pablo", "Nora",
]

def reset_db():
    print("🗑️  Borrando base de datos antigua...")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("✅ Tablas creadas.")

def create_users(db):
    manager = User(email="coach@test.com", username="coach", full_name="Coach Carter",
                   hashed_password=hash_password("123"), role="manager")
    parent = User(email="parent@test.com", username="parent", full_name="Parent One",
                  hashed_password=hash_password("123"), role="parent")
    admin = User(email="admin@test.com", username="admin",
                 hashed_password=hash_password("123"), role="admin")
    db.add_all([manager, parent, admin])
    db.commit()
    return manager, parent

def create_team(db, manager, parent):
    team = Team(name="Riverside U10", age_group="U10", season=SEASON, manager_id=manager.id)
    db.add(team)
    db.commit()

    players = []
    for i, name in enumerate(PLAYER_NAMES[:NUM_PLAYERS]):
        p = Player(team_id=team.id, name=name, squad_number=i + 1,
                   position="GK" if i == 0 else random.choice(["DEF", "MID", "FWD"]))
        db.add(p)
        players.append(p)
    db.commit()

    # La familia sigue al primer jugador de campo
    db.add(TeamMember(user_id=parent.id, team_id=team.id, player_id=players[1].id))
    db.commit()
    return team, players

def simulate_match(db, team, players, index):
    match = Match(
        team_id=team.id,
        opponent_name=f"Rival FC {index + 1}",
        match_date=datetime.now() - timedelta(days=(COMPLETED_MATCHES - index) * 7),
        season=team.season,
        status=MatchStatus.IN_PROGRESS,
    )
    db.add(match)
    db.commit()

    print(f"⚽ Simulando partido contra {match.opponent_name}...")

    # Convocatoria y capitán
    squad = random.sample(players, 9)
    captain = random.choice(squad)
    for p in squad:
        db.add(MatchPlayer(match_id=match.id, player_id=p.id, is_captain=p.id == captain.id))

    # Eventos
    kinds = list(EVENT_WEIGHTS)
    weights = list(EVENT_WEIGHTS.values())
    for _ in range(random.randint(15, 30)):
        p = random.choice(squad)
        db.add(MatchEvent(
            match_id=match.id,
            player_id=p.id,
            event_type=random.choices(kinds, weights)[0],
            period=random.randint(1, 2),
            minute=random.randint(0, 50),
        ))

    match.status = MatchStatus.COMPLETED
    potm = captain if random.random() > 0.6 else random.choice(squad)
    db.add(MatchAward(match_id=match.id, player_id=potm.id, award_type=PLAYER_OF_MATCH))
    db.commit()

    result = evaluate_match_rewards(db, match.id)
    print(f"   🏆 {len(result.new_rewards)} recompensas nuevas, {len(result.errors)} errores")

def main():
    db = SessionLocal()
    try:
        reset_db()
        seed_rewards(db)
        manager, parent = create_users(db)
        team, players = create_team(db, manager, parent)

        for i in range(COMPLETED_MATCHES):
            simulate_match(db, team, players, i)

        db.add(Match(team_id=team.id, opponent_name="Next Opponent",
                     match_date=datetime.now() + timedelta(days=7), season=team.season))
        db.commit()

        print("✅ ¡Simulación completada con éxito!")
    finally:
        db.close()

if __name__ == "__main__":
    main()
