from app.api.rewards import REWARD_DEFINITIONS, seed_rewards
from app.services.rewards_service import evaluate_match_rewards


# -----------------------
# Equipos y familias
# -----------------------
def test_manager_builds_team_and_links_parent(client, build, auth):
    manager = build.user("manager")
    parent = build.user("parent", email="family@club.org")

    r = client.post("/teams/", headers=auth(manager), json={"name": "Riverside U10", "season": "2025/26"})
    assert r.status_code == 201
    team_id = r.json()["id"]

    r = client.post(f"/teams/{team_id}/players", headers=auth(manager), json={"name": "Leo", "squad_number": 9})
    assert r.status_code == 201
    player_id = r.json()["id"]

    r = client.post(f"/teams/{team_id}/players/{player_id}/parents", headers=auth(manager),
                    json={"email": "family@club.org"})
    assert r.status_code == 201
    r = client.post(f"/teams/{team_id}/players/{player_id}/parents", headers=auth(manager),
                    json={"email": "family@club.org"})
    assert r.status_code == 409

    teams = client.get("/teams/", headers=auth(parent)).json()
    assert [t["id"] for t in teams] == [team_id]


def test_parent_cannot_create_team(client, build, auth):
    parent = build.user("parent")
    r = client.post("/teams/", headers=auth(parent), json={"name": "Nope"})
    assert r.status_code == 403


# -----------------------
# Recompensas de un jugador
# -----------------------
def test_player_rewards_with_progress(client, db, build, auth):
    manager = build.user("manager")
    team = build.team(manager)
    p = build.player(team)
    parent = build.user("parent")
    build.link_parent(parent, team, p)
    first_goal = build.reward("First Goal")
    goal_machine = build.reward("Goal Machine", scope="season", threshold=10)
    match = build.match(team, events=[(p, "goal")] * 2)
    evaluate_match_rewards(db, match.id)

    r = client.get(f"/teams/{team.id}/players/{p.id}/rewards", headers=auth(parent))
    assert r.status_code == 200
    body = r.json()

    by_name = {reward["name"]: reward for reward in body["rewards"]}
    assert by_name["First Goal"]["is_earned"] is True
    assert by_name["First Goal"]["earned_at"] is not None
    assert by_name["Goal Machine"]["is_earned"] is False
    assert by_name["Goal Machine"]["progress"] == 2
    assert by_name["Goal Machine"]["progress_total"] == 10

    earned = body["earned_rewards"]
    assert [g["reward_id"] for g in earned] == [first_goal.id]
    assert goal_machine.id not in [g["reward_id"] for g in earned]


def test_player_rewards_respect_privacy(client, build, auth):
    manager = build.user("manager")
    team = build.team(manager)
    p = build.player(team, privacy_settings={"show_awards": False})
    parent = build.user("parent")
    build.link_parent(parent, team, p)

    assert client.get(f"/teams/{team.id}/players/{p.id}/rewards", headers=auth(parent)).status_code == 403
    assert client.get(f"/teams/{team.id}/players/{p.id}/rewards", headers=auth(manager)).status_code == 200


def test_parent_of_another_player(client, build, auth):
    manager = build.user("manager")
    team = build.team(manager)
    mine = build.player(team)
    other = build.player(team)
    parent = build.user("parent")
    build.link_parent(parent, team, mine)

    r = client.get(f"/teams/{team.id}/players/{other.id}/rewards", headers=auth(parent))
    assert r.status_code == 403


def test_leaderboard(client, db, build, auth):
    manager = build.user("manager")
    team = build.team(manager)
    top = build.player(team, squad_number=10)
    low = build.player(team, squad_number=1)
    idle = build.player(team, squad_number=5)
    build.reward("First Goal")
    build.reward("Playmaker", event_type="assist")
    build.reward("Captain", scope="special", event_type=None, reward_type="leadership",
                 requires={"captain_count": 1})
    match = build.match(team, events=[(top, "goal"), (top, "assist"), (low, "goal")], captains=[low])
    evaluate_match_rewards(db, match.id)

    r = client.get(f"/teams/{team.id}/rewards/leaderboard", headers=auth(manager))
    assert r.status_code == 200
    board = r.json()["leaderboard"]

    # Empate a 2 entre top y low: desempata el dorsal
    assert [e["player_id"] for e in board] == [low.id, top.id, idle.id]
    assert board[0]["leadership_rewards"] == 1
    assert board[1]["match_rewards"] == 2
    assert board[2]["total_rewards"] == 0


def test_catalog_requires_team_access(client, build, auth):
    team = build.team()
    stranger = build.user("parent")
    build.reward("First Goal")

    assert client.get(f"/teams/{team.id}/rewards", headers=auth(stranger)).status_code == 403


# -----------------------
# Admin
# -----------------------
def test_admin_only(client, build, auth):
    manager = build.user("manager")
    assert client.get("/admin/rewards", headers=auth(manager)).status_code == 403


def test_admin_reward_crud(client, build, auth):
    admin = build.user("admin")
    payload = {
        "name": "Sharpshooter",
        "description": "Score 4 goals in a match.",
        "reward_type": "match",
        "criteria_scope": "single_match",
        "criteria_event_type": "goal",
        "criteria_threshold": 4,
        "icon": "🎯",
    }

    r = client.post("/admin/rewards", headers=auth(admin), json=payload)
    assert r.status_code == 201
    reward_id = r.json()["id"]

    assert client.post("/admin/rewards", headers=auth(admin), json=payload).status_code == 409

    r = client.patch(f"/admin/rewards/{reward_id}", headers=auth(admin), json={"criteria_threshold": 5})
    assert r.status_code == 200
    assert r.json()["criteria_threshold"] == 5

    r = client.patch(f"/admin/rewards/{reward_id}", headers=auth(admin), json={"criteria_event_type": None})
    assert r.status_code == 400

    assert client.delete(f"/admin/rewards/{reward_id}", headers=auth(admin)).status_code == 200


def test_admin_requires_event_type_outside_special(client, build, auth):
    admin = build.user("admin")
    r = client.post("/admin/rewards", headers=auth(admin), json={
        "name": "Broken",
        "description": "No event type",
        "reward_type": "season",
        "criteria_scope": "season",
        "criteria_threshold": 3,
    })
    assert r.status_code == 422


def test_admin_leadership_reward_without_event_type(client, build, auth):
    admin = build.user("admin")
    r = client.post("/admin/rewards", headers=auth(admin), json={
        "name": "Veteran Captain",
        "description": "Captain 5 times.",
        "reward_type": "leadership",
        "criteria_scope": "special",
        "criteria_threshold": 5,
        "metadata": {"requires": {"captain_count": 5, "grant_scope": "cumulative"}},
    })
    assert r.status_code == 201
    assert r.json()["metadata"] == {"requires": {"captain_count": 5, "grant_scope": "cumulative"}}


def test_granted_reward_cannot_be_deleted(client, db, build, auth):
    admin = build.user("admin")
    team = build.team()
    p = build.player(team)
    reward = build.reward("First Goal")
    match = build.match(team, events=[(p, "goal")])
    evaluate_match_rewards(db, match.id)

    r = client.delete(f"/admin/rewards/{reward.id}", headers=auth(admin))
    assert r.status_code == 409


def test_seed_catalog_is_idempotent(client, db, build, auth):
    admin = build.user("admin")

    r = client.post("/admin/rewards/seed", headers=auth(admin))
    assert r.json()["created"] == len(REWARD_DEFINITIONS)
    assert seed_rewards(db) == 0
