from core.presence_tracker import PresenceTracker
from core.rotation_engine import RotationEngine

ITEM = {
    "name": "Inception",
    "submitted_by": "nolan-fan",
    "clues": ["dreams", "spinning top", "kick"],
    "alternate_names": ["inception", "inception", " Origen "],
}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_current_display_absent_is_structured(client):
    response = client.get("/api/display/current")

    assert response.status_code == 200
    assert response.json()["available"] is False
    assert response.json()["reason"] == "queue_empty"


def test_public_rotate_with_empty_queue(client):
    response = client.post("/api/display/rotate")

    assert response.status_code == 200
    assert response.json() == {"rotated": False, "reason": "queue_empty"}


def test_public_rotate_hides_internal_failures(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("connection pool timeout")

    monkeypatch.setattr(RotationEngine, "rotate_if_needed", staticmethod(boom))

    response = client.post("/api/display/rotate")

    assert response.status_code == 200
    assert response.json()["rotated"] is False
    assert "pool timeout" not in response.text


def test_force_rotate_requires_credentials(client):
    response = client.post("/api/display/force-rotate")

    assert response.status_code == 401
    assert response.json()["detail"]["reason"] == "unauthenticated"


def test_force_rotate_rejects_bad_password(client, admin_auth):
    response = client.post("/api/display/force-rotate", auth=(admin_auth[0], "wrong"))

    assert response.status_code == 401
    assert response.json()["detail"]["reason"] == "unauthenticated"


def test_force_rotate_surfaces_internal_failures(client, admin_auth, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(RotationEngine, "force_rotate", staticmethod(boom))

    response = client.post("/api/display/force-rotate", auth=admin_auth)

    assert response.status_code == 500
    assert response.json()["detail"]["message"] == "store unavailable"


def test_enqueue_requires_admin(client):
    assert client.post("/api/queue", json=ITEM).status_code == 401


def test_enqueue_promotes_immediately_when_display_empty(client, admin_auth):
    response = client.post("/api/queue", json=ITEM, auth=admin_auth)

    assert response.status_code == 201
    assert response.json()["alternate_names"] == ["inception", "Origen"]

    current = client.get("/api/display/current").json()
    assert current["available"] is True
    assert current["name"] == "Inception"
    assert current["source_id"] == response.json()["id"]
    assert client.get("/api/queue", auth=admin_auth).json() == []


def test_enqueue_keeps_item_queued_while_display_valid(client, admin_auth):
    client.post("/api/queue", json=ITEM, auth=admin_auth)
    client.post("/api/queue", json={**ITEM, "name": "Memento"}, auth=admin_auth)

    assert client.get("/api/display/current").json()["name"] == "Inception"
    assert [e["name"] for e in client.get("/api/queue", auth=admin_auth).json()] == ["Memento"]
    assert client.post("/api/display/rotate").json() == {"rotated": False, "reason": "not_expired"}


def test_force_rotate_archives_current(client, admin_auth):
    client.post("/api/queue", json=ITEM, auth=admin_auth)
    client.post("/api/queue", json={**ITEM, "name": "Memento"}, auth=admin_auth)

    response = client.post("/api/display/force-rotate", auth=admin_auth)

    assert response.json() == {"rotated": True, "reason": "rotated"}
    assert client.get("/api/display/current").json()["name"] == "Memento"
    archive = client.get("/api/archive").json()
    assert [entry["name"] for entry in archive] == ["Inception"]


def test_enqueue_validates_clue_count(client, admin_auth):
    too_few = {**ITEM, "clues": ["one", "two"]}
    too_many = {**ITEM, "clues": [str(i) for i in range(11)]}

    assert client.post("/api/queue", json=too_few, auth=admin_auth).status_code == 422
    assert client.post("/api/queue", json=too_many, auth=admin_auth).status_code == 422


def test_submit_solution_is_idempotent_per_participant(client):
    first = client.post("/api/stats/solutions", json={"discriminator": 1, "participant_id": "p1"})
    again = client.post("/api/stats/solutions", json={"discriminator": 2, "participant_id": "p1"})
    other = client.post("/api/stats/solutions", json={"discriminator": 1, "participant_id": "p2"})

    assert first.json() == {"accepted": True}
    assert again.json() == {"accepted": False}
    assert other.json() == {"accepted": True}
    assert client.get("/api/stats/counters").json() == {"counters": {"1": 2}}


def test_submit_solution_falls_back_to_client_address(client):
    assert client.post("/api/stats/solutions", json={"discriminator": 0}).json()["accepted"] is True
    assert client.post("/api/stats/solutions", json={"discriminator": 0}).json()["accepted"] is False


def test_ping_and_live_count(client):
    assert client.post("/api/presence/ping", json={"participant_id": "p1"}).json() == {"success": True}
    assert client.post("/api/presence/ping").json() == {"success": True}

    response = client.get("/api/presence/live").json()
    assert response["live"] == 2
    assert response["threshold_seconds"] == 600


def test_ping_failure_is_soft(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(PresenceTracker, "ping", staticmethod(boom))

    response = client.post("/api/presence/ping", json={"participant_id": "p1"})

    assert response.status_code == 200
    assert response.json() == {"success": False}


def test_current_display_absent_with_pending_queue_has_no_reason(client, admin_auth, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    # on-enqueue 輪替失敗被吸收，項目留在佇列中
    monkeypatch.setattr(RotationEngine, "rotate_if_needed", staticmethod(boom))
    assert client.post("/api/queue", json=ITEM, auth=admin_auth).status_code == 201

    current = client.get("/api/display/current").json()

    assert current["available"] is False
    assert current["reason"] is None
    assert [e["name"] for e in client.get("/api/queue", auth=admin_auth).json()] == ["Inception"]


def test_archive_listing_returns_whole_item(client, admin_auth):
    payload = {**ITEM, "created_at": "2024-02-01T08:00:00Z", "approved_at": "2024-02-02T09:30:00Z"}
    client.post("/api/queue", json=payload, auth=admin_auth)
    client.post("/api/display/force-rotate", auth=admin_auth)

    entry = client.get("/api/archive").json()[0]

    assert entry["name"] == "Inception"
    assert entry["clues"] == ITEM["clues"]
    assert entry["created_at"].startswith("2024-02-01T08:00:00")
    assert entry["approved_at"].startswith("2024-02-02T09:30:00")
    assert entry["displayed_at"] is not None
