from datetime import datetime, timezone

import pytest


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_create_returns_full_record(client):
    now = datetime.now(timezone.utc)
    start = now.replace(microsecond=now.microsecond - now.microsecond % 1000)

    resp = client.post("/chat", json={"from": "alice", "to": "bob", "msg": "hi"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["from"] == "alice"
    assert body["to"] == "bob"
    assert body["msg"] == "hi"
    assert body["id"]
    assert parse_ts(body["timestamp"]) >= start


def test_create_ignores_client_timestamp(client):
    resp = client.post(
        "/chat",
        json={"from": "a", "to": "b", "msg": "m", "timestamp": "2000-01-01T00:00:00Z"},
    )
    assert resp.status_code == 201
    assert parse_ts(resp.json()["timestamp"]).year > 2000


@pytest.mark.parametrize(
    "payload",
    [
        {"to": "bob", "msg": "hi"},
        {"from": "alice", "msg": "hi"},
        {"from": "alice", "to": "bob"},
        {"from": "", "to": "bob", "msg": "hi"},
        {"from": "alice", "to": "bob", "msg": ""},
        {"from": "alice", "to": None, "msg": "hi"},
        {"from": 0, "to": "bob", "msg": "hi"},
        {"from": "alice", "to": "bob", "msg": False},
        {},
    ],
)
def test_create_missing_field_is_rejected(client, payload):
    resp = client.post("/chat", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "from, to, msg required"}
    assert client.get("/chat").json() == []


def test_create_stores_truthy_scalars_as_text(client):
    resp = client.post("/chat", json={"from": 5, "to": 2.0, "msg": True})

    assert resp.status_code == 201
    body = resp.json()
    assert (body["from"], body["to"], body["msg"]) == ("5", "2", "true")
    assert client.get("/chat/5").json() == [body]


def test_create_with_invalid_json_is_rejected(client):
    resp = client.post(
        "/chat", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert client.get("/chat").json() == []


def test_list_empty(client):
    resp = client.get("/chat")
    assert resp.status_code == 200
    assert resp.json() == []


def test_list_is_ordered_and_stable(client, post_message):
    created = [post_message("u%d" % i, "v", "msg %d" % i) for i in range(5)]

    first = client.get("/chat").json()
    second = client.get("/chat").json()

    assert first == second
    assert [m["id"] for m in first] == [m["id"] for m in created]
    stamps = [parse_ts(m["timestamp"]) for m in first]
    assert stamps == sorted(stamps)


def test_list_by_user_matches_sender_or_recipient(client, post_message):
    sent = post_message("alice", "bob", "one")
    received = post_message("carol", "alice", "two")
    post_message("bob", "carol", "three")

    resp = client.get("/chat/alice")

    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()] == [sent["id"], received["id"]]


def test_list_by_user_with_slash_in_name(client, post_message):
    created = post_message("a/b", "c", "m")
    post_message("a", "b", "other")

    resp = client.get("/chat/a%2Fb")

    assert resp.status_code == 200
    assert resp.json() == [created]


def test_id_lookup_still_wins_over_user_listing(client, post_message):
    created = post_message("alice", "bob", "hi")

    assert client.get(f"/chat/id/{created['id']}").json() == created


def test_list_by_unknown_user_is_empty(client, post_message):
    post_message("alice", "bob", "hi")

    resp = client.get("/chat/nobody")

    assert resp.status_code == 200
    assert resp.json() == []


def test_get_by_id_round_trip(client, post_message):
    created = post_message("alice", "bob", "hi")

    resp = client.get(f"/chat/id/{created['id']}")

    assert resp.status_code == 200
    assert resp.json() == created


def test_get_unknown_id_is_404(client):
    resp = client.get("/chat/id/0123456789abcdef01234567")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Message not found"}


def test_malformed_id_surfaces_as_server_error(client):
    # malformed ids are not distinguished from other store failures
    assert client.get("/chat/id/not-an-id").status_code == 500
    resp = client.delete("/chat/not-an-id")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error"}


def test_delete_then_get_and_delete_again(client, post_message):
    created = post_message("alice", "bob", "bye")

    resp = client.delete(f"/chat/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "deleted": created}

    assert client.get(f"/chat/id/{created['id']}").status_code == 404
    again = client.delete(f"/chat/{created['id']}")
    assert again.status_code == 404
    assert again.json() == {"error": "Message not found"}


def test_alice_bob_scenario(client):
    created = client.post("/chat", json={"from": "alice", "to": "bob", "msg": "hi"})
    assert created.status_code == 201
    message = created.json()

    listing = client.get("/chat/alice")
    assert listing.status_code == 200
    assert listing.json() == [message]

    deleted = client.delete(f"/chat/{message['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True
    assert deleted.json()["deleted"] == message

    assert client.get(f"/chat/id/{message['id']}").status_code == 404
    assert client.get("/chat").json() == []


@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/nope"),
        ("POST", "/nope/deeper"),
        ("PUT", "/chat"),
        ("PATCH", "/chat/alice"),
        ("POST", "/chat/id/0123456789abcdef01234567"),
        ("DELETE", "/chat"),
    ],
)
def test_unknown_route_is_404(client, method, path):
    resp = client.request(method, path)

    assert resp.status_code == 404
    assert resp.json() == {"error": "Route not found"}


@pytest.mark.parametrize("path", ["/", "/cors-test", "/chat", "/chat/alice", "/health/live"])
def test_head_is_answered_on_read_routes(client, path):
    resp = client.head(path)

    assert resp.status_code == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
