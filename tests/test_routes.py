def _publish(client, round_id="duel-1", **fields):
    payload = {"actor_id": "p2", "move_id": "strike", "move_name": "Strike", "log_lines": ["P2 strikes."]}
    payload.update(fields)
    return client.post(f"/battle/rounds/{round_id}/moves", json=payload)


def test_publish_then_poll_then_mark(client):
    resp = _publish(client)
    assert resp.status_code == 201
    record_id = resp.get_json()["id"]

    moves = client.get("/battle/rounds/duel-1/moves?self=p1").get_json()["moves"]
    assert [m["id"] for m in moves] == [record_id]
    assert moves[0]["log_lines"] == ["P2 strikes."]
    assert client.get("/battle/rounds/duel-1/moves?self=p2").get_json()["moves"] == []

    resp = client.post(f"/battle/moves/{record_id}/processed", json={"self": "p1"})
    assert resp.status_code == 200
    assert client.get("/battle/rounds/duel-1/moves?self=p1").get_json()["moves"] == []


def test_poll_returns_records_in_timestamp_order(client):
    _publish(client, move_name="second", timestamp=20.0)
    _publish(client, move_name="first", timestamp=10.0)
    moves = client.get("/battle/rounds/duel-1/moves?self=p1").get_json()["moves"]
    assert [m["move_name"] for m in moves] == ["first", "second"]


def test_bad_requests(client):
    assert client.post("/battle/rounds/duel-1/moves", json={"move_id": "x"}).status_code == 400
    assert client.get("/battle/rounds/duel-1/moves").status_code == 400
    assert client.post("/battle/moves/abc/processed", json={}).status_code == 400
    assert client.post("/battle/moves/abc/processed", json={"self": "p1"}).status_code == 404


def test_duplicate_record_id_conflicts(client):
    assert _publish(client, id="fixed").status_code == 201
    assert _publish(client, id="fixed").status_code == 409


def test_move_lookup(client):
    body = client.get("/battle/moves/ember_lash").get_json()
    assert body["name"] == "Ember Lash"
    assert body["damage"] == 10
    assert body["status_effects"][0]["type"] == "burn"
    assert client.get("/battle/moves/no_such_move").status_code == 404


def test_override_lifecycle(client):
    resp = client.put("/battle/overrides/flameburst", json={"name": "Blue Flame", "damage": {"min": 5, "max": 9}})
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Blue Flame"

    body = client.get("/battle/moves/flameburst").get_json()
    assert body["damage"] == {"min": 5, "max": 9}

    assert client.delete("/battle/overrides/flameburst").status_code == 204
    body = client.get("/battle/moves/flameburst").get_json()
    assert body["name"] == "Flameburst"
    assert body["damage"] == {"min": 28, "max": 36}
    assert client.delete("/battle/overrides/flameburst").status_code == 404


def test_override_must_be_an_object(client):
    assert client.put("/battle/overrides/mend", json=["nope"]).status_code == 400
