"""End-to-end API tests over SQLite with an injected clock."""

from datetime import datetime, timedelta

import pytest

API = "/api/v1"


def _register(client, headers, code, fingerprint="fp-1", **extra):
    body = {"code": code, "fingerprint": fingerprint, "platform": "webos", "screenResolution": "1920x1080"}
    body.update(extra)
    return client.post(f"{API}/devices/register", json=body, headers=headers)


@pytest.fixture
def paired(client, owner, fixed_codes):
    """A device paired under the owner account with code AB12CD."""
    _, headers = owner
    fixed_codes("AB12CD")
    r = client.post(f"{API}/pairing-codes", json={"screenName": "Lobby", "deviceType": "tv"}, headers=headers)
    assert r.status_code == 201, r.text
    r = _register(client, headers, "AB12CD")
    assert r.status_code == 200, r.text
    data = r.json()
    return data["device"]["id"], {"Authorization": f"Bearer {data['deviceToken']}"}


def test_ping_needs_no_auth(client):
    assert client.get(f"{API}/system/ping").json() == {"status": "ok"}


def test_requires_authentication(client):
    assert client.post(f"{API}/pairing-codes", json={"screenName": "x"}).status_code == 401
    r = client.get(f"{API}/devices", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401


def test_login_rejects_bad_password(client, owner):
    r = client.post(f"{API}/auth/login", json={"email": "owner@example.com", "password": "nope"})
    assert r.status_code == 401


def test_generate_code(client, owner, clock):
    _, headers = owner
    r = client.post(f"{API}/pairing-codes", json={"screenName": "Lobby", "deviceType": "tv"}, headers=headers)
    assert r.status_code == 201
    data = r.json()
    assert len(data["code"]) == 6
    assert datetime.fromisoformat(data["expiresAt"]) - clock.now == timedelta(minutes=15)


def test_pairing_scenario(client, owner, paired, clock):
    _, headers = owner
    device_id, device_headers = paired

    r = client.get(f"{API}/devices/{device_id}", headers=headers)
    device = r.json()["device"]
    assert device["status"] == "online"
    assert device["name"] == "Lobby"
    assert device["deviceType"] == "tv"

    clock.advance(seconds=20)
    r = client.post(
        f"{API}/devices/{device_id}/heartbeat",
        json={"status": "playing", "progress": 42, "currentItem": "media_1", "performanceMetrics": {"fps": 60}},
        headers=device_headers,
    )
    assert r.status_code == 200, r.text
    assert datetime.fromisoformat(r.json()["serverTime"]) == clock.now

    device = client.get(f"{API}/devices/{device_id}", headers=headers).json()["device"]
    assert device["status"] == "playing"
    assert device["playbackProgress"] == 42
    assert datetime.fromisoformat(device["lastSeen"]) == clock.now

    r = _register(client, headers, "AB12CD")
    assert r.status_code == 200
    assert r.json()["device"]["id"] == device_id
    assert len(client.get(f"{API}/devices", headers=headers).json()["devices"]) == 1


def test_claim_after_expiry(client, owner, fixed_codes, clock):
    _, headers = owner
    fixed_codes("EXP123")
    client.post(f"{API}/pairing-codes", json={"screenName": "Lobby"}, headers=headers)
    clock.advance(minutes=15, seconds=1)
    r = _register(client, headers, "EXP123")
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_or_expired_code"


def test_claim_from_other_account(client, paired, other):
    _, other_headers = other
    r = _register(client, other_headers, "AB12CD")
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_or_expired_code"


def test_third_party_fingerprint_rejected(client, owner, paired):
    _, headers = owner
    r = _register(client, headers, "AB12CD", fingerprint="fp-other")
    assert r.status_code == 400


def test_register_requires_fingerprint(client, owner, paired):
    _, headers = owner
    r = client.post(f"{API}/devices/register", json={"code": "AB12CD"}, headers=headers)
    assert r.status_code == 422
    r = _register(client, headers, "AB12CD", fingerprint="")
    assert r.status_code == 422


def test_register_refuses_repair_code(client, owner, paired, fixed_codes):
    _, headers = owner
    device_id, _ = paired
    fixed_codes("RP1234")
    assert client.post(f"{API}/devices/{device_id}/repair", headers=headers).status_code == 200

    r = _register(client, headers, "RP1234", fingerprint="fp-anybody")
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_or_expired_code"


def test_code_generation_exhausted(client, owner, fixed_codes):
    _, headers = owner
    fixed_codes(*["ZZ9999"] * 11)
    body = {"screenName": "Lobby"}
    assert client.post(f"{API}/pairing-codes", json=body, headers=headers).status_code == 201

    r = client.post(f"{API}/pairing-codes", json=body, headers=headers)
    assert r.status_code == 503
    assert r.json()["detail"]["error"] == "generation_exhausted"


def test_pairing_status_and_completion(client, owner, paired):
    _, headers = owner
    device_id, _ = paired

    status = client.get(f"{API}/pairing-codes/ab12cd", headers=headers).json()
    assert status["claimed"] is True
    assert status["completed"] is False
    assert status["device"]["id"] == device_id

    r = client.post(
        f"{API}/devices/complete-pairing",
        json={"pairingCode": "AB12CD", "screenName": "Front Window"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["device"]["name"] == "Front Window"
    assert client.get(f"{API}/pairing-codes/AB12CD", headers=headers).json()["completed"] is True


def test_device_goes_offline_when_silent(client, owner, paired, clock):
    _, headers = owner
    device_id, device_headers = paired
    client.post(f"{API}/devices/{device_id}/heartbeat", json={"status": "playing"}, headers=device_headers)

    clock.advance(seconds=91)
    device = client.get(f"{API}/devices/{device_id}", headers=headers).json()["device"]
    assert device["status"] == "offline"

    stale = client.get(f"{API}/devices?stale_only=true", headers=headers).json()
    assert [d["id"] for d in stale["devices"]] == [device_id]


def test_heartbeat_token_scoping(client, paired, other):
    device_id, _ = paired
    _, other_headers = other
    r = client.post(f"{API}/devices/{device_id}/heartbeat", json={"status": "online"}, headers=other_headers)
    assert r.status_code == 403
    r = client.post(f"{API}/devices/{device_id}/heartbeat", json={"status": "online"})
    assert r.status_code == 401


def test_heartbeat_rejects_unknown_status(client, paired):
    device_id, device_headers = paired
    r = client.post(f"{API}/devices/{device_id}/heartbeat", json={"status": "dancing"}, headers=device_headers)
    assert r.status_code == 422


def test_control_flow(client, owner, paired, make_playlist):
    account_id, headers = owner
    device_id, device_headers = paired

    r = client.post(f"{API}/devices/{device_id}/control", json={"action": "play"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "no_playlist_assigned"

    playlist_id = make_playlist(account_id)
    r = client.post(f"{API}/devices/{device_id}/assign-playlist", json={"playlistId": playlist_id}, headers=headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Playlist assigned successfully"

    r = client.post(f"{API}/devices/{device_id}/control", json={"action": "play"}, headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()["device"]
    assert body["id"] == device_id
    assert body["playlist_status"] == "playing"
    assert body["last_control_action"] == "play"
    assert body["last_control_time"] is not None

    assignment = client.get(f"{API}/devices/{device_id}/playlist", headers=device_headers).json()
    assert assignment == {
        "playlistId": playlist_id,
        "playlistStatus": "playing",
        "lastControlAction": "play",
        "lastControlTime": body["last_control_time"],
    }

    device = client.get(f"{API}/devices/{device_id}", headers=headers).json()["device"]
    assert device["commandPending"] is True
    client.post(f"{API}/devices/{device_id}/heartbeat", json={"status": "playing"}, headers=device_headers)
    device = client.get(f"{API}/devices/{device_id}", headers=headers).json()["device"]
    assert device["commandPending"] is False

    r = client.post(f"{API}/devices/{device_id}/assign-playlist", json={"playlistId": None}, headers=headers)
    assert r.status_code == 200
    device = client.get(f"{API}/devices/{device_id}", headers=headers).json()["device"]
    assert device["assignedPlaylistId"] is None
    assert device["playlistStatus"] == "none"


@pytest.mark.parametrize("action", ["play", "pause", "stop", "restart"])
def test_control_offline_device(client, owner, paired, make_playlist, clock, action):
    account_id, headers = owner
    device_id, _ = paired
    client.post(
        f"{API}/devices/{device_id}/assign-playlist",
        json={"playlistId": make_playlist(account_id)},
        headers=headers,
    )
    clock.advance(minutes=5)
    r = client.post(f"{API}/devices/{device_id}/control", json={"action": action}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "device_not_online"


def test_control_rejects_unknown_action(client, owner, paired):
    _, headers = owner
    device_id, _ = paired
    r = client.post(f"{API}/devices/{device_id}/control", json={"action": "rewind"}, headers=headers)
    assert r.status_code == 400


def test_control_unknown_action_from_non_owner(client, paired, other):
    _, other_headers = other
    device_id, _ = paired
    r = client.post(f"{API}/devices/{device_id}/control", json={"action": "rewind"}, headers=other_headers)
    assert r.status_code == 403


def test_ownership_errors(client, paired, other, make_playlist, owner):
    device_id, _ = paired
    other_id, other_headers = other
    _, headers = owner

    assert client.get(f"{API}/devices/{device_id}", headers=other_headers).status_code == 403
    assert client.get(f"{API}/devices/dev_missing", headers=headers).status_code == 404

    foreign = make_playlist(other_id)
    r = client.post(f"{API}/devices/{device_id}/assign-playlist", json={"playlistId": foreign}, headers=headers)
    assert r.status_code == 403
    r = client.post(f"{API}/devices/{device_id}/assign-playlist", json={"playlistId": "pls_missing"}, headers=headers)
    assert r.status_code == 404


def test_repair_flow(client, owner, paired, fixed_codes):
    _, headers = owner
    device_id, _ = paired

    fixed_codes("RP1234")
    r = client.post(f"{API}/devices/{device_id}/repair", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["pairingCode"] == "RP1234"

    r = client.post(
        f"{API}/devices/{device_id}/complete-repair",
        json={"pairingCode": "RP1234", "fingerprint": "fp-reinstalled"},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["device"]["id"] == device_id
    assert r.json()["device"]["status"] == "online"
    assert len(client.get(f"{API}/devices", headers=headers).json()["devices"]) == 1


def test_complete_repair_wrong_code(client, owner, paired):
    _, headers = owner
    device_id, _ = paired
    r = client.post(f"{API}/devices/{device_id}/complete-repair", json={"pairingCode": "AB12CD"}, headers=headers)
    assert r.status_code == 400


def test_delete_device(client, owner, paired):
    _, headers = owner
    device_id, device_headers = paired
    client.post(f"{API}/devices/{device_id}/heartbeat", json={"status": "online"}, headers=device_headers)
    assert len(client.get(f"{API}/devices/{device_id}/heartbeats", headers=headers).json()["heartbeats"]) == 1

    assert client.delete(f"{API}/devices/{device_id}", headers=headers).status_code == 204
    assert client.get(f"{API}/devices/{device_id}", headers=headers).status_code == 404
    assert _register(client, headers, "AB12CD").status_code == 400
