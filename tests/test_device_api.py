from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from devicectl.api.errors import INTERNAL_ERROR
from devicectl.api.v1.endpoints import device as device_endpoints
from devicectl.core.security import create_enrollment_token


def _status(client, device_id: str) -> str:
    resp = client.get(f"/api/devices/{device_id}")
    assert resp.status_code == 200, resp.text
    return resp.json()["status"]


def test_generate_qr_returns_png_data_url(client, qr_payloads) -> None:
    resp = client.post("/api/devices/generate-qr", json={"deviceId": "D1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["deviceId"] == "D1"
    assert body["qrCodeUrl"].startswith("data:image/png;base64,")
    assert qr_payloads[0]["deviceId"] == "D1"
    assert qr_payloads[0]["token"].count(".") == 2
    assert _status(client, "D1") == "pending"


def test_generate_qr_rejects_duplicate_device(client) -> None:
    first = client.post("/api/devices/generate-qr", json={"deviceId": "D1"})
    second = client.post("/api/devices/generate-qr", json={"deviceId": "D1"})

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json() == {"error": "Device already registered"}


def test_enroll_with_qr_token_activates_device(client, register_device) -> None:
    token = register_device("D1")

    resp = client.post("/api/devices/enroll", json={"deviceId": "D1", "token": token})

    assert resp.status_code == 200
    assert resp.json() == {"message": "Device enrolled successfully"}
    assert _status(client, "D1") == "active"


def test_enroll_twice_stays_active(client, register_device) -> None:
    token = register_device("D1")
    for _ in range(2):
        resp = client.post("/api/devices/enroll", json={"deviceId": "D1", "token": token})
        assert resp.status_code == 200
    assert _status(client, "D1") == "active"


def test_enroll_with_garbage_token(client, register_device) -> None:
    register_device("D1")

    resp = client.post("/api/devices/enroll", json={"deviceId": "D1", "token": "garbage"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid device or token"}
    assert _status(client, "D1") == "pending"


def test_enroll_unknown_device(client) -> None:
    token = create_enrollment_token("GHOST")
    resp = client.post("/api/devices/enroll", json={"deviceId": "GHOST", "token": token})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid device or token"}


def test_token_of_another_device_is_not_accepted(client, register_device) -> None:
    register_device("D1")
    other_token = register_device("D2")

    resp = client.post("/api/devices/enroll", json={"deviceId": "D1", "token": other_token})

    assert resp.status_code == 400
    assert _status(client, "D1") == "pending"


def test_expired_token_is_unauthorized_even_if_stored(client, register_device, monkeypatch) -> None:
    issued_at = datetime.now(timezone.utc) - timedelta(days=31)
    monkeypatch.setattr(
        device_endpoints,
        "create_enrollment_token",
        lambda device_id: create_enrollment_token(device_id, issued_at=issued_at),
    )
    token = register_device("D1")

    resp = client.post("/api/devices/enroll", json={"deviceId": "D1", "token": token})

    assert resp.status_code == 401
    assert resp.json() == {"error": "Token is invalid or expired"}
    assert _status(client, "D1") == "pending"


def test_lock_is_idempotent_and_unlock_reactivates(client, register_device) -> None:
    token = register_device("D1")
    client.post("/api/devices/enroll", json={"deviceId": "D1", "token": token})

    for _ in range(3):
        resp = client.post("/api/devices/lock", json={"deviceId": "D1"})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Device locked successfully"}
        assert _status(client, "D1") == "locked"

    resp = client.post("/api/devices/unlock", json={"deviceId": "D1"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Device unlocked successfully"}
    assert _status(client, "D1") == "active"

    resp = client.post("/api/devices/unlock", json={"deviceId": "D1"})
    assert resp.status_code == 200
    assert _status(client, "D1") == "active"


def test_lock_and_unlock_allowed_from_pending(client, register_device) -> None:
    register_device("D1")

    assert client.post("/api/devices/lock", json={"deviceId": "D1"}).status_code == 200
    assert _status(client, "D1") == "locked"
    assert client.post("/api/devices/unlock", json={"deviceId": "D1"}).status_code == 200
    assert _status(client, "D1") == "active"


def test_locked_device_can_reenroll_with_original_qr(client, register_device) -> None:
    token = register_device("D1")
    client.post("/api/devices/lock", json={"deviceId": "D1"})

    resp = client.post("/api/devices/enroll", json={"deviceId": "D1", "token": token})

    assert resp.status_code == 200
    assert _status(client, "D1") == "active"


@pytest.mark.parametrize("path", ["/api/devices/lock", "/api/devices/unlock"])
def test_lock_unknown_device(client, path: str) -> None:
    resp = client.post(path, json={"deviceId": "NOPE"})

    assert resp.status_code == 404
    assert resp.json() == {"error": "Device not found"}


def test_status_of_unknown_device(client) -> None:
    resp = client.get("/api/devices/NOPE")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Device not found"}


@pytest.mark.parametrize(
    "path, payload, message",
    [
        ("/api/devices/generate-qr", {}, "Please provide a device ID"),
        ("/api/devices/generate-qr", {"deviceId": ""}, "Please provide a device ID"),
        ("/api/devices/enroll", {"deviceId": "D1"}, "Device ID and token are required"),
        ("/api/devices/enroll", {"token": "t"}, "Device ID and token are required"),
        ("/api/devices/lock", {}, "Device ID is required"),
        ("/api/devices/unlock", {"deviceId": ""}, "Device ID is required"),
    ],
)
def test_missing_fields_are_bad_requests(client, path: str, payload: dict, message: str) -> None:
    resp = client.post(path, json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": message}


@pytest.mark.parametrize("path", ["/api/devices/generate-qr", "/api/devices/enroll", "/api/devices/lock"])
def test_non_object_body_is_bad_request(client, path: str) -> None:
    resp = client.post(path, content=b"not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body"}


def test_render_failure_is_internal_error_without_details(client, monkeypatch) -> None:
    def broken_render(data: str) -> str:
        raise RuntimeError("renderer exploded: secret detail")

    monkeypatch.setattr(device_endpoints, "render_qr_data_url", broken_render)

    resp = client.post("/api/devices/generate-qr", json={"deviceId": "D1"})

    assert resp.status_code == 500
    assert resp.json() == {"error": INTERNAL_ERROR}
    assert "secret detail" not in resp.text
    # Устройство не должно остаться полузаведённым
    assert client.get("/api/devices/D1").status_code == 404


def test_tokens_match_compares_exactly() -> None:
    assert device_endpoints.tokens_match("abc", "abc")
    assert not device_endpoints.tokens_match("abc", "abd")
    assert not device_endpoints.tokens_match("abc", "ab")
    assert not device_endpoints.tokens_match("abc", "тест")
