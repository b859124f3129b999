from __future__ import annotations

import json
import os

# Settings читаются при импорте пакета, поэтому окружение задаём до него
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client():
    from devicectl.main import app

    # startup создаёт таблицы, shutdown закрывает коннект и стирает in-memory базу
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def qr_strings() -> list[str]:
    """Строки в том виде, в каком они ушли в QR-код."""
    return []


@pytest.fixture
def qr_payloads(monkeypatch, qr_strings):
    """Собирает всё, что ушло в QR-код, в виде разобранного JSON."""
    from devicectl.api.v1.endpoints import device as device_endpoints
    from devicectl.core.qr import render_qr_data_url

    captured: list[dict] = []

    def recording_render(data: str) -> str:
        qr_strings.append(data)
        captured.append(json.loads(data))
        return render_qr_data_url(data)

    monkeypatch.setattr(device_endpoints, "render_qr_data_url", recording_render)
    return captured


@pytest.fixture
def register_device(client, qr_payloads):
    """Заводит устройство и возвращает токен из его QR-кода."""

    def _register(device_id: str) -> str:
        resp = client.post("/api/devices/generate-qr", json={"deviceId": device_id})
        assert resp.status_code == 200, resp.text
        return qr_payloads[-1]["token"]

    return _register
