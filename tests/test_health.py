# tests/test_health.py
from fastapi import status


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_root_describes_api(client) -> None:
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"].endswith("API")
    assert data["docs"] == "/docs"


def test_startup_installs_auth_context(client, app) -> None:
    assert app.state.auth is not None
    assert not app.state.auth.closed
