from httpx import ASGITransport, AsyncClient
from fastapi import status

from src.lifeline.main import app


async def test_navigation_for_responder():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get(
            "/api/v1/navigation/",
            headers={"X-User-Id": "user-a", "X-User-Role": "responder"},
        )
    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert payload["user_id"] == "user-a"
    assert payload["role"] == "responder"
    assert [item["path"] for item in payload["items"]] == [
        "/dashboard",
        "/emergencies",
        "/medical-ids",
        "/communication",
        "/settings",
    ]


async def test_unknown_role_falls_back_to_responder():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get(
            "/api/v1/navigation/",
            headers={"X-User-Id": "user-a", "X-User-Role": "superuser"},
        )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["role"] == "responder"


async def test_admin_sees_users_page_and_can_open_it():
    headers = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        nav = await ac.get("/api/v1/navigation/", headers=headers)
        users = await ac.get("/api/v1/users/", headers=headers)

    assert "/users" in [item["path"] for item in nav.json()["items"]]
    assert users.status_code == status.HTTP_200_OK
    assert users.json() == []


async def test_pages_outside_navigation_are_refused():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        ambulances = await ac.get(
            "/api/v1/ambulances/",
            headers={"X-User-Id": "user-a", "X-User-Role": "responder"},
        )
        users = await ac.get(
            "/api/v1/users/",
            headers={"X-User-Id": "dispatcher-1", "X-User-Role": "dispatcher"},
        )
    assert ambulances.status_code == status.HTTP_403_FORBIDDEN
    assert users.status_code == status.HTTP_403_FORBIDDEN
    assert users.json()["detail"] == "Not authorized to access this page"
