"""Tests for community endpoints."""

from fastapi import status

from devhub.core.settings import settings
from devhub.models import Community


def test_create_community(client, test_user) -> None:
    response = client.post(
        "/api/v1/communities/",
        json={"name": "Rustaceans", "description": "Memory safety", "topics": ["rust"]},
        headers=test_user.headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["members_count"] == 1
    assert data["creator"]["username"] == "alice"
    assert data["membership"] == {
        "is_member": True,
        "role": "owner",
        "is_creator": True,
        "affordance": "manage",
    }
    assert data["can_delete"] is True


def test_create_duplicate_community(client, test_user, test_community) -> None:
    response = client.post(
        "/api/v1/communities/", json={"name": "PYTHONISTAS"}, headers=test_user.headers
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert "already exists" in response.json()["detail"]


def test_community_creation_limit(client, test_user, monkeypatch) -> None:
    monkeypatch.setattr(settings, "community_creation_limit", 1)
    first = client.post("/api/v1/communities/", json={"name": "One"}, headers=test_user.headers)
    second = client.post("/api/v1/communities/", json={"name": "Two"}, headers=test_user.headers)

    assert first.status_code == status.HTTP_201_CREATED
    assert second.status_code == status.HTTP_429_TOO_MANY_REQUESTS


def test_get_nonexistent_community(client) -> None:
    response = client.get("/api/v1/communities/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_unauthenticated_join_is_rejected(client, db_session, test_community) -> None:
    response = client.put(f"/api/v1/communities/{test_community.id}/membership")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Authentication required"
    assert db_session.get(Community, test_community.id).members_count == 1


def test_join_and_leave(client, test_community, other_user) -> None:
    url = f"/api/v1/communities/{test_community.id}/membership"

    joined = client.put(url, headers=other_user.headers).json()
    assert (joined["active"], joined["changed"], joined["count"]) == (True, True, 2)

    again = client.put(url, headers=other_user.headers).json()
    assert (again["changed"], again["count"]) == (False, 2)

    membership = client.get(url, headers=other_user.headers).json()
    assert membership["role"] == "member"
    assert membership["affordance"] == "leave"

    left = client.delete(url, headers=other_user.headers).json()
    assert (left["active"], left["count"]) == (False, 1)

    anonymous = client.get(url).json()
    assert anonymous["is_member"] is False
    assert anonymous["affordance"] == "join"


def test_creator_cannot_leave(client, test_community, test_user) -> None:
    response = client.delete(
        f"/api/v1/communities/{test_community.id}/membership", headers=test_user.headers
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_members_listing_and_roles(client, test_community, test_user, other_user, third_user) -> None:
    base = f"/api/v1/communities/{test_community.id}"
    client.put(f"{base}/membership", headers=other_user.headers)
    client.put(f"{base}/membership", headers=third_user.headers)

    response = client.put(
        f"{base}/members/{third_user.id}/role", json={"role": "moderator"}, headers=test_user.headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["role"] == "moderator"

    members = client.get(f"{base}/members").json()
    assert [m["user_id"] for m in members] == [test_user.id, third_user.id, other_user.id]
    assert [m["role"] for m in members] == ["owner", "moderator", "member"]

    owner_grab = client.put(
        f"{base}/members/{other_user.id}/role", json={"role": "owner"}, headers=test_user.headers
    )
    assert owner_grab.status_code == 422

    not_owner = client.put(
        f"{base}/members/{other_user.id}/role", json={"role": "admin"}, headers=third_user.headers
    )
    assert not_owner.status_code == status.HTTP_403_FORBIDDEN


def test_ban_and_unban(client, test_community, test_user, other_user) -> None:
    base = f"/api/v1/communities/{test_community.id}"
    client.put(f"{base}/membership", headers=other_user.headers)

    response = client.put(
        f"{base}/bans/{other_user.id}", json={"reason": "spam"}, headers=test_user.headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["reason"] == "spam"
    assert client.get(base).json()["members_count"] == 1

    rejoin = client.put(f"{base}/membership", headers=other_user.headers)
    assert rejoin.status_code == status.HTTP_403_FORBIDDEN

    bans = client.get(f"{base}/bans", headers=test_user.headers).json()
    assert [b["user_id"] for b in bans] == [other_user.id]
    assert client.get(f"{base}/bans", headers=other_user.headers).status_code == 403

    unban = client.delete(f"{base}/bans/{other_user.id}", headers=test_user.headers)
    assert unban.status_code == status.HTTP_204_NO_CONTENT
    assert client.put(f"{base}/membership", headers=other_user.headers).json()["active"] is True


def test_list_communities_largest_first(client, db_session, test_user, other_user, test_community) -> None:
    small = client.post(
        "/api/v1/communities/", json={"name": "Tiny"}, headers=other_user.headers
    ).json()
    client.put(f"/api/v1/communities/{test_community.id}/membership", headers=other_user.headers)

    listed = client.get("/api/v1/communities/").json()
    assert [c["id"] for c in listed] == [test_community.id, small["id"]]
    assert listed[0]["members_count"] == 2


def test_posts(client, test_community, test_user, other_user) -> None:
    url = f"/api/v1/communities/{test_community.id}/posts"

    outsider = client.post(url, json={"title": "Hi", "content": "x"}, headers=other_user.headers)
    assert outsider.status_code == status.HTTP_403_FORBIDDEN

    created = client.post(url, json={"title": "Hello", "content": "world"}, headers=test_user.headers)
    assert created.status_code == status.HTTP_201_CREATED

    assert [p["id"] for p in client.get(url).json()] == [created.json()["id"]]
    assert client.get(f"/api/v1/communities/{test_community.id}").json()["posts_count"] == 1


def test_delete_community(client, test_community, test_user, other_user) -> None:
    url = f"/api/v1/communities/{test_community.id}"
    assert client.delete(url, headers=other_user.headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(url, headers=test_user.headers).status_code == status.HTTP_204_NO_CONTENT
    assert client.get(url).status_code == status.HTTP_404_NOT_FOUND


def test_patch_community(client, test_community, test_user, other_user) -> None:
    url = f"/api/v1/communities/{test_community.id}"
    client.post("/api/v1/communities/", json={"name": "Rustaceans"}, headers=other_user.headers)

    denied = client.patch(url, json={"description": "Mine"}, headers=other_user.headers)
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    taken = client.patch(url, json={"name": "rustaceans"}, headers=test_user.headers)
    assert taken.status_code == status.HTTP_409_CONFLICT

    response = client.patch(
        url,
        json={"description": "Typed Python", "avatar_url": "https://img/py.png"},
        headers=test_user.headers,
    )
    assert response.status_code == status.HTTP_200_OK
    data = client.get(url).json()
    assert (data["name"], data["description"]) == ("Pythonistas", "Typed Python")
    assert data["avatar_url"] == "https://img/py.png"
