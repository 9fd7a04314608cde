"""Tests for profile and follow endpoints."""

from fastapi import status

from devhub.models import Profile


def test_get_profile(client, test_user) -> None:
    response = client.get(f"/api/v1/profiles/{test_user.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["username"] == "alice"
    assert data["display_name"] == "Alice Example"
    assert data["followers_count"] == 0
    assert data["is_self"] is False


def test_get_profile_by_username(client, test_user) -> None:
    response = client.get("/api/v1/profiles/by-username/Alice", headers=test_user.headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_self"] is True


def test_missing_profile(client) -> None:
    response = client.get("/api/v1/profiles/does-not-exist")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_follow_and_unfollow(client, db_session, test_user, other_user) -> None:
    url = f"/api/v1/profiles/{other_user.id}/follow"

    response = client.put(url, headers=test_user.headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "edge_type": "follow",
        "target_id": other_user.id,
        "active": True,
        "changed": True,
        "count": 1,
    }

    # Following twice does not double count.
    response = client.put(url, headers=test_user.headers)
    assert response.json()["changed"] is False
    assert response.json()["count"] == 1

    profile = client.get(f"/api/v1/profiles/{other_user.id}", headers=test_user.headers).json()
    assert profile["is_following"] is True
    assert db_session.get(Profile, test_user.id).following_count == 1

    response = client.delete(url, headers=test_user.headers)
    assert response.json()["active"] is False
    assert response.json()["count"] == 0

    response = client.delete(url, headers=test_user.headers)
    assert response.json()["changed"] is False
    assert response.json()["count"] == 0


def test_follow_toggle_with_stale_belief(client, test_user, other_user) -> None:
    url = f"/api/v1/profiles/{other_user.id}/follow/toggle"

    response = client.post(url, headers=test_user.headers)
    assert response.json()["active"] is True

    # The client still believes it is not following: nothing changes.
    response = client.post(url, json={"currently_on": False}, headers=test_user.headers)
    assert response.json()["active"] is True
    assert response.json()["changed"] is False
    assert response.json()["count"] == 1


def test_cannot_follow_self(client, test_user) -> None:
    response = client.put(f"/api/v1/profiles/{test_user.id}/follow", headers=test_user.headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_follow_requires_authentication(client, db_session, other_user) -> None:
    response = client.put(f"/api/v1/profiles/{other_user.id}/follow")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Authentication required"
    assert db_session.get(Profile, other_user.id).followers_count == 0


def test_followers_list(client, test_user, other_user, third_user) -> None:
    client.put(f"/api/v1/profiles/{test_user.id}/follow", headers=other_user.headers)
    client.put(f"/api/v1/profiles/{test_user.id}/follow", headers=third_user.headers)

    followers = client.get(f"/api/v1/profiles/{test_user.id}/followers").json()
    assert followers["count"] == 2
    assert {f["username"] for f in followers["items"]} == {"bob", "carol"}

    following = client.get(f"/api/v1/profiles/{other_user.id}/following").json()
    assert [f["id"] for f in following["items"]] == [test_user.id]


def test_update_me_and_username_interval(client, test_user) -> None:
    response = client.patch(
        "/api/v1/profiles/me",
        json={"username": "alice_dev", "bio": "Builds things"},
        headers=test_user.headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["username"] == "alice_dev"
    assert response.json()["bio"] == "Builds things"

    status_response = client.get("/api/v1/profiles/me/username-status", headers=test_user.headers)
    assert status_response.json()["can_change"] is False
    assert status_response.json()["days_remaining"] >= 1

    response = client.patch(
        "/api/v1/profiles/me", json={"username": "alice_again"}, headers=test_user.headers
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_user_projects_listing(client, test_user, test_project) -> None:
    response = client.get(f"/api/v1/profiles/{test_user.id}/projects")
    assert [p["id"] for p in response.json()] == [test_project.id]


def test_saved_listings(client, test_user, other_user, test_project, test_snippet) -> None:
    client.put(f"/api/v1/projects/{test_project.id}/save", headers=other_user.headers)
    client.put(f"/api/v1/snippets/{test_snippet.id}/save", headers=other_user.headers)

    projects = client.get("/api/v1/profiles/me/saved/projects", headers=other_user.headers).json()
    assert [p["id"] for p in projects] == [test_project.id]
    assert projects[0]["is_saved"] is True

    snippets = client.get("/api/v1/profiles/me/saved/snippets", headers=other_user.headers).json()
    assert [s["id"] for s in snippets] == [test_snippet.id]

    assert client.get("/api/v1/profiles/me/saved/projects", headers=test_user.headers).json() == []
    anonymous = client.get("/api/v1/profiles/me/saved/snippets")
    assert anonymous.status_code == status.HTTP_401_UNAUTHORIZED


def test_pro_access(client, test_user) -> None:
    response = client.get(f"/api/v1/profiles/{test_user.id}/pro-access")
    assert response.json() == {"user_id": test_user.id, "has_pro_access": False}
