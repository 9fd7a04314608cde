"""Tests for project endpoints."""

from fastapi import status


def test_create_project(client, test_user) -> None:
    response = client.post(
        "/api/v1/projects/",
        json={"title": "Graph CLI", "technologies": ["python"]},
        headers=test_user.headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["title"] == "Graph CLI"
    assert data["author"]["username"] == "alice"
    assert data["is_owner"] is True
    assert data["likes_count"] == 0


def test_create_project_requires_authentication(client) -> None:
    response = client.post("/api/v1/projects/", json={"title": "Anon"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_get_project_viewer_flags(client, test_project, other_user) -> None:
    client.put(f"/api/v1/projects/{test_project.id}/like", headers=other_user.headers)

    anonymous = client.get(f"/api/v1/projects/{test_project.id}").json()
    assert anonymous["likes_count"] == 1
    assert anonymous["is_liked"] is False

    viewer = client.get(f"/api/v1/projects/{test_project.id}", headers=other_user.headers).json()
    assert viewer["is_liked"] is True
    assert viewer["is_owner"] is False


def test_like_toggle_round_trip(client, test_project, other_user) -> None:
    url = f"/api/v1/projects/{test_project.id}/like/toggle"

    first = client.post(url, headers=other_user.headers).json()
    second = client.post(url, headers=other_user.headers).json()

    assert (first["active"], first["count"]) == (True, 1)
    assert (second["active"], second["count"]) == (False, 0)


def test_save_has_no_counter(client, test_project, other_user) -> None:
    response = client.put(f"/api/v1/projects/{test_project.id}/save", headers=other_user.headers)
    assert response.json()["active"] is True
    assert response.json()["count"] is None

    viewer = client.get(f"/api/v1/projects/{test_project.id}", headers=other_user.headers).json()
    assert viewer["is_saved"] is True


def test_record_views(client, test_project) -> None:
    client.post(f"/api/v1/projects/{test_project.id}/views")
    response = client.post(f"/api/v1/projects/{test_project.id}/views")
    assert response.json() == {"id": test_project.id, "views_count": 2}

    assert client.post("/api/v1/projects/missing/views").status_code == status.HTTP_404_NOT_FOUND


def test_comments(client, test_project, test_user, other_user) -> None:
    url = f"/api/v1/projects/{test_project.id}/comments"

    response = client.post(url, json={"content": "Great"}, headers=other_user.headers)
    assert response.status_code == status.HTTP_201_CREATED
    comment_id = response.json()["id"]

    listed = client.get(url, headers=test_user.headers).json()
    assert [c["id"] for c in listed] == [comment_id]
    assert listed[0]["can_delete"] is False
    assert client.get(f"/api/v1/projects/{test_project.id}").json()["comments_count"] == 1

    forbidden = client.delete(f"{url}/{comment_id}", headers=test_user.headers)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    deleted = client.delete(f"{url}/{comment_id}", headers=other_user.headers)
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/projects/{test_project.id}").json()["comments_count"] == 0


def test_delete_project(client, test_project, test_user, other_user) -> None:
    url = f"/api/v1/projects/{test_project.id}"

    assert client.delete(url, headers=other_user.headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(url, headers=test_user.headers).status_code == status.HTTP_204_NO_CONTENT
    assert client.get(url).status_code == status.HTTP_404_NOT_FOUND


def test_owner_patches_project(client, test_project, test_user, other_user) -> None:
    url = f"/api/v1/projects/{test_project.id}"
    assert client.get(url).json()["title"] == "Graph toolkit"

    denied = client.patch(url, json={"title": "Stolen"}, headers=other_user.headers)
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    response = client.patch(
        url, json={"title": "Graph kit", "live_url": "https://kit.dev"}, headers=test_user.headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Graph kit"
    assert response.json()["technologies"] == ["python", "sqlalchemy"]
    assert client.get(url).json()["live_url"] == "https://kit.dev"

    blank = client.patch(url, json={"title": ""}, headers=test_user.headers)
    assert blank.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
