import uuid

from crud_backend.models import User
from tests.helpers import make_users


async def test_admin_lists_users_paginated(client, admin, auth_headers, db):
    db.add_all(make_users(24))
    await db.commit()

    response = await client.get("/v1/users", params={"page": 2, "limit": 10}, headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["page"] == 2
    assert body["limit"] == 10
    assert body["total_results"] == 25
    assert body["total_pages"] == 3
    assert len(body["results"]) == 10
    assert "password" not in body["results"][0]


async def test_list_users_search_and_dates(client, admin, auth_headers, db):
    db.add_all(make_users(5))
    await db.commit()
    headers = auth_headers(admin)

    response = await client.get("/v1/users", params={"search": "USER003"}, headers=headers)
    assert [u["email"] for u in response.json()["results"]] == ["user003@example.com"]

    response = await client.get(
        "/v1/users", params={"start_date": "2024-01-01", "end_date": "2024-01-01"}, headers=headers
    )
    assert response.json()["total_results"] == 5

    response = await client.get("/v1/users", params={"start_date": "01/01/2024"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid start_date format. Use YYYY-MM-DD"


async def test_limit_above_cap_is_rejected(client, admin, auth_headers):
    response = await client.get("/v1/users", params={"limit": 101}, headers=auth_headers(admin))
    assert response.status_code == 400


async def test_regular_user_cannot_list(client, user, auth_headers):
    response = await client.get("/v1/users", headers=auth_headers(user))
    assert response.status_code == 403


async def test_admin_creates_user(client, admin, auth_headers):
    response = await client.post(
        "/v1/users",
        json={"name": "New", "email": "New@Example.com", "password": "password1", "role": "user"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    assert response.json()["user"]["email"] == "new@example.com"

    duplicate = await client.post(
        "/v1/users",
        json={"name": "Again", "email": "new@example.com", "password": "password1"},
        headers=auth_headers(admin),
    )
    assert duplicate.status_code == 409


async def test_user_reads_and_updates_self_only(client, user, admin, auth_headers):
    headers = auth_headers(user)

    own = await client.get(f"/v1/users/{user.id}", headers=headers)
    assert own.status_code == 200
    assert own.json()["user"]["email"] == user.email

    other = await client.get(f"/v1/users/{admin.id}", headers=headers)
    assert other.status_code == 403

    updated = await client.patch(f"/v1/users/{user.id}", json={"name": "Renamed"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["user"]["name"] == "Renamed"

    assert (await client.patch(f"/v1/users/{admin.id}", json={"name": "x"}, headers=headers)).status_code == 403


async def test_admin_acts_on_others(client, user, admin, auth_headers):
    headers = auth_headers(admin)
    response = await client.get(f"/v1/users/{user.id}", headers=headers)
    assert response.status_code == 200

    deleted = await client.delete(f"/v1/users/{user.id}", headers=headers)
    assert deleted.status_code == 200
    assert (await client.get(f"/v1/users/{user.id}", headers=headers)).status_code == 404


async def test_deleted_user_token_stops_working(client, user, auth_headers):
    headers = auth_headers(user)
    assert (await client.delete(f"/v1/users/{user.id}", headers=headers)).status_code == 200
    assert (await client.get(f"/v1/users/{user.id}", headers=headers)).status_code == 401


async def test_bad_and_unknown_ids(client, admin, auth_headers):
    headers = auth_headers(admin)
    bad = await client.get("/v1/users/not-a-uuid", headers=headers)
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid user ID"
    assert (await client.get(f"/v1/users/{uuid.uuid4()}", headers=headers)).status_code == 404


async def test_update_email_conflict(client, user, admin, auth_headers):
    response = await client.patch(
        f"/v1/users/{user.id}", json={"email": admin.email}, headers=auth_headers(user)
    )
    assert response.status_code == 409


async def test_password_update_is_hashed(client, user, auth_headers, db):
    await client.patch(f"/v1/users/{user.id}", json={"password": "newpassword1"}, headers=auth_headers(user))
    stored = await db.get(User, user.id)
    assert stored.password != "newpassword1"
    assert stored.password.startswith("$2")
