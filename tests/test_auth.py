from fastapi.testclient import TestClient

from recipe_hub import models

API = "/api/v1"


def register_payload(**overrides):
    payload = {
        "firstName": "Julia",
        "lastName": "Child",
        "email": "julia@example.com",
        "password": "Butter123!",
        "confirmPassword": "Butter123!",
    }
    payload.update(overrides)
    return payload


def test_register_returns_user_and_tokens(client: TestClient):
    response = client.post(f"{API}/auth/register", json=register_payload())
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "julia@example.com"
    assert body["data"]["user"]["role"] == "user"
    assert "hashedPassword" not in body["data"]["user"]
    tokens = body["data"]["tokens"]
    assert tokens["accessToken"] and tokens["refreshToken"]
    assert tokens["expiresIn"] > 0


def test_register_duplicate_email_conflicts(client: TestClient):
    assert client.post(f"{API}/auth/register", json=register_payload()).status_code == 201
    response = client.post(f"{API}/auth/register", json=register_payload(email="JULIA@example.com"))
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "CONFLICT"


def test_register_password_mismatch(client: TestClient):
    response = client.post(f"{API}/auth/register", json=register_payload(confirmPassword="Other123!"))
    assert response.status_code == 400
    fields = [e["field"] for e in response.json()["errors"]]
    assert "confirmPassword" in fields


def test_register_without_confirmation(client: TestClient):
    payload = register_payload()
    del payload["confirmPassword"]
    response = client.post(f"{API}/auth/register", json=payload)
    assert response.status_code == 400
    assert response.json()["errors"] == [{"field": "confirmPassword", "message": "Password confirmation is required"}]


def test_register_weak_password_and_short_name(client: TestClient):
    response = client.post(f"{API}/auth/register", json=register_payload(
        firstName="J", password="short", confirmPassword="short"
    ))
    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"firstName", "password"} <= fields


def test_register_invalid_email_is_400(client: TestClient):
    response = client.post(f"{API}/auth/register", json=register_payload(email="not-an-email"))
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_FAILED"
    assert response.json()["errors"][0]["field"] == "email"


def test_login_success_records_last_login(client: TestClient, make_user, db):
    user = make_user("cook@example.com")
    response = client.post(f"{API}/auth/login", json={"email": "Cook@Example.com", "password": "Password1!"})
    assert response.status_code == 200
    assert response.json()["data"]["user"]["lastLoginAt"] is not None
    db.refresh(user)
    assert user.last_login_at is not None


def test_login_wrong_password(client: TestClient, make_user):
    make_user("cook@example.com")
    response = client.post(f"{API}/auth/login", json={"email": "cook@example.com", "password": "Wrong123!"})
    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"
    assert response.headers["www-authenticate"] == "Bearer"


def test_login_deactivated_account(client: TestClient, make_user):
    make_user("gone@example.com", is_active=False)
    response = client.post(f"{API}/auth/login", json={"email": "gone@example.com", "password": "Password1!"})
    assert response.status_code == 401
    assert "deactivated" in response.json()["message"]


def test_oauth2_token_form(client: TestClient, make_user):
    make_user("form@example.com")
    response = client.post(f"{API}/auth/token", data={"username": "form@example.com", "password": "Password1!"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "form@example.com"


def test_me_requires_token(client: TestClient):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_me_rejects_garbage_token(client: TestClient):
    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_refresh_issues_new_tokens(client: TestClient):
    tokens = client.post(f"{API}/auth/register", json=register_payload()).json()["data"]["tokens"]
    response = client.post(f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert response.status_code == 200
    new_access = response.json()["data"]["accessToken"]
    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {new_access}"})
    assert me.status_code == 200


def test_access_token_cannot_be_used_to_refresh(client: TestClient):
    tokens = client.post(f"{API}/auth/register", json=register_payload()).json()["data"]["tokens"]
    response = client.post(f"{API}/auth/refresh", json={"refreshToken": tokens["accessToken"]})
    assert response.status_code == 401


def test_deactivated_user_token_stops_working(client: TestClient, make_user, login, db):
    user = make_user("cook@example.com")
    headers = login(user.email)
    user.is_active = False
    db.commit()
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 401


def test_change_password(client: TestClient, make_user, login):
    make_user("cook@example.com")
    headers = login("cook@example.com")

    wrong = client.post(f"{API}/auth/change-password", headers=headers,
                        json={"currentPassword": "Nope1234!", "newPassword": "NewPass1!"})
    assert wrong.status_code == 401

    weak = client.post(f"{API}/auth/change-password", headers=headers,
                       json={"currentPassword": "Password1!", "newPassword": "weak"})
    assert weak.status_code == 400
    assert weak.json()["errors"][0]["field"] == "newPassword"

    ok = client.post(f"{API}/auth/change-password", headers=headers,
                     json={"currentPassword": "Password1!", "newPassword": "NewPass1!"})
    assert ok.status_code == 200
    login("cook@example.com", "NewPass1!")


def test_role_change_applies_to_existing_token(client: TestClient, make_user, login, db):
    user = make_user("cook@example.com")
    headers = login(user.email)
    assert client.get(f"{API}/users/stats", headers=headers).status_code == 403
    user.role = models.UserRole.ADMIN
    db.commit()
    assert client.get(f"{API}/users/stats", headers=headers).status_code == 200
