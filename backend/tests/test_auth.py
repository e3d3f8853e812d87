from zealous.models import User
from zealous.security import create_access_token, create_reset_token, verify_password

from conftest import PASSWORD


def test_register_then_login_sets_refresh_cookie(client):
    resp = client.post("/api/auth?type=register", json={"email": "  Asha@Example.com ", "password": PASSWORD})
    assert resp.status_code == 201
    assert resp.json() == {"status": "ok", "statusCode": 201, "result": "Sign in successfully."}

    resp = client.post("/api/auth?type=login", json={"email": "asha@example.com", "password": PASSWORD})
    assert resp.status_code == 201
    assert resp.json()["result"]["accessToken"]
    assert "jwt" in resp.cookies
    assert "httponly" in resp.headers["set-cookie"].lower()


def test_register_existing_email_conflicts(client):
    client.post("/api/auth?type=register", json={"email": "asha@example.com", "password": PASSWORD})
    resp = client.post("/api/auth?type=register", json={"email": "asha@example.com", "password": PASSWORD})
    assert resp.status_code == 409
    assert resp.json()["status"] == "error"


def test_login_failures(client):
    resp = client.post("/api/auth?type=login", json={"email": "nobody@example.com", "password": PASSWORD})
    assert resp.status_code == 404

    client.post("/api/auth?type=register", json={"email": "asha@example.com", "password": PASSWORD})
    resp = client.post("/api/auth?type=login", json={"email": "asha@example.com", "password": "wrong"})
    assert resp.status_code == 403
    assert resp.json()["result"] == "Incorrect password."


def test_missing_fields_and_type(client):
    assert client.post("/api/auth?type=register", json={"email": "a@example.com"}).status_code == 400
    resp = client.post("/api/auth", json={"email": "a@example.com", "password": PASSWORD})
    assert resp.status_code == 404
    assert resp.json()["result"] == "Type is required."
    assert client.get("/api/auth?type=bogus").status_code == 404


def test_refresh_and_logout(client, login):
    login()
    resp = client.get("/api/auth?type=refreshToken")
    assert resp.status_code == 201
    assert resp.json()["result"]["accessToken"]

    resp = client.get("/api/auth?type=logout")
    assert resp.status_code == 200
    client.cookies.clear()
    assert client.get("/api/auth?type=refreshToken").status_code == 401


def test_invalid_refresh_cookie(client):
    client.cookies.set("jwt", "not-a-token")
    resp = client.get("/api/auth?type=refreshToken")
    assert resp.status_code == 401
    assert resp.json()["result"] == "Invalid refresh token."


def test_google_login_creates_then_links(client, rows):
    body = {"id": "g-123", "name": "Asha Rao", "email": "asha@example.com"}
    resp = client.post("/api/auth/google", json=body)
    assert resp.status_code == 201
    assert resp.json()["result"]["accessToken"]

    resp = client.post("/api/auth/google", json=body)
    assert resp.status_code == 201
    users = rows(User)
    assert len(users) == 1
    assert users[0].google_id == "g-123"
    assert users[0].full_name == "Asha Rao"


def test_google_login_links_existing_password_account(client, login, rows):
    login()
    resp = client.post("/api/auth/google", json={"id": "g-9", "name": "Asha", "email": "asha@example.com"})
    assert resp.status_code == 201
    [user] = rows(User)
    assert user.google_id == "g-9"
    assert user.password_hash


def test_forget_password_sends_reset_link(client, login, mailer):
    login()
    resp = client.post("/api/forgetpassword", json={"email": "asha@example.com"})
    assert resp.status_code == 200
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "asha@example.com"
    assert "http://localhost:3000/reset-password?param=" in mailer.sent[0]["html"]


def test_forget_password_validation(client, mailer):
    assert client.post("/api/forgetpassword", json={}).status_code == 400
    assert client.post("/api/forgetpassword", json={"email": "not-an-email"}).status_code == 400
    assert client.post("/api/forgetpassword", json={"email": "ghost@example.com"}).status_code == 404
    assert mailer.sent == []


def test_reset_password_flow(client, login, rows):
    login()
    [user] = rows(User)
    token = create_reset_token(user.id)

    assert client.get(f"/api/resetpassword?param={token}").status_code == 200

    resp = client.post("/api/resetpassword", json={"param": token, "password": "weakpass"})
    assert resp.status_code == 400

    resp = client.post("/api/resetpassword", json={"param": token, "password": "N3w#Password"})
    assert resp.status_code == 200
    [user] = rows(User)
    assert verify_password("N3w#Password", user.password_hash)


def test_reset_link_rejects_other_tokens(client, login, rows):
    login()
    [user] = rows(User)
    # An access token is not a reset token
    access = create_access_token(user.id)
    assert client.get(f"/api/resetpassword?param={access}").status_code == 404
    assert client.get("/api/resetpassword").status_code == 400
