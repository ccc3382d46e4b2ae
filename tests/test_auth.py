"""
Tests for the auth endpoints backed by Supabase Auth.
"""

from urllib.parse import urlparse, parse_qs

from app.config import settings
from app.core.dependencies import is_admin
from app.modules.auth.service import display_name, avatar_url
from tests.conftest import USER_TOKEN, ADMIN_TOKEN, auth_header

AUTH = "/api/v1/auth"


def test_register_and_login(client):
    response = client.post(f"{AUTH}/register", json={
        "email": "new@example.com", "password": "s3cret-pass", "full_name": "New Person",
    })
    assert response.status_code == 201
    assert response.json()["confirmation_required"] is True
    user_id = response.json()["user_id"]

    response = client.post(f"{AUTH}/login", json={"email": "new@example.com", "password": "s3cret-pass"})
    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == user_id
    assert body["token_type"] == "bearer"

    me = client.get(f"{AUTH}/me", headers=auth_header(body["access_token"])).json()
    assert me["email"] == "new@example.com"
    assert me["user_metadata"]["full_name"] == "New Person"


def test_register_existing_user(client):
    response = client.post(f"{AUTH}/register", json={"email": "owner@example.com", "password": "another-pass"})
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists"


def test_login_wrong_password(client):
    response = client.post(f"{AUTH}/login", json={"email": "owner@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_me_reports_admin_flag(client, users):
    me = client.get(f"{AUTH}/me", headers=auth_header(USER_TOKEN)).json()
    assert me["id"] == users["user"].id
    assert me["is_admin"] is False
    assert client.get(f"{AUTH}/me", headers=auth_header(ADMIN_TOKEN)).json()["is_admin"] is True


def test_me_requires_token(client):
    assert client.get(f"{AUTH}/me").status_code == 401
    assert client.get(f"{AUTH}/me", headers=auth_header("expired")).status_code == 401


def test_logout(client):
    response = client.post(f"{AUTH}/logout", headers=auth_header(USER_TOKEN))
    assert response.json() == {"message": "Logged out successfully"}


class TestCallback:
    def test_exchanges_code_and_redirects(self, client, fake_db, users):
        fake_db.auth.codes["good-code"] = users["user"]

        response = client.get(
            f"{AUTH}/callback", params={"code": "good-code", "next": "/automations"}, follow_redirects=False
        )

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}" == settings.site_url.rstrip("/")
        assert location.path == "/automations"
        query = parse_qs(location.query)
        assert query["signed_in"] == ["true"]
        assert query["access_token"] == [f"access-{users['user'].id}"]

    def test_bad_code_goes_to_error_page(self, client):
        response = client.get(f"{AUTH}/callback", params={"code": "stale"}, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"].endswith("/auth/auth-code-error")

    def test_missing_code(self, client):
        response = client.get(f"{AUTH}/callback", follow_redirects=False)
        assert response.headers["location"].endswith("/auth/auth-code-error")

    def test_external_next_is_ignored(self, client, fake_db, users):
        fake_db.auth.codes["good-code"] = users["user"]
        response = client.get(
            f"{AUTH}/callback", params={"code": "good-code", "next": "https://evil.example"}, follow_redirects=False
        )
        assert urlparse(response.headers["location"]).path == "/dashboard"


def test_display_helpers():
    assert display_name({"user_metadata": {"name": "Sam"}, "email": "s@example.com"}) == "Sam"
    assert display_name({"user_metadata": {}, "email": "sam@example.com"}) == "sam"
    assert display_name({}) == "Unknown User"
    assert avatar_url({"user_metadata": {"picture": "https://img/p.png"}}) == "https://img/p.png"
    assert is_admin({"app_metadata": {"role": "admin"}})
    assert not is_admin({"app_metadata": None})
