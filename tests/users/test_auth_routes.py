# tests/users/test_auth_routes.py
import bcrypt

from modules.security.passwords import is_bcrypt_hash
from modules.users.models import User, UserRole, UserStatus
from tests.conftest import PASSWORD


def _register(client, email="new.guard@example.com", **extra):
    body = {"email": email, "password": "Password1!", "first_name": "New", "last_name": "Guard", **extra}
    return client.post("/api/auth/register", json=body)


def test_register_creates_pending_user(client, db):
    res = _register(client, email="New.Guard@Example.com")
    assert res.status_code == 201
    data = res.json()
    assert data["token"]
    assert data["user"]["email"] == "new.guard@example.com"
    assert data["user"]["status"] == "PENDING"
    assert "password_hash" not in data["user"]

    user = db.query(User).filter(User.email == "new.guard@example.com").one()
    assert user.role == UserRole.OPERATOR
    assert user.password_hash.startswith("pbkdf2:sha256")


def test_register_duplicate_email_is_conflict(client):
    assert _register(client).status_code == 201
    res = _register(client)
    assert res.status_code == 409
    assert res.json() == {"status": "error", "message": "User with this email already exists"}


def test_register_privileged_role_is_forbidden(client):
    res = _register(client, role="DIRECTOR")
    assert res.status_code == 403


def test_register_short_password_is_bad_request(client):
    res = client.post("/api/auth/register", json={
        "email": "x@example.com", "password": "short", "first_name": "X", "last_name": "Y",
    })
    assert res.status_code == 400
    assert res.json()["status"] == "error"


def test_login_success_returns_tokens(client, make_user, db):
    user = make_user(UserRole.SUPERVISOR)
    res = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})
    assert res.status_code == 200
    data = res.json()
    assert data["token"] and data["refresh_token"]
    assert data["user"]["id"] == user.id

    db.expire_all()
    assert db.get(User, user.id).last_login is not None


def test_login_wrong_password_and_unknown_email(client, make_user):
    user = make_user()
    for email, pw in ((user.email, "wrong-password"), ("nobody@example.com", PASSWORD)):
        res = client.post("/api/auth/login", json={"email": email, "password": pw})
        assert res.status_code == 401
        assert res.json()["message"] == "Invalid email or password"


def test_login_pending_and_deactivated(client, make_user):
    pending = make_user(status=UserStatus.PENDING)
    res = client.post("/api/auth/login", json={"email": pending.email, "password": PASSWORD})
    assert res.status_code == 401
    assert "pending approval" in res.json()["message"]

    suspended = make_user(status=UserStatus.SUSPENDED)
    res = client.post("/api/auth/login", json={"email": suspended.email, "password": PASSWORD})
    assert res.status_code == 401
    assert "deactivated" in res.json()["message"]


def test_login_without_password_hash_is_server_error(client, make_user):
    user = make_user(password_hash=None)
    res = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})
    assert res.status_code == 500
    assert res.json()["message"].startswith("Account not properly configured")


def test_login_upgrades_legacy_bcrypt_hash(client, make_user, db):
    legacy = bcrypt.hashpw(b"OldPassword1", bcrypt.gensalt(rounds=4)).decode()
    user = make_user(password_hash=legacy)
    res = client.post("/api/auth/login", json={"email": user.email, "password": "OldPassword1"})
    assert res.status_code == 200

    db.expire_all()
    assert not is_bcrypt_hash(db.get(User, user.id).password_hash)


def test_refresh_issues_new_access_token(client, make_user):
    user = make_user()
    login = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD}).json()
    res = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert res.status_code == 200
    assert res.json()["token"]

    # an access token is not a refresh token
    res = client.post("/api/auth/refresh", json={"refresh_token": login["token"]})
    assert res.status_code == 401


def test_profile_requires_token(client):
    res = client.get("/api/auth/profile")
    assert res.status_code == 401
    assert res.json()["message"] == "No token provided"

    res = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid or expired token"


def test_profile_and_update(client, make_user, headers_for):
    user = make_user()
    h = headers_for(user)
    res = client.get("/api/auth/me", headers=h)
    assert res.status_code == 200
    assert res.json()["user"]["email"] == user.email
    assert res.json()["role_data"] is None

    res = client.put("/api/auth/profile", headers=h, json={"first_name": "Renamed", "bank_name": "First Bank"})
    assert res.status_code == 200
    assert res.json()["first_name"] == "Renamed"
    assert res.json()["bank_name"] == "First Bank"


def test_change_password(client, make_user, headers_for):
    user = make_user()
    h = headers_for(user)
    res = client.post("/api/auth/change-password", headers=h,
                      json={"current_password": "nope-nope", "new_password": "BrandNew#1"})
    assert res.status_code == 401

    res = client.post("/api/auth/change-password", headers=h,
                      json={"current_password": PASSWORD, "new_password": "BrandNew#1"})
    assert res.status_code == 200
    assert res.json()["status"] == "success"

    res = client.post("/api/auth/login", json={"email": user.email, "password": "BrandNew#1"})
    assert res.status_code == 200
