# tests/users/test_user_admin.py
from modules.users.models import UserRole, UserStatus


def test_status_change_toggles_is_active(client, make_user, director_headers):
    user = make_user(status=UserStatus.PENDING)
    res = client.patch(f"/api/users/{user.id}/status", headers=director_headers, json={"status": "ACTIVE"})
    assert res.status_code == 200
    assert res.json()["status"] == "ACTIVE"
    assert res.json()["is_active"] is True

    res = client.patch(f"/api/users/{user.id}/status", headers=director_headers, json={"status": "SUSPENDED"})
    assert res.json()["is_active"] is False


def test_user_management_needs_permission(client, make_user, headers_for):
    operator = make_user(UserRole.OPERATOR)
    res = client.get("/api/users/", headers=headers_for(operator))
    assert res.status_code == 403
    assert res.json()["message"] == "Insufficient permissions"


def test_list_users_filters_by_role(client, make_user, director_headers):
    make_user(UserRole.OPERATOR)
    make_user(UserRole.SECRETARY)
    res = client.get("/api/users/", headers=director_headers, params={"role": "SECRETARY"})
    assert res.status_code == 200
    assert {u["role"] for u in res.json()} == {"SECRETARY"}


def test_secretary_can_set_pay(client, make_user, headers_for):
    secretary = make_user(UserRole.SECRETARY)
    worker = make_user(UserRole.OPERATOR)
    res = client.patch(f"/api/users/{worker.id}/pay", headers=headers_for(secretary),
                       json={"monthly_salary": 60000, "bank_name": "GTBank"})
    assert res.status_code == 200
    assert res.json()["monthly_salary"] == 60000
    assert res.json()["bank_name"] == "GTBank"


def test_deactivated_user_token_is_rejected(client, make_user, headers_for):
    user = make_user(status=UserStatus.INACTIVE)
    res = client.get("/api/auth/me", headers=headers_for(user))
    assert res.status_code == 401
    assert res.json()["message"] == "Account has been deactivated"
