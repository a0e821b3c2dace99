# tests/maintenance/test_data_migrations.py
import pytest

from core.errors import AppError, BadRequestError, NotFoundError
from modules.locations.models import Location
from modules.maintenance import services
from modules.maintenance.models import AppliedMigration
from modules.payroll import schemas as payroll_schemas
from modules.payroll import services as payroll_services
from modules.payroll.models import Salary, SalaryAllowance, SalaryStatus
from modules.security.passwords import verify_password
from modules.staff.models import ApprovalStatus, Operator, Secretary, Supervisor, SupervisorType
from modules.users.models import User, UserRole, UserStatus
from tests.conftest import PASSWORD, auth_header


def _supervisor(db, user, **kw):
    sup = Supervisor(user_id=user.id, employee_id=f"SUP-T-{user.id}", full_name=user.full_name, **kw)
    db.add(sup)
    db.commit()
    return sup


def _location(db, name, active=True):
    loc = Location(location_name=name, city="Lagos", state="Lagos", address="Somewhere", is_active=active)
    db.add(loc)
    db.commit()
    return loc


# ---------- activate_users ----------
def test_activate_users_counts_and_idempotency(db, make_user):
    make_user(is_active=True)
    make_user(status=UserStatus.PENDING)
    make_user(status=UserStatus.PENDING)
    make_user(status=UserStatus.INACTIVE)

    result = services.run_migration(db, "activate_users")
    assert result["skipped"] is False
    assert result["summary"]["modified"] == 3
    db.expire_all()
    assert db.query(User).filter(User.is_active.is_(False)).count() == 0

    again = services.run_migration(db, "activate_users")
    assert again["skipped"] is True
    assert again["summary"]["modified"] == 0

    forced = services.run_migration(db, "activate_users", force=True)
    assert forced["summary"]["modified"] == 0
    assert db.query(AppliedMigration).filter_by(name="activate_users").one().run_count == 2


# ---------- assign_supervisors_to_location ----------
def test_assign_supervisors_to_first_active_location(db, make_user):
    _location(db, "Closed site", active=False)
    target = _location(db, "Main site")
    later = _location(db, "Second site")
    _supervisor(db, make_user(UserRole.SUPERVISOR))
    _supervisor(db, make_user(UserRole.SUPERVISOR))
    placed = _supervisor(db, make_user(UserRole.SUPERVISOR), location_id=later.id)

    result = services.run_migration(db, "assign_supervisors_to_location")
    assert result["summary"]["modified"] == 2
    assert result["summary"]["location_id"] == target.id

    db.expire_all()
    sups = db.query(Supervisor).all()
    assert all(s.location_id is not None for s in sups)
    assert {s.location_id for s in sups if s.id != placed.id} == {target.id}
    assert db.get(Supervisor, placed.id).location_id == later.id

    assert services.run_migration(db, "assign_supervisors_to_location", force=True)["summary"]["modified"] == 0


def test_assign_without_active_location_fails_without_checkpoint(db, make_user):
    _location(db, "Closed site", active=False)
    _supervisor(db, make_user(UserRole.SUPERVISOR))
    with pytest.raises(AppError, match="No active location found"):
        services.run_migration(db, "assign_supervisors_to_location")
    assert db.query(AppliedMigration).count() == 0


# ---------- migrate_salaries_to_users ----------
def test_migrate_salaries_to_users(db, make_user):
    su, se, op_user, zero = (make_user(r) for r in
                            (UserRole.SUPERVISOR, UserRole.SECRETARY, UserRole.OPERATOR, UserRole.OPERATOR))
    _supervisor(db, su, salary=70000, bank_name="Zenith", bank_account_number="0011")
    db.add(Secretary(user_id=se.id, employee_id="SEC-T-1", full_name="Sec Retary", salary=55000))
    db.add(Operator(user_id=op_user.id, employee_id="OPR-T-1", salary=40000, bank_name="UBA", bank_account="0099"))
    db.add(Operator(user_id=zero.id, employee_id="OPR-T-2", salary=0))
    db.commit()

    result = services.run_migration(db, "migrate_salaries_to_users")
    summary = result["summary"]
    assert (summary["supervisors"], summary["secretaries"], summary["operators"]) == (1, 1, 1)
    assert summary["modified"] == 3

    db.expire_all()
    su_row, se_row, op_row = db.get(User, su.id), db.get(User, se.id), db.get(User, op_user.id)
    assert (su_row.monthly_salary, su_row.bank_name, su_row.account_number) == (70000, "Zenith", "0011")
    assert su_row.account_name == su_row.full_name
    assert (se_row.monthly_salary, se_row.account_name) == (55000, "Sec Retary")
    assert (op_row.monthly_salary, op_row.account_name, op_row.account_number) == (40000, op_row.full_name, "0099")
    assert db.get(User, zero.id).monthly_salary == 0

    rerun = services.run_migration(db, "migrate_salaries_to_users", force=True)
    assert rerun["summary"]["modified"] == 0


# ---------- reset_salaries ----------
def test_reset_salaries_end_to_end(db, make_user, caplog):
    admin = make_user(UserRole.ADMIN)
    workers = [make_user(UserRole.OPERATOR) for _ in range(5)]
    make_user(UserRole.SUPERVISOR)  # sixth worker is past the limit
    payroll_services.create_salary(db, payroll_schemas.SalaryCreate(
        worker_id=workers[0].id, month=6, year=2025, base_salary=1,
        allowances=[payroll_schemas.AllowanceIn(name="Old", amount=1)]), actor_id=admin.id)

    with caplog.at_level("INFO", logger="modules.maintenance.routines"):
        result = services.run_migration(db, "reset_salaries")
    assert result["summary"]["modified"] == 5
    assert result["summary"]["deleted"] == 1
    assert result["summary"]["skipped_user_ids"] == [admin.id]
    assert f"{admin.id} (ADMIN)" in caplog.text

    db.expire_all()
    assert db.query(Salary).filter_by(month=6, year=2025).count() == 0
    assert db.query(SalaryAllowance).filter_by(name="Old").count() == 0
    salaries = db.query(Salary).order_by(Salary.base_salary).all()
    assert len(salaries) == 5
    assert db.query(SalaryAllowance).count() == 5
    for i, (s, w) in enumerate(zip(salaries, workers)):
        assert s.worker_id == w.id
        assert (s.month, s.year) == (1, 2026)
        assert s.status == SalaryStatus.PENDING
        assert s.is_deleted is False
        assert s.base_salary == 45000 + 5000 * i
        assert len(s.allowances) == 1
        transport = s.allowances[0]
        assert transport.name == "Transport"
        assert transport.amount == 8000 + 2000 * i
        assert s.net_salary == s.base_salary + transport.amount

    # repeatable: a second run replaces rather than duplicates
    services.run_migration(db, "reset_salaries", {"month": "2"})
    db.expire_all()
    assert {(s.month, s.year) for s in db.query(Salary)} == {(2, 2026)}
    assert db.query(Salary).count() == 5


# ---------- credentials ----------
def test_set_temporary_passwords_never_stores_them(db, make_user):
    u = make_user(password_hash=None)
    result = services.run_migration(db, "set_temporary_passwords")
    creds = result["summary"]["credentials"]
    assert [c["user_id"] for c in creds] == [u.id]

    db.expire_all()
    assert verify_password(creds[0]["temporary_password"], db.get(User, u.id).password_hash)
    stored = db.query(AppliedMigration).filter_by(name="set_temporary_passwords").one().summary
    assert "credentials" not in stored
    assert stored["modified"] == 1


def test_reset_user_password(db, make_user):
    u = make_user()
    with pytest.raises(BadRequestError):
        services.run_migration(db, "reset_user_password", {"email": u.email})
    with pytest.raises(BadRequestError):
        services.run_migration(db, "reset_user_password", {"email": u.email, "password": "short"})
    with pytest.raises(NotFoundError):
        services.run_migration(db, "reset_user_password", {"email": "ghost@example.com", "password": "LongEnough1"})

    services.run_migration(db, "reset_user_password", {"email": u.email.upper(), "password": "LongEnough1"})
    db.expire_all()
    user = db.get(User, u.id)
    assert verify_password("LongEnough1", user.password_hash)
    assert not verify_password(PASSWORD, user.password_hash)


def test_activate_admins(db, make_user):
    a = make_user(UserRole.ADMIN, status=UserStatus.PENDING)
    d = make_user(UserRole.DIRECTOR, status=UserStatus.SUSPENDED)
    op = make_user(UserRole.OPERATOR, status=UserStatus.PENDING)
    assert services.run_migration(db, "activate_admins")["summary"]["modified"] == 2
    db.expire_all()
    assert db.get(User, a.id).status == UserStatus.ACTIVE
    assert db.get(User, d.id).is_active is True
    assert db.get(User, op.id).status == UserStatus.PENDING


def test_link_supervisor_routine(db, make_user):
    gs = _supervisor(db, make_user(UserRole.GENERAL_SUPERVISOR),
                     supervisor_type=SupervisorType.GENERAL_SUPERVISOR, approval_status=ApprovalStatus.APPROVED)
    sup = _supervisor(db, make_user(UserRole.SUPERVISOR))
    params = {"supervisor_id": str(sup.id), "general_supervisor_id": str(gs.id)}
    assert services.run_migration(db, "link_supervisor", params)["summary"]["modified"] == 1
    assert services.run_migration(db, "link_supervisor", params)["summary"]["modified"] == 0


def test_unknown_migration(db):
    with pytest.raises(NotFoundError):
        services.run_migration(db, "drop_everything")


# ---------- HTTP + CLI ----------
def test_maintenance_routes_need_permission(client, make_user, director_headers):
    assert client.get("/api/maintenance/migrations", headers=auth_header(make_user(UserRole.MANAGER))).status_code == 403

    res = client.get("/api/maintenance/migrations", headers=director_headers)
    assert res.status_code == 200
    names = {m["name"] for m in res.json()}
    assert {"activate_users", "assign_supervisors_to_location", "migrate_salaries_to_users", "reset_salaries"} <= names

    res = client.post("/api/maintenance/migrations/activate_users", headers=director_headers, json={})
    assert res.status_code == 200
    assert res.json()["skipped"] is False


def test_cli_exit_codes(session_factory, db, make_user, capsys):
    from scripts import maintenance

    make_user(status=UserStatus.PENDING)
    assert maintenance.main(["run", "activate_users"], session_factory=session_factory) == 0
    assert "activate_users" in capsys.readouterr().out
    assert maintenance.main(["run", "activate_users"], session_factory=session_factory) == 0
    assert "already applied" in capsys.readouterr().out

    # no active location -> failure
    assert maintenance.main(["run", "assign_supervisors_to_location"], session_factory=session_factory) == 1
    assert maintenance.main(["run", "reset_salaries", "--param", "month"], session_factory=session_factory) == 1
    assert maintenance.main(["status"], session_factory=session_factory) == 0
