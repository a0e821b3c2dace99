# tests/payroll/test_payroll_lifecycle.py
import pytest

from core.errors import BadRequestError, ConflictError, InvalidTransitionError, NotFoundError
from modules.payroll import lifecycle, schemas, services
from modules.payroll.models import DeductionType, Salary, SalaryStatus
from modules.users.models import UserRole
from tests.conftest import auth_header


@pytest.fixture()
def worker(make_user):
    return make_user(UserRole.OPERATOR, first_name="Ada", last_name="Obi")


@pytest.fixture()
def admin(make_user):
    return make_user(UserRole.ADMIN)


def _create(db, worker, admin, month=1, year=2026, base=50000.0, allowances=()):
    payload = schemas.SalaryCreate(
        worker_id=worker.id, month=month, year=year, base_salary=base,
        allowances=[schemas.AllowanceIn(name=n, amount=a) for n, a in allowances],
    )
    return services.create_salary(db, payload, actor_id=admin.id)


def test_net_salary_formula(db, worker, admin):
    s = _create(db, worker, admin, allowances=[("Transport", 8000), ("Meal", 2000)])
    assert s.status == SalaryStatus.PENDING
    assert s.worker_name == "Ada Obi"
    assert s.total_allowances == 10000
    assert s.net_salary == 60000

    s = services.add_deduction(db, s.id, schemas.DeductionCreate(
        type=DeductionType.LATE_REPORTING, amount=1500, reason="Late three times"), actor_id=admin.id)
    assert s.total_deductions == 1500
    assert s.net_salary == s.base_salary + s.total_allowances - s.total_deductions == 58500

    s = services.update_salary(db, s.id, schemas.SalaryUpdate(base_salary=40000), actor_id=admin.id)
    assert s.net_salary == 48500


def test_pay_only_from_approved(db, worker, admin):
    s = _create(db, worker, admin)
    with pytest.raises(InvalidTransitionError) as exc:
        services.mark_salary_paid(db, s.id, "BANK_TRANSFER", None, admin.id)
    assert exc.value.status_code == 409
    assert exc.value.current == "PENDING"
    db.rollback()

    services.approve_salary(db, s.id, admin.id)
    paid = services.mark_salary_paid(db, s.id, "BANK_TRANSFER", "TRX-1", admin.id)
    assert paid.status == SalaryStatus.PAID
    assert paid.paid_by_id == admin.id
    assert paid.payment_reference == "TRX-1"

    with pytest.raises(InvalidTransitionError):
        services.approve_salary(db, s.id, admin.id)


def test_reject_only_from_pending(db, worker, admin):
    s = _create(db, worker, admin)
    services.approve_salary(db, s.id, admin.id)
    with pytest.raises(InvalidTransitionError) as exc:
        services.reject_salary(db, s.id, "Wrong amount", admin.id)
    assert exc.value.current == "APPROVED"
    db.rollback()

    other = _create(db, worker, admin, month=2)
    rejected = services.reject_salary(db, other.id, "Wrong amount", admin.id)
    assert rejected.status == SalaryStatus.REJECTED
    assert rejected.rejection_reason == "Wrong amount"
    with pytest.raises(InvalidTransitionError):
        services.mark_salary_paid(db, other.id, "CASH", None, admin.id)


def test_commands_validate_their_input(db, worker, admin):
    s = _create(db, worker, admin)
    with pytest.raises(BadRequestError):
        services.reject_salary(db, s.id, "   ", admin.id)
    with pytest.raises(BadRequestError):
        lifecycle.Pay(payment_method="").changes(admin.id)


def test_transition_table():
    assert lifecycle.can_transition(SalaryStatus.PENDING, SalaryStatus.APPROVED)
    assert lifecycle.can_transition(SalaryStatus.APPROVED, SalaryStatus.PAID)
    assert not lifecycle.can_transition(SalaryStatus.APPROVED, SalaryStatus.REJECTED)
    assert not lifecycle.can_transition(SalaryStatus.PENDING, SalaryStatus.PAID)
    assert not lifecycle.can_transition(SalaryStatus.PAID, SalaryStatus.PENDING)


def test_concurrent_approvals_one_wins(db, session_factory, worker, admin):
    s = _create(db, worker, admin)
    other = session_factory()
    try:
        stale = other.get(Salary, s.id)
        assert stale.status == SalaryStatus.PENDING

        services.approve_salary(db, s.id, admin.id)
        with pytest.raises(InvalidTransitionError):
            services.approve_salary(other, s.id, admin.id)
        other.rollback()
    finally:
        other.close()

    db.expire_all()
    assert db.get(Salary, s.id).status == SalaryStatus.APPROVED


def test_edit_after_concurrent_approval_is_refused(db, session_factory, worker, admin):
    s = _create(db, worker, admin)
    other = session_factory()
    try:
        stale = other.get(Salary, s.id)
        assert stale.status == SalaryStatus.PENDING

        services.approve_salary(db, s.id, admin.id)
        with pytest.raises(ConflictError):
            services.update_salary(other, s.id, schemas.SalaryUpdate(base_salary=99999), actor_id=admin.id)
        other.rollback()

        services.mark_salary_paid(db, s.id, "BANK_TRANSFER", "TRX-1", admin.id)
        with pytest.raises(ConflictError, match="PAID"):
            services.add_deduction(other, s.id, schemas.DeductionCreate(
                type=DeductionType.DAMAGE, amount=500, reason="Broken radio"), actor_id=admin.id)
        other.rollback()
    finally:
        other.close()

    db.expire_all()
    row = db.get(Salary, s.id)
    assert row.status == SalaryStatus.PAID
    assert (row.base_salary, row.net_salary, row.total_deductions) == (50000, 50000, 0)


def test_duplicate_period_and_soft_delete(db, worker, admin):
    s = _create(db, worker, admin)
    with pytest.raises(ConflictError):
        _create(db, worker, admin)

    services.delete_salary(db, s.id, "Entered twice", admin.id)
    with pytest.raises(NotFoundError):
        services.delete_salary(db, s.id, "Entered twice", admin.id)
    with pytest.raises(NotFoundError):
        services.approve_salary(db, s.id, admin.id)
    db.rollback()

    # deleted rows do not block a new record for the same period
    again = _create(db, worker, admin)
    assert again.id != s.id
    assert [x.id for x in services.list_salaries(db, month=1, year=2026)] == [again.id]


def test_only_pending_salaries_are_editable(db, worker, admin):
    s = _create(db, worker, admin)
    services.approve_salary(db, s.id, admin.id)
    with pytest.raises(ConflictError):
        services.update_salary(db, s.id, schemas.SalaryUpdate(base_salary=1), actor_id=admin.id)

    services.mark_salary_paid(db, s.id, "CASH", None, admin.id)
    with pytest.raises(ConflictError):
        services.add_deduction(db, s.id, schemas.DeductionCreate(
            type=DeductionType.OTHER, amount=10, reason="late"), actor_id=admin.id)


def test_bulk_approve_reports_each_record(db, worker, admin):
    a = _create(db, worker, admin, month=1)
    b = _create(db, worker, admin, month=2)
    services.approve_salary(db, b.id, admin.id)

    result = services.bulk_approve(db, [a.id, b.id, a.id, 999], admin.id)
    assert result["succeeded"] == [a.id]
    assert set(result["failed"]) == {b.id, 999}


def test_worker_without_payroll_role_is_rejected(db, admin):
    with pytest.raises(BadRequestError):
        _create(db, admin, admin)


# ---------- HTTP ----------
def test_salary_routes(client, worker, make_user):
    secretary = auth_header(make_user(UserRole.SECRETARY))
    res = client.post("/api/salaries/", headers=secretary, json={
        "worker_id": worker.id, "month": 3, "year": 2026, "base_salary": 45000,
        "allowances": [{"name": "Transport", "amount": 8000}],
    })
    assert res.status_code == 201, res.text
    sid = res.json()["id"]
    assert res.json()["net_salary"] == 53000

    assert client.post(f"/api/salaries/{sid}/pay", headers=secretary,
                       json={"payment_method": "CASH"}).status_code == 409
    assert client.post(f"/api/salaries/{sid}/approve", headers=secretary).json()["status"] == "APPROVED"
    res = client.post(f"/api/salaries/{sid}/pay", headers=secretary, json={"payment_method": "CASH"})
    assert res.json()["status"] == "PAID"

    res = client.request("DELETE", f"/api/salaries/{sid}", headers=secretary, json={"reason": "Test data"})
    assert res.status_code == 204
    assert client.get(f"/api/salaries/{sid}", headers=secretary).status_code == 404


def test_operator_cannot_manage_salaries_but_sees_own(client, db, worker, admin):
    _create(db, worker, admin)
    h = auth_header(worker)
    assert client.get("/api/salaries/", headers=h).status_code == 403
    mine = client.get("/api/salaries/me", headers=h)
    assert mine.status_code == 200
    assert len(mine.json()) == 1


def test_director_pay_hidden_from_managers(client, db, admin, director, make_user):
    s = _create(db, director, admin)
    manager = auth_header(make_user(UserRole.MANAGER))
    assert client.get(f"/api/salaries/{s.id}", headers=manager).status_code == 404
    assert client.get("/api/salaries/", headers=manager).json() == []
    assert client.get(f"/api/salaries/{s.id}", headers=auth_header(admin)).status_code == 200
