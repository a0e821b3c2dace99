# tests/payroll/test_payroll_reports.py
import csv
import io

import pytest

from modules.payroll import schemas, services
from modules.payroll.models import DeductionType
from modules.users.models import UserRole
from tests.conftest import auth_header


@pytest.fixture()
def period(db, make_user):
    """Three workers in January 2026: operator approved, supervisor pending, secretary rejected."""
    admin = make_user(UserRole.ADMIN)
    op = make_user(UserRole.OPERATOR, monthly_salary=40000, account_name="Op One", bank_name="GTBank")
    sup = make_user(UserRole.SUPERVISOR, monthly_salary=70000)
    sec = make_user(UserRole.SECRETARY, monthly_salary=55000)

    def create(worker, base, allowance=0.0):
        allowances = [schemas.AllowanceIn(name="Transport", amount=allowance)] if allowance else []
        return services.create_salary(db, schemas.SalaryCreate(
            worker_id=worker.id, month=1, year=2026, base_salary=base, allowances=allowances), actor_id=admin.id)

    s_op = create(op, 40000, 8000)
    s_sup = create(sup, 70000, 10000)
    s_sec = create(sec, 55000)
    services.add_deduction(db, s_op.id, schemas.DeductionCreate(
        type=DeductionType.ABSENCE, amount=2000, reason="Absent"), actor_id=admin.id)
    services.approve_salary(db, s_op.id, admin.id)
    services.reject_salary(db, s_sec.id, "Duplicate", admin.id)
    return {"admin": admin, "op": op, "sup": sup, "sec": sec, "salaries": (s_op, s_sup, s_sec)}


def test_stats(db, period):
    stats = services.salary_stats(db, month=1, year=2026)
    assert stats["total_workers"] == 3
    assert stats["total_base_salary"] == 165000
    assert stats["total_allowances"] == 18000
    assert stats["total_deductions"] == 2000
    assert stats["total_net_salary"] == 181000
    assert (stats["approved_count"], stats["pending_count"], stats["rejected_count"], stats["paid_count"]) == (1, 1, 1, 0)

    assert services.salary_stats(db, month=2, year=2026)["total_workers"] == 0


def test_list_is_ordered_by_role(db, period):
    roles = [s.worker_role.value for s in services.list_salaries(db, month=1, year=2026)]
    assert roles == ["OPERATOR", "SUPERVISOR", "SECRETARY"]


def test_forecast_and_breakdown(db, period):
    forecast = services.monthly_forecast(db, 1, 2026)
    assert [r["worker_role"].value for r in forecast] == ["OPERATOR", "SUPERVISOR", "SECRETARY"]
    assert forecast[0]["total_net_salary"] == 46000

    breakdown = services.breakdown_by_role(db, 1, 2026)
    assert [r["worker_role"].value for r in breakdown] == ["SUPERVISOR", "SECRETARY", "OPERATOR"]
    assert breakdown[0]["avg_net_salary"] == 80000


def test_profiles_use_monthly_salary(db, period):
    rows = services.worker_salaries_from_profiles(db, 1, 2026)
    by_id = {r["worker_id"]: r for r in rows}
    op = by_id[period["op"].id]
    assert op["base_salary"] == 40000
    assert op["total_deductions"] == 2000
    assert op["net_salary"] == 38000
    assert op["status"] == "APPROVED"
    assert op["account_name"] == "Op One"
    assert len(op["deductions"]) == 1
    assert by_id[period["sup"].id]["account_number"] == "Not provided"

    only_rejected = services.worker_salaries_from_profiles(db, 1, 2026, status="REJECTED")
    assert [r["worker_id"] for r in only_rejected] == [period["sec"].id]


def test_export_csv(client, period):
    res = client.get("/api/salaries/export", params={"month": 1, "year": 2026}, headers=auth_header(period["admin"]))
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(res.text)))
    assert len(rows) == 3
    assert rows[0]["worker_role"] == "OPERATOR"
    assert rows[0]["net_salary"] == "46000.00"


def test_report_routes(client, period):
    h = auth_header(period["admin"])
    res = client.get("/api/salaries/stats", params={"month": 1, "year": 2026}, headers=h)
    assert res.json()["rejected_count"] == 1
    res = client.get("/api/salaries/forecast", params={"month": 1, "year": 2026}, headers=h)
    assert len(res.json()) == 3
    res = client.get("/api/salaries/profiles", params={"month": 1, "year": 2026}, headers=h)
    assert res.status_code == 200
    assert len(res.json()) == 3

    res = client.get(f"/api/salaries/worker/{period['op'].id}/history", headers=auth_header(period["sup"]))
    assert res.status_code == 403
    res = client.get(f"/api/salaries/worker/{period['op'].id}/history", headers=auth_header(period["op"]))
    assert res.status_code == 200
