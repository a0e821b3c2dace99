# tests/incidents/test_incidents_alerts.py
from types import SimpleNamespace

import pytest

from core.errors import ConflictError
from modules.common.email_service import EmailService
from modules.incidents import schemas, services
from modules.incidents.models import AlertStatus, AlertType
from modules.users.models import UserRole, UserStatus
from tests.conftest import auth_header


def _console_mailer():
    return EmailService(SimpleNamespace(
        EMAIL_ENABLED=True, EMAIL_BACKEND="console", EMAIL_HOST="", EMAIL_PORT=0,
        EMAIL_FROM="alerts@example.com", EMAIL_FROM_NAME="Javelin", EMAIL_USERNAME="", EMAIL_PASSWORD="",
        EMAIL_USE_TLS=False, EMAIL_USE_SSL=False,
    ))


def test_incident_flow(client, make_user):
    operator = auth_header(make_user(UserRole.OPERATOR))
    supervisor = auth_header(make_user(UserRole.SUPERVISOR))

    res = client.post("/api/incidents/", headers=operator,
                      json={"title": "Broken gate", "description": "North gate lock broken", "severity": "HIGH"})
    assert res.status_code == 201
    iid = res.json()["id"]
    assert res.json()["status"] == "REPORTED"

    # operators cannot move incidents along
    assert client.post(f"/api/incidents/{iid}/advance", headers=operator, json={}).status_code == 403

    steps = []
    for notes in (None, "Lock replaced", None):
        res = client.post(f"/api/incidents/{iid}/advance", headers=supervisor, json={"resolution_notes": notes})
        assert res.status_code == 200
        steps.append(res.json()["status"])
    assert steps == ["UNDER_REVIEW", "RESOLVED", "CLOSED"]
    assert res.json()["resolution_notes"] == "Lock replaced"

    assert client.post(f"/api/incidents/{iid}/advance", headers=supervisor, json={}).status_code == 409


def test_reporters_only_see_their_own(client, make_user):
    a, b = make_user(UserRole.OPERATOR), make_user(UserRole.OPERATOR)
    inc = client.post("/api/incidents/", headers=auth_header(a),
                      json={"title": "Noise", "description": "Loud noise at night"}).json()
    assert client.get("/api/incidents/", headers=auth_header(b)).json() == []
    assert client.get(f"/api/incidents/{inc['id']}", headers=auth_header(b)).status_code == 403
    assert len(client.get("/api/incidents/", headers=auth_header(make_user(UserRole.SUPERVISOR))).json()) == 1


def test_alert_approval_flow(client, make_user):
    operator = make_user(UserRole.OPERATOR)
    gs = auth_header(make_user(UserRole.GENERAL_SUPERVISOR))

    alert = client.post("/api/alerts/", headers=auth_header(operator), json={
        "title": "Intruder", "content": "Intruder seen at the east fence", "alert_type": "BREACH",
    }).json()
    assert alert["status"] == "PENDING"

    # only approved alerts go out
    assert client.post(f"/api/alerts/{alert['id']}/send", headers=gs).status_code == 409
    assert client.post(f"/api/alerts/{alert['id']}/approve", headers=gs).json()["status"] == "APPROVED"
    assert client.post(f"/api/alerts/{alert['id']}/reject", headers=gs,
                       json={"reason": "late"}).status_code == 409


def test_send_alert_mails_target_roles_and_acknowledges(db, make_user):
    sender = make_user(UserRole.OPERATOR)
    approver = make_user(UserRole.GENERAL_SUPERVISOR)
    sup = make_user(UserRole.SUPERVISOR)
    make_user(UserRole.SUPERVISOR, status=UserStatus.INACTIVE)

    alert = services.create_alert(db, schemas.AlertCreate(
        title="Fire", content="Fire at the generator house", alert_type=AlertType.FIRE,
        target_roles=[UserRole.SUPERVISOR],
    ), sender)
    services.approve_alert(db, alert.id, approver.id)

    mailer = _console_mailer()
    sent = services.send_alert(db, alert.id, approver.id, mailer=mailer)
    assert sent.status == AlertStatus.SENT
    assert sent.sent_at is not None
    assert len(mailer.outbox) == 1
    assert mailer.outbox[0]["To"] == sup.email
    assert mailer.outbox[0]["Subject"].startswith("[EMERGENCY] FIRE")

    services.acknowledge_alert(db, alert.id, sup)
    acked = services.acknowledge_alert(db, alert.id, sup)
    assert [a.user_id for a in acked.acknowledgments] == [sup.id]


def test_acknowledge_requires_sent_alert(db, make_user):
    user = make_user(UserRole.OPERATOR)
    alert = services.create_alert(db, schemas.AlertCreate(
        title="Test", content="Drill", alert_type=AlertType.OTHER), user)
    with pytest.raises(ConflictError):
        services.acknowledge_alert(db, alert.id, user)


def test_disabled_email_is_suppressed():
    mailer = _console_mailer()
    mailer.s.EMAIL_ENABLED = False
    assert mailer.send("Subject", ["a@example.com"], "<p>hi</p>") is False
    assert mailer.outbox == []


def test_broadcast_hides_recipients_from_each_other():
    mailer = _console_mailer()
    assert mailer.send("Drill", ["b@example.com", " a@example.com", "b@example.com", ""], "<p>drill</p>") is True
    msg = mailer.outbox[0]
    assert msg["To"] == "alerts@example.com"
    assert msg["Bcc"] == "a@example.com, b@example.com"


def test_smtp_without_host_reports_failure():
    mailer = _console_mailer()
    mailer.s.EMAIL_BACKEND = "smtp"
    assert mailer.send("Subject", ["a@example.com"], "<p>hi</p>") is False
