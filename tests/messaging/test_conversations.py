# tests/messaging/test_conversations.py
from modules.users.models import UserRole
from tests.conftest import auth_header


def test_direct_conversation_is_reused(client, make_user):
    a, b = make_user(), make_user()
    h = auth_header(a)
    first = client.post("/api/messaging/conversations", headers=h, json={"participant_ids": [b.id]})
    assert first.status_code == 201
    second = client.post("/api/messaging/conversations", headers=auth_header(b), json={"participant_ids": [a.id]})
    assert second.json()["id"] == first.json()["id"]
    assert {p["user_id"] for p in first.json()["participants"]} == {a.id, b.id}


def test_direct_conversation_needs_two_people(client, make_user):
    a, b, c = make_user(), make_user(), make_user()
    res = client.post("/api/messaging/conversations", headers=auth_header(a), json={"participant_ids": [b.id, c.id]})
    assert res.status_code == 400
    res = client.post("/api/messaging/conversations", headers=auth_header(a), json={"participant_ids": [999]})
    assert res.status_code == 404


def test_messages_and_unread_counts(client, make_user):
    a, b, outsider = make_user(), make_user(), make_user(UserRole.SUPERVISOR)
    conv = client.post("/api/messaging/conversations", headers=auth_header(a),
                       json={"type": "GROUP", "name": "Night shift", "participant_ids": [b.id]}).json()
    url = f"/api/messaging/conversations/{conv['id']}/messages"

    for text in ("Gate 2 is open", "Please check"):
        assert client.post(url, headers=auth_header(a), json={"content": text}).status_code == 201

    summary = client.get("/api/messaging/conversations", headers=auth_header(b)).json()
    assert summary[0]["unread_count"] == 2
    assert summary[0]["last_message_preview"] == "Please check"

    assert client.post(f"/api/messaging/conversations/{conv['id']}/read", headers=auth_header(b)).status_code == 204
    summary = client.get("/api/messaging/conversations", headers=auth_header(b)).json()
    assert summary[0]["unread_count"] == 0

    assert client.get(url, headers=auth_header(outsider)).status_code == 403
    assert len(client.get(url, headers=auth_header(b)).json()) == 2


def test_edit_and_delete_own_messages_only(client, make_user):
    a, b = make_user(), make_user()
    conv = client.post("/api/messaging/conversations", headers=auth_header(a), json={"participant_ids": [b.id]}).json()
    msg = client.post(f"/api/messaging/conversations/{conv['id']}/messages", headers=auth_header(a),
                      json={"content": "hello"}).json()

    assert client.put(f"/api/messaging/messages/{msg['id']}", headers=auth_header(b),
                      json={"content": "hijack"}).status_code == 403
    res = client.put(f"/api/messaging/messages/{msg['id']}", headers=auth_header(a), json={"content": "hello all"})
    assert res.json()["is_edited"] is True

    assert client.delete(f"/api/messaging/messages/{msg['id']}", headers=auth_header(a)).status_code == 204
    assert client.get(f"/api/messaging/conversations/{conv['id']}/messages", headers=auth_header(b)).json() == []
    assert client.delete(f"/api/messaging/messages/{msg['id']}", headers=auth_header(a)).status_code == 404
