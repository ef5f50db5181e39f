"""
Tests for the event chat access gate, messages and members
"""

from conftest import auth

from app.models.chat import ChatGroup


def _messages_url(event_id):
    return f"/api/events/{event_id}/messages"


def test_non_participant_is_forbidden_even_if_admin(client, make_user, create_event):
    coach = make_user("Coach", role="coach")
    admin = make_user("Big boss", role="admin")
    eid = create_event(coach)["id"]

    assert client.get(_messages_url(eid), headers=auth(admin)).status_code == 403
    assert client.get(f"/api/events/{eid}/members", headers=auth(admin)).status_code == 403
    assert client.get(f"/api/events/{eid}/group", headers=auth(admin)).status_code == 403
    resp = client.post(_messages_url(eid), json={"content": "Salut"}, headers=auth(admin))
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "error": "You are not a member of this chat group"}


def test_participant_can_send_and_read(client, make_user, create_event, published):
    coach = make_user("Coach", role="coach")
    runner = make_user("Alice", avatar="https://cdn.rct.tn/alice.png")
    eid = create_event(coach)["id"]
    client.post(f"/api/events/{eid}/join", headers=auth(runner))

    sent = client.post(_messages_url(eid), json={"content": "  Rendez-vous 7h  "}, headers=auth(runner))

    assert sent.status_code == 201
    message = sent.json()["data"]
    assert message["content"] == "Rendez-vous 7h"
    assert message["sender_id"] == runner.id
    assert message["sender_name"] == "Alice"
    assert message["sender_avatar"] == "https://cdn.rct.tn/alice.png"
    assert message["id"] and message["created_at"]

    listed = client.get(_messages_url(eid), headers=auth(coach)).json()["data"]
    assert [m["id"] for m in listed] == [message["id"]]

    assert len(published) == 1
    assert published[0][0] == eid
    assert published[0][1]["content"] == "Rendez-vous 7h"


def test_messages_are_ordered(client, make_user, create_event):
    coach = make_user("Coach", role="coach")
    eid = create_event(coach)["id"]

    for text in ["un", "deux", "trois"]:
        client.post(_messages_url(eid), json={"content": text}, headers=auth(coach))

    listed = client.get(_messages_url(eid), headers=auth(coach)).json()["data"]
    assert [m["content"] for m in listed] == ["un", "deux", "trois"]


def test_empty_message_rejected(client, make_user, create_event, published):
    coach = make_user("Coach", role="coach")
    eid = create_event(coach)["id"]

    resp = client.post(_messages_url(eid), json={"content": "   "}, headers=auth(coach))

    assert resp.status_code == 400
    assert resp.json()["error"] == "Message content is required"
    assert client.get(_messages_url(eid), headers=auth(coach)).json()["data"] == []
    assert published == []


def test_sender_name_is_resolved_at_read_time(client, make_user, create_event):
    coach = make_user("Coach", role="coach")
    runner = make_user("Alice")
    eid = create_event(coach)["id"]
    client.post(f"/api/events/{eid}/join", headers=auth(runner))
    client.post(_messages_url(eid), json={"content": "Coucou"}, headers=auth(runner))

    renamed = client.put(f"/api/users/{runner.id}", json={"name": "Alicia"}, headers=auth(runner))
    assert renamed.status_code == 200

    listed = client.get(_messages_url(eid), headers=auth(runner)).json()["data"]
    assert listed[0]["sender_name"] == "Alicia"


def test_former_participant_loses_access(client, make_user, create_event):
    coach = make_user("Coach", role="coach")
    runner = make_user("Runner")
    eid = create_event(coach)["id"]
    client.post(f"/api/events/{eid}/join", headers=auth(runner))
    client.post(_messages_url(eid), json={"content": "Je viens"}, headers=auth(runner))
    client.delete(f"/api/events/{eid}/leave", headers=auth(runner))

    assert client.get(_messages_url(eid), headers=auth(runner)).status_code == 403
    assert client.post(_messages_url(eid), json={"content": "Et là ?"}, headers=auth(runner)).status_code == 403
    # l'historique reste visible pour les membres restants
    assert len(client.get(_messages_url(eid), headers=auth(coach)).json()["data"]) == 1


def test_members_list(client, make_user, create_event):
    coach = make_user("Coach", role="coach")
    runner = make_user("Runner", avatar="https://cdn.rct.tn/r.png")
    eid = create_event(coach)["id"]
    client.post(f"/api/events/{eid}/join", headers=auth(runner))

    resp = client.get(f"/api/events/{eid}/members", headers=auth(runner))

    assert resp.status_code == 200
    members = {m["user_id"]: m for m in resp.json()["data"]}
    assert members[coach.id]["role"] == "admin"
    assert members[coach.id]["name"] == "Coach"
    assert members[runner.id]["role"] == "member"
    assert members[runner.id]["avatar"] == "https://cdn.rct.tn/r.png"


def test_group_endpoint(client, make_user, create_event):
    coach = make_user("Coach", role="coach")
    eid = create_event(coach)["id"]

    resp = client.get(f"/api/events/{eid}/group", headers=auth(coach))

    assert resp.status_code == 200
    group = resp.json()["data"]
    assert group["event_id"] == eid
    assert group["name"].startswith("Chat: ")
    assert client.get("/api/events/4242/group", headers=auth(coach)).status_code == 404


def test_event_without_chat_group_is_not_found(client, db_session, make_user, create_event):
    coach = make_user("Coach", role="coach")
    eid = create_event(coach)["id"]
    db_session.query(ChatGroup).filter(ChatGroup.event_id == eid).delete()
    db_session.commit()

    resp = client.get(_messages_url(eid), headers=auth(coach))

    assert resp.status_code == 404
    assert resp.json()["error"] == "Chat group not found for this event"


def test_chat_of_deleted_event_is_gone(client, make_user, create_event):
    coach = make_user("Coach", role="coach")
    eid = create_event(coach)["id"]
    client.delete(f"/api/events/{eid}", headers=auth(coach))

    assert client.get(_messages_url(eid), headers=auth(coach)).status_code == 404
