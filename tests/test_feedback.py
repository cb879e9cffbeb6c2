from app.partnerhub.constants import ROLE_FULL
from app.partnerhub.db import session_scope
from app.partnerhub.modules.notifications.models import Notification


def test_feedback_thread(app, admin_client, partner_client):
    full = admin_client(ROLE_FULL, name="Support Desk")
    c, user_id, profile_id = partner_client()

    r = c.post("/api/partner/feedback", json={"subject": "Late SIM delivery", "message": ""})
    assert r.status_code == 400

    r = c.post("/api/partner/feedback", json={"subject": "Late SIM delivery", "message": "Still waiting since Monday."})
    assert r.status_code == 201
    feedback = r.json["feedback"]
    assert feedback["status"] == "OPEN"
    assert feedback["replyCount"] == 0
    feedback_id = feedback["id"]

    r = full.get("/api/admin/feedback")
    assert r.status_code == 200
    row = r.json["feedback"][0]
    assert row["partnerProfile"]["id"] == profile_id
    assert "replies" not in row

    r = full.post(f"/api/admin/feedback/{feedback_id}/reply", json={"message": "Dispatched today."})
    assert r.status_code == 200
    assert r.json["reply"]["authorType"] == "ADMIN"
    assert r.json["reply"]["adminName"] == "Support Desk"

    r = full.get(f"/api/admin/feedback/{feedback_id}")
    assert r.json["feedback"]["status"] == "RESPONDED"
    assert r.json["feedback"]["replyCount"] == 1

    r = c.post(f"/api/partner/feedback/{feedback_id}/reply", json={"message": "Received, thanks."})
    assert r.status_code == 200
    assert r.json["reply"]["adminName"] is None

    r = c.get("/api/partner/feedback")
    thread = r.json["feedback"][0]
    assert thread["status"] == "OPEN"
    assert [m["authorType"] for m in thread["replies"]] == ["ADMIN", "PARTNER"]

    r = full.patch(f"/api/admin/feedback/{feedback_id}", json={"status": "RESPONDED"})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid status"

    r = full.patch(f"/api/admin/feedback/{feedback_id}", json={"status": "CLOSED"})
    assert r.json["feedback"]["status"] == "CLOSED"

    r = c.post(f"/api/partner/feedback/{feedback_id}/reply", json={"message": "One more thing"})
    assert r.status_code == 409
    assert r.json["error"] == "Feedback thread is closed"
    r = full.post(f"/api/admin/feedback/{feedback_id}/reply", json={"message": "Follow up"})
    assert r.status_code == 409

    with session_scope(app) as s:
        assert [n.title for n in s.query(Notification).filter(Notification.user_id == user_id)] == ["Feedback reply"]


def test_feedback_reply_ownership(admin_client, partner_client):
    c, _, _ = partner_client()
    other, _, _ = partner_client()
    feedback_id = c.post("/api/partner/feedback", json={"subject": "Hi", "message": "Hello"}).json["feedback"]["id"]

    r = other.post(f"/api/partner/feedback/{feedback_id}/reply", json={"message": "Not mine"})
    assert r.status_code == 403
    r = other.post("/api/partner/feedback/999/reply", json={"message": "Missing"})
    assert r.status_code == 404
    r = c.post(f"/api/partner/feedback/{feedback_id}/reply", json={"message": " "})
    assert r.status_code == 400
    assert r.json["error"] == "Message is required"

    assert admin_client(ROLE_FULL).get("/api/admin/feedback", query_string={"status": "CLOSED"}).json["feedback"] == []
