from app.partnerhub.constants import (
    RECIPIENT_ADMIN,
    RECIPIENT_PARTNER,
    ROLE_COORDINATOR,
    ROLE_FULL,
    ROLE_LEGAL,
    ROLE_MANAGER,
)
from app.partnerhub.db import session_scope
from app.partnerhub.modules.notifications.models import Notification
from app.partnerhub.modules.notifications.service import (
    NotificationInput,
    broadcast_admin_notification,
    get_coordinator_emails_for_regions,
    notify_admins_by_role,
)


def _add(app, **kwargs) -> int:
    with session_scope(app) as s:
        n = Notification(title=kwargs.pop("title", "Hello"), message=kwargs.pop("message", "Body"), **kwargs)
        s.add(n)
        s.flush()
        return n.id


def test_admin_inbox(app, make_admin, login_admin):
    admin_id = make_admin(ROLE_FULL)
    other_id = make_admin(ROLE_FULL)
    first = _add(app, recipient_type=RECIPIENT_ADMIN, admin_id=admin_id, title="First")
    _add(app, recipient_type=RECIPIENT_ADMIN, admin_id=admin_id, title="Second")
    foreign = _add(app, recipient_type=RECIPIENT_ADMIN, admin_id=other_id, title="Not mine")
    c = login_admin(admin_id)

    r = c.get("/api/admin/notifications")
    assert r.status_code == 200
    assert {n["title"] for n in r.json["notifications"]} == {"First", "Second"}
    assert c.get("/api/admin/notifications/count").json["count"] == 2

    r = c.post(f"/api/admin/notifications/{first}/read")
    assert r.status_code == 200
    assert r.json["notification"]["readAt"]
    assert c.get("/api/admin/notifications/count").json["count"] == 1

    assert c.post(f"/api/admin/notifications/{foreign}/read").status_code == 404
    assert c.delete(f"/api/admin/notifications/{foreign}").status_code == 404

    r = c.post("/api/admin/notifications/read-all")
    assert r.json["updated"] == 1
    assert c.get("/api/admin/notifications/count").json["count"] == 0

    assert c.delete(f"/api/admin/notifications/{first}").json["success"] is True
    r = c.delete("/api/admin/notifications/clear")
    assert r.json["deleted"] == 1
    assert c.get("/api/admin/notifications").json["notifications"] == []

    with session_scope(app) as s:
        assert s.get(Notification, foreign) is not None


def test_partner_inbox(app, partner_client):
    c, user_id, _ = partner_client()
    _add(app, recipient_type=RECIPIENT_PARTNER, user_id=user_id, title="Welcome", category="SUCCESS")

    r = c.get("/api/partner/notifications")
    assert r.status_code == 200
    assert r.json["unread"] == 1
    assert r.json["notifications"][0]["category"] == "SUCCESS"

    assert c.post("/api/partner/notifications/read-all").json["updated"] == 1
    assert c.get("/api/partner/notifications").json["unread"] == 0


def test_fanout_helpers(app, make_admin):
    coordinator_g = make_admin(ROLE_COORDINATOR, regions=("G",), email="g@example.com")
    coordinator_a = make_admin(ROLE_COORDINATOR, regions=("A",), email="a@example.com")
    manager = make_admin(ROLE_MANAGER)
    full = make_admin(ROLE_FULL)
    make_admin(ROLE_LEGAL, regions=("G",))

    with session_scope(app) as s:
        count = broadcast_admin_notification(s, NotificationInput("Heads up", "Body"), region_codes=["G"])
        assert count == 3
        count = notify_admins_by_role(s, NotificationInput("Region", "Body"), roles=(ROLE_COORDINATOR,), region_code="A")
        assert count == 1
        s.flush()

        broadcast = {n.admin_id for n in s.query(Notification).filter(Notification.title == "Heads up")}
        assert broadcast == {coordinator_g, manager, full}
        regional = {n.admin_id for n in s.query(Notification).filter(Notification.title == "Region")}
        assert regional == {coordinator_a}

        assert get_coordinator_emails_for_regions(s, ["G", "A"]) == ["a@example.com", "g@example.com"]
        assert get_coordinator_emails_for_regions(s, []) == []
