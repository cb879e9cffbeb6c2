from datetime import datetime, timedelta

from app.partnerhub.db import session_scope
from app.partnerhub.models import AuditEvent
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.maintenance.service import days_since, run_maintenance
from app.partnerhub.modules.partners.models import PartnerProfile


def _deny(app, model, row_id, days_ago):
    with session_scope(app) as s:
        row = s.get(model, row_id)
        row.status = "DENIED"
        row.denied_at = datetime.utcnow() - timedelta(days=days_ago, hours=1)


def test_days_since():
    now = datetime(2024, 3, 10, 12, 0)
    assert days_since(datetime(2024, 3, 3, 12, 0), now) == 7
    assert days_since(datetime(2024, 3, 3, 12, 1), now) == 6


def test_requires_token(client):
    assert client.post("/api/admin/maintenance").status_code == 401
    assert client.post("/api/admin/reminders", headers={"x-maintenance-token": "wrong"}).status_code == 401
    r = client.post("/api/admin/maintenance", headers={"Authorization": "Basic abc"})
    assert r.status_code == 401


def test_reminders_and_expiry(app, client, make_partner, make_business, outbox):
    _, expiring = make_partner(status="DENIED", business_name="Old Traders")
    _, reminded = make_partner(status="DENIED", business_name="Recent Traders")
    _, owner = make_partner()
    location = make_business(owner, business_name="Dzorwulu Shop")
    _deny(app, PartnerProfile, expiring, 31)
    _deny(app, PartnerProfile, reminded, 7)
    _deny(app, Business, location, 14)

    r = client.post("/api/admin/maintenance", headers={"Authorization": f"Bearer {app.config['MAINTENANCE_TOKEN']}"})
    assert r.status_code == 200
    assert r.json == {"remindersSent": 2, "expired": 1}

    email = outbox[-1]
    assert email.to == ["ops@example.com"]
    assert "- Recent Traders denied 7 days ago." in email.text
    assert "- Location Dzorwulu Shop denied 14 days ago." in email.text

    with session_scope(app) as s:
        assert s.get(PartnerProfile, expiring).status == "EXPIRED"
        assert s.get(PartnerProfile, reminded).status == "DENIED"
        event = s.query(AuditEvent).filter(AuditEvent.action == "PARTNER_EXPIRED").one()
        assert event.actor_admin_id is None
        assert event.entity_id == str(expiring)

    sent = len(outbox)
    r = client.post("/api/admin/reminders", headers={"x-maintenance-token": app.config["MAINTENANCE_TOKEN"]})
    assert r.json == {"remindersSent": 2, "expired": 0}
    assert len(outbox) == sent + 1


def test_quiet_run_sends_nothing(app, outbox):
    with session_scope(app) as s:
        assert run_maintenance(s) == {"remindersSent": 0, "expired": 0}
    assert outbox == []


def test_token_header_variants(app, client):
    token = app.config["MAINTENANCE_TOKEN"]
    r = client.post("/api/admin/maintenance", headers={"Authorization": f"bearer {token}"})
    assert r.status_code == 200
    assert r.json == {"remindersSent": 0, "expired": 0}

    r = client.post("/api/admin/maintenance", headers={"Authorization": "Bearer ", "x-maintenance-token": token})
    assert r.status_code == 200

    r = client.post("/api/admin/maintenance", headers={"Authorization": "Bearer wrong", "x-maintenance-token": token})
    assert r.status_code == 401
