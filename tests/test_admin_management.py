import pytest

from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL, ROLE_MANAGER
from app.partnerhub.db import session_scope
from app.partnerhub.errors import ServiceError
from app.partnerhub.models import Admin, AuditEvent
from app.partnerhub.modules.admins.service import toggle_admin


def test_management_requires_full(admin_client):
    manager = admin_client(ROLE_MANAGER)
    assert manager.get("/api/admin/management").status_code == 403


def test_create_admin(app, admin_client):
    full = admin_client(ROLE_FULL)

    r = full.post(
        "/api/admin/management",
        json={"name": "Akua", "email": "Akua@Example.com", "role": ROLE_COORDINATOR, "regionCodes": ["G", "A"]},
    )
    assert r.status_code == 201
    created = r.json["admin"]
    assert created["email"] == "akua@example.com"
    assert sorted(created["regionCodes"]) == ["A", "G"]

    r = full.post(
        "/api/admin/management",
        json={"name": "Akua", "email": "akua@example.com", "role": ROLE_COORDINATOR},
    )
    assert r.status_code == 409

    r = full.post(
        "/api/admin/management",
        json={"name": "Kwame", "email": "kwame@example.com", "role": ROLE_MANAGER, "regionCodes": ["G"]},
    )
    assert r.status_code == 400

    r = full.post(
        "/api/admin/management",
        json={"name": "Kwame", "email": "kwame@example.com", "role": ROLE_COORDINATOR, "regionCodes": ["XX"]},
    )
    assert r.status_code == 400
    assert r.json["error"] == "Invalid region codes: XX"

    r = full.post("/api/admin/management", json={"name": "Kwame", "email": "kwame@example.com", "role": "ROOT"})
    assert r.json["error"] == "Invalid role"

    r = full.get("/api/admin/management")
    assert "akua@example.com" in [a["email"] for a in r.json["admins"]]

    with session_scope(app) as s:
        assert s.query(AuditEvent).filter(AuditEvent.action == "ADMIN_CREATED").count() == 1


def test_toggle_admin(make_admin, login_admin):
    me = make_admin(ROLE_FULL)
    c = login_admin(me)

    r = c.post(f"/api/admin/management/{me}/toggle")
    assert r.status_code == 400
    assert r.json["error"] == "Cannot disable your own account"

    other = make_admin(ROLE_FULL)
    assert c.post(f"/api/admin/management/{other}/toggle").json["enabled"] is False
    assert c.post(f"/api/admin/management/{other}/toggle").json["enabled"] is True

    coordinator = make_admin(ROLE_COORDINATOR)
    coordinator_client = login_admin(coordinator)
    assert c.post(f"/api/admin/management/{coordinator}/toggle").json["enabled"] is False
    # disabled admins lose their session immediately
    assert coordinator_client.get("/api/admin/me").status_code == 401

    assert c.post("/api/admin/management/999/toggle").status_code == 404


def test_last_full_admin_cannot_be_disabled(app, make_admin):
    full = make_admin(ROLE_FULL)
    coordinator = make_admin(ROLE_COORDINATOR)
    with app.test_request_context():
        with session_scope(app) as s:
            with pytest.raises(ServiceError) as exc:
                toggle_admin(s, s.get(Admin, full), s.get(Admin, coordinator))
    assert str(exc.value) == "Cannot disable the last enabled full admin"


def test_update_regions(app, admin_client, make_admin):
    full = admin_client(ROLE_FULL)
    coordinator = make_admin(ROLE_COORDINATOR, regions=("G",))

    r = full.put(f"/api/admin/management/{coordinator}/regions", json={"regionCodes": ["A", "N"]})
    assert r.status_code == 200
    assert r.json["regionCodes"] == ["A", "N"]

    r = full.put(f"/api/admin/management/{coordinator}/regions", json={"regionCodes": "A"})
    assert r.status_code == 400

    other_full = make_admin(ROLE_FULL)
    r = full.put(f"/api/admin/management/{other_full}/regions", json={"regionCodes": ["A"]})
    assert r.status_code == 400

    with session_scope(app) as s:
        actions = [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id)]
        assert s.get(Admin, coordinator).region_codes == ["A", "N"]
    assert actions.count("ADMIN_REGION_ASSIGNED") == 2
    assert actions.count("ADMIN_REGION_REMOVED") == 1
