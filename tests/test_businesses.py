from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL, ROLE_MANAGER, STATUS_APPROVED, STATUS_DENIED
from app.partnerhub.db import session_scope
from app.partnerhub.modules.notifications.models import Notification

BUSINESS = {
    "businessName": "Adum Shop",
    "addressRegionCode": "A",
    "addressDistrictCode": "AK",
    "addressCode": "AK-039-5028",
    "city": "Kumasi",
    "landmark": "Near Kejetia market",
    "storeFrontUrl": "https://files.example.com/front.jpg",
    "storeInsideUrl": "https://files.example.com/inside.jpg",
    "fireCertificateUrl": "https://files.example.com/fire.pdf",
    "insuranceUrl": "https://files.example.com/insurance.pdf",
}


def test_create_business_notifies_region_admins(app, partner_client, make_admin):
    ashanti = make_admin(ROLE_COORDINATOR, regions=("A",))
    accra = make_admin(ROLE_COORDINATOR, regions=("G",))
    manager = make_admin(ROLE_MANAGER)
    c, _, profile_id = partner_client()

    r = c.post("/api/partner/businesses", json=BUSINESS)
    assert r.status_code == 201
    business = r.json["business"]
    assert business["status"] == "SUBMITTED"
    assert business["partnerProfileId"] == profile_id

    with session_scope(app) as s:
        notified = {n.admin_id for n in s.query(Notification).filter(Notification.admin_id.isnot(None))}
    assert ashanti in notified
    assert accra not in notified
    # managers carry no regions, so region-bound fan-out skips them
    assert manager not in notified

    r = c.get("/api/partner/businesses")
    assert r.status_code == 200
    assert [b["businessName"] for b in r.json["businesses"]] == ["Adum Shop"]
    assert r.json["partnerBusinessName"] == "Kofi Ventures"


def test_create_business_validation(partner_client):
    c, _, _ = partner_client()

    r = c.post("/api/partner/businesses", json={**BUSINESS, "city": ""})
    assert r.status_code == 400
    assert r.json["error"] == "City is required"

    r = c.post("/api/partner/businesses", json={**BUSINESS, "addressDistrictCode": "GA"})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid district for region"

    r = c.post("/api/partner/businesses", json={**BUSINESS, "addressRegionCode": "ZZ"})
    assert r.json["error"] == "Invalid region"

    r = c.post("/api/partner/businesses", json={**BUSINESS, "mifiImei": "1" * 16})
    assert r.json["error"] == "IMEI must be at most 15 digits"

    r = c.post("/api/partner/businesses", json={**BUSINESS, "addressCode": "GA-039-5028"})
    assert r.json["error"] == "Digital address must start with the district code"

    r = c.post("/api/partner/businesses", json={**BUSINESS, "addressCode": "AK-03-5028"})
    assert r.json["error"] == "Digital address code is incomplete"

    r = c.post("/api/partner/businesses", json={**BUSINESS, "addressCode": "ak-0a39-50281"})
    assert r.status_code == 201
    assert r.json["business"]["addressCode"] == "AK-039-5028"


def test_device_details(partner_client, make_business):
    c, _, profile_id = partner_client()
    business_id = make_business(profile_id)

    r = c.post(f"/api/partner/businesses/{business_id}/device-details", json={})
    assert r.status_code == 400
    assert r.json["error"] == "At least one field is required"

    r = c.post(f"/api/partner/businesses/{business_id}/device-details", json={"apn": "x1"})
    assert r.json["error"] == "APN must contain only digits"

    r = c.post(f"/api/partner/businesses/{business_id}/device-details", json={"apn": "4455", "mifiImei": "123456789012345"})
    assert r.status_code == 200
    assert r.json["business"]["apn"] == "4455"
    assert r.json["business"]["mifiImei"] == "123456789012345"


def test_device_details_other_partner(partner_client, make_partner, make_business):
    c, _, _ = partner_client()
    _, other_profile = make_partner()
    business_id = make_business(other_profile)
    r = c.post(f"/api/partner/businesses/{business_id}/device-details", json={"apn": "1"})
    assert r.status_code == 404


def test_admin_business_region_scope(admin_client, make_partner, make_business):
    _, profile_id = make_partner()
    accra_id = make_business(profile_id, region="G", district="GA", business_name="Osu Shop")
    kumasi_id = make_business(profile_id, region="A", district="AK", business_name="Adum Shop")

    coordinator = admin_client(ROLE_COORDINATOR, regions=("G",))
    r = coordinator.get("/api/admin/businesses")
    assert r.status_code == 200
    assert [b["id"] for b in r.json["businesses"]] == [accra_id]
    assert r.json["adminRole"] == ROLE_COORDINATOR

    r = coordinator.get(f"/api/admin/businesses/{kumasi_id}")
    assert r.status_code == 403
    assert r.json["error"] == "forbidden"

    full = admin_client(ROLE_FULL)
    r = full.get("/api/admin/businesses")
    assert {b["id"] for b in r.json["businesses"]} == {accra_id, kumasi_id}

    assert full.get("/api/admin/businesses/999").status_code == 404


def test_admin_business_approve_and_deny(app, admin_client, make_partner, make_business, outbox):
    user_id, profile_id = make_partner()
    business_id = make_business(profile_id, status="SUBMITTED")
    coordinator = admin_client(ROLE_COORDINATOR, regions=("G",), email="coord@example.com")

    r = coordinator.post(f"/api/admin/businesses/{business_id}/deny", json={})
    assert r.status_code == 400
    assert r.json["error"] == "Denial reason is required"

    r = coordinator.post(f"/api/admin/businesses/{business_id}/deny", json={"reason": "Photos unclear"})
    assert r.status_code == 200
    assert r.json["business"]["status"] == STATUS_DENIED
    assert r.json["business"]["denialReason"] == "Photos unclear"

    r = coordinator.post(f"/api/admin/businesses/{business_id}/approve")
    assert r.status_code == 200
    assert r.json["business"]["status"] == STATUS_APPROVED
    assert r.json["business"]["denialReason"] is None

    assert any(m.subject == "Location submission approved" and "coord@example.com" in m.to for m in outbox)
    with session_scope(app) as s:
        titles = {n.title for n in s.query(Notification).filter(Notification.user_id == user_id)}
    assert titles == {"Location approved", "Location denied"}


def test_admin_business_edit(admin_client, make_partner, make_business):
    _, profile_id = make_partner()
    business_id = make_business(profile_id)
    full = admin_client(ROLE_FULL)

    r = full.put(f"/api/admin/businesses/{business_id}", json={"city": "Tema", "landmark": "Community 1"})
    assert r.status_code == 200
    assert r.json["business"]["city"] == "Tema"

    r = full.put(f"/api/admin/businesses/{business_id}", json={"addressDistrictCode": "AK"})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid district for region"
