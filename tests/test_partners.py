from app.partnerhub.constants import (
    ROLE_COORDINATOR,
    ROLE_FULL,
    ROLE_LEGAL,
    ROLE_MANAGER,
    STATUS_APPROVED,
    STATUS_DENIED,
    STATUS_SUBMITTED,
)
from app.partnerhub.db import session_scope
from app.partnerhub.models import AuditEvent, User
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.notifications.models import Notification
from app.partnerhub.modules.partners.models import PartnerProfile

ONBOARDING = {
    "businessName": "Ama Telecom",
    "partnerFirstName": "Ama",
    "partnerSurname": "Owusu",
    "phoneNumber": "0201234567",
    "paymentWallet": "0201234567",
    "ghanaCardNumber": "GHA-987654321-0",
    "ghanaCardFrontUrl": "https://files.example.com/front.png",
    "ghanaCardBackUrl": "https://files.example.com/back.png",
    "passportPhotoUrl": "https://files.example.com/passport.png",
    "taxIdentityNumber": "P0009876543",
    "businessCertificateUrl": "https://files.example.com/cert.pdf",
    "fireCertificateUrl": "https://files.example.com/fire.pdf",
    "insuranceUrl": "https://files.example.com/insurance.pdf",
    "apn": "5678",
    "mifiImei": "356938035643810",
}


def test_onboarding_save_and_submit(app, partner_client, make_admin):
    full_id = make_admin(ROLE_FULL)
    coordinator_id = make_admin(ROLE_COORDINATOR, regions=("A",))
    legal_id = make_admin(ROLE_LEGAL, regions=("A",))
    c, _, _ = partner_client(status=None)

    r = c.put("/api/partner/onboarding", json={"businessName": "Ama Telecom"})
    assert r.status_code == 200
    assert r.json["profile"]["status"] == "DRAFT"

    r = c.post("/api/partner/onboarding/submit")
    assert r.status_code == 400
    assert r.json["error"] == "Missing required fields"
    assert "partnerFirstName" in r.json["missing"]

    r = c.put("/api/partner/onboarding", json=ONBOARDING)
    assert r.status_code == 200
    r = c.post("/api/partner/onboarding/submit")
    assert r.status_code == 200
    assert r.json["profile"]["status"] == STATUS_SUBMITTED
    assert r.json["profile"]["submittedAt"]

    with session_scope(app) as s:
        notified = {n.admin_id for n in s.query(Notification).filter(Notification.admin_id.isnot(None))}
    assert notified == {full_id, coordinator_id}
    assert legal_id not in notified


def test_onboarding_locked_after_submit(partner_client):
    c, _, _ = partner_client(status=STATUS_SUBMITTED)
    r = c.put("/api/partner/onboarding", json={"businessName": "Renamed"})
    assert r.status_code == 409
    assert r.json["error"] == "Profile locked"
    assert c.post("/api/partner/onboarding/submit").status_code == 409


def test_onboarding_field_validation(partner_client):
    c, _, _ = partner_client(status=None)
    r = c.put("/api/partner/onboarding", json={"ghanaCardFrontUrl": "not-a-url"})
    assert r.status_code == 400
    assert r.json["error"] == "ghanaCardFrontUrl must be a valid URL."

    r = c.put("/api/partner/onboarding", json={"apn": "12ab"})
    assert r.status_code == 400
    assert r.json["error"] == "apn must contain only digits."


def test_denied_profile_reopens_as_draft(partner_client):
    c, _, _ = partner_client(status=STATUS_DENIED)
    r = c.put("/api/partner/onboarding", json={"businessName": "Fixed Name"})
    assert r.status_code == 200
    assert r.json["profile"]["status"] == "DRAFT"
    assert r.json["profile"]["businessName"] == "Fixed Name"


def test_unapproved_partner_blocked_from_portal(partner_client):
    c, _, _ = partner_client(status=STATUS_SUBMITTED)
    r = c.get("/api/partner/businesses")
    assert r.status_code == 403
    assert r.json["error"] == "Partner not approved"


def test_admin_approve_partner(app, admin_client, partner_client, outbox):
    admin = admin_client(ROLE_MANAGER)
    pc, user_id, profile_id = partner_client(status=STATUS_SUBMITTED)

    r = admin.get("/api/admin/partners")
    assert r.status_code == 200
    assert r.json["adminRole"] == ROLE_MANAGER
    assert [p["id"] for p in r.json["partners"]] == [profile_id]

    r = admin.post(f"/api/admin/partners/{profile_id}/approve")
    assert r.status_code == 200
    assert r.json["profile"]["status"] == STATUS_APPROVED
    assert any(m.subject == "Your partner submission was approved" for m in outbox)

    assert pc.get("/api/partner/businesses").status_code == 200

    with session_scope(app) as s:
        note = s.query(Notification).filter(Notification.user_id == user_id).one()
        assert note.title == "Partner submission approved"
        assert s.query(AuditEvent).filter(AuditEvent.action == "PARTNER_APPROVED").count() == 1


def test_admin_deny_partner_requires_reason(admin_client, partner_client):
    admin = admin_client(ROLE_FULL)
    _, _, profile_id = partner_client(status=STATUS_SUBMITTED)

    r = admin.post(f"/api/admin/partners/{profile_id}/deny", json={"reason": "  "})
    assert r.status_code == 400
    assert r.json["error"] == "Reason is required"

    r = admin.post(f"/api/admin/partners/{profile_id}/deny", json={"reason": "Blurry ghana card"})
    assert r.status_code == 200
    assert r.json["profile"]["status"] == STATUS_DENIED
    assert r.json["profile"]["denialReason"] == "Blurry ghana card"


def test_admin_edit_partner(admin_client, partner_client):
    admin = admin_client(ROLE_FULL)
    _, _, profile_id = partner_client()
    r = admin.put(f"/api/admin/partners/{profile_id}", json={"phoneNumber": "0551112222"})
    assert r.status_code == 200
    assert r.json["profile"]["phoneNumber"] == "0551112222"


def test_partner_detail_not_found(admin_client):
    assert admin_client(ROLE_FULL).get("/api/admin/partners/999").status_code == 404


def test_suspend_toggle(admin_client, partner_client):
    manager = admin_client(ROLE_MANAGER)
    full = admin_client(ROLE_FULL)
    pc, _, profile_id = partner_client()

    assert manager.post(f"/api/admin/partners/{profile_id}/suspend").status_code == 403

    r = full.post(f"/api/admin/partners/{profile_id}/suspend")
    assert r.status_code == 200
    assert r.json["profile"]["suspended"] is True

    r = pc.get("/api/partner/businesses")
    assert r.status_code == 403
    assert r.json["error"] == "Partner account suspended"

    r = full.post(f"/api/admin/partners/{profile_id}/suspend")
    assert r.json["profile"]["suspended"] is False
    assert pc.get("/api/partner/businesses").status_code == 200


def test_suspend_requires_approved(admin_client, partner_client):
    full = admin_client(ROLE_FULL)
    _, _, profile_id = partner_client(status=STATUS_SUBMITTED)
    r = full.post(f"/api/admin/partners/{profile_id}/suspend")
    assert r.status_code == 400
    assert r.json["error"] == "Only approved partners can be suspended"


def test_delete_partner_cascades(app, admin_client, partner_client, make_business):
    full = admin_client(ROLE_FULL)
    _, user_id, profile_id = partner_client()
    make_business(profile_id)

    r = full.delete(f"/api/admin/partners/{profile_id}/delete", json={"confirmBusinessName": "wrong"})
    assert r.status_code == 400
    assert r.json["error"] == "Business name does not match"

    r = full.delete(f"/api/admin/partners/{profile_id}/delete", json={"confirmBusinessName": "kofi ventures"})
    assert r.status_code == 200
    assert r.json["success"] is True

    with session_scope(app) as s:
        assert s.get(User, user_id) is None
        assert s.get(PartnerProfile, profile_id) is None
        assert s.query(Business).count() == 0


def test_partner_search(admin_client, make_partner):
    make_partner(business_name="Kumasi Links")
    make_partner(business_name="Tamale Connect")
    full = admin_client(ROLE_FULL)

    r = full.get("/api/admin/partners/search", query_string={"q": "kumasi"})
    assert r.status_code == 200
    assert [p["businessName"] for p in r.json["partners"]] == ["Kumasi Links"]

    r = full.get("/api/admin/partners/search", query_string={"q": "k"})
    assert r.json["partners"] == []
