from app.partnerhub.constants import ROLE_FULL, ROLE_LEGAL
from app.partnerhub.db import session_scope
from app.partnerhub.modules.notifications.models import Notification


def test_send_and_sign_form(app, admin_client, partner_client, make_partner):
    full = admin_client(ROLE_FULL)
    c, user_id, profile_id = partner_client()
    _, other_profile = make_partner()

    r = full.post(
        "/api/admin/forms/send",
        json={"title": "Agency Agreement", "documentUrl": "https://files.example.com/agreement.pdf", "partnerIds": [profile_id, other_profile, 999]},
    )
    assert r.status_code == 201
    forms = r.json["forms"]
    assert [f["partnerProfileId"] for f in forms] == [profile_id, other_profile]
    assert all(f["status"] == "SENT" for f in forms)

    r = c.get("/api/partner/forms")
    assert [f["title"] for f in r.json["forms"]] == ["Agency Agreement"]
    form_id = r.json["forms"][0]["id"]

    r = c.post(f"/api/partner/forms/{form_id}/sign", json={"signerName": "Kofi Mensah"})
    assert r.status_code == 400
    assert r.json["error"] == "Signature is required"

    r = c.post(
        f"/api/partner/forms/{form_id}/sign",
        json={"signerName": "Kofi Mensah", "signatureUrl": "https://files.example.com/sig.png"},
    )
    assert r.status_code == 200
    assert r.json["form"]["status"] == "SIGNED"
    assert r.json["form"]["signedAt"]

    r = c.post(
        f"/api/partner/forms/{form_id}/sign",
        json={"signerName": "Kofi Mensah", "signatureUrl": "https://files.example.com/sig.png"},
    )
    assert r.status_code == 409
    assert r.json["error"] == "Form already signed"

    # the other partner's form is invisible to this partner
    other_form = forms[1]["id"]
    assert c.post(f"/api/partner/forms/{other_form}/sign", json={}).status_code == 404

    r = full.get("/api/admin/forms")
    assert {f["partnerProfile"]["businessName"] for f in r.json["forms"]} == {"Kofi Ventures"}

    with session_scope(app) as s:
        titles = [n.title for n in s.query(Notification).filter(Notification.user_id == user_id)]
        assert titles == ["Form request"]
        assert s.query(Notification).filter(Notification.title == "Form signed").count() == 1


def test_send_form_validation(admin_client):
    full = admin_client(ROLE_FULL)
    r = full.post("/api/admin/forms/send", json={"title": "X", "documentUrl": "ftp://nope", "partnerIds": [1]})
    assert r.status_code == 400
    r = full.post("/api/admin/forms/send", json={"title": "X", "documentUrl": "https://a.example.com/x.pdf", "partnerIds": []})
    assert r.status_code == 400

    legal = admin_client(ROLE_LEGAL, regions=())
    r = legal.post("/api/admin/forms/send", json={"title": "X", "documentUrl": "https://a.example.com/x.pdf", "partnerIds": [1]})
    assert r.status_code == 403
