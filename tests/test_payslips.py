from datetime import datetime

from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL
from app.partnerhub.modules.payslips.service import display_filename


def test_display_filename():
    assert display_filename("slip.PNG", datetime(2024, 3, 5, 14, 7, 9)) == "05032024_020709_PM_GMT.png"
    assert display_filename("receipt", datetime(2024, 12, 31, 0, 30, 0)) == "31122024_123000_AM_GMT.jpg"


def test_upload_and_coordinator_view(admin_client, partner_client, make_business):
    c, _, profile_id = partner_client()
    make_business(profile_id, region="G", district="GA")

    r = c.post("/api/partner/payslips", json={"imageUrl": "https://files.example.com/slip.png"})
    assert r.status_code == 400
    assert r.json["error"] == "imageUrl and originalFilename are required."

    r = c.post("/api/partner/payslips", json={"imageUrl": "not a url", "originalFilename": "slip.png"})
    assert r.json["error"] == "imageUrl must be a valid URL"

    r = c.post(
        "/api/partner/payslips",
        json={"imageUrl": "https://files.example.com/slip.png", "originalFilename": "March slip.png"},
    )
    assert r.status_code == 201
    slip = r.json["paySlip"]
    assert slip["originalFilename"] == "March slip.png"
    assert slip["displayFilename"].endswith("_GMT.png")

    assert [p["id"] for p in c.get("/api/partner/payslips").json["paySlips"]] == [slip["id"]]

    accra = admin_client(ROLE_COORDINATOR, regions=("G",))
    r = accra.get("/api/admin/payslips")
    assert r.status_code == 200
    assert [p["partnerProfile"]["id"] for p in r.json["paySlips"]] == [profile_id]
    assert accra.get("/api/admin/payslips", query_string={"partnerId": profile_id + 1}).json["paySlips"] == []

    kumasi = admin_client(ROLE_COORDINATOR, regions=("A",))
    assert kumasi.get("/api/admin/payslips").json["paySlips"] == []

    assert admin_client(ROLE_FULL).get("/api/admin/payslips").status_code == 403


def test_unapproved_partner_cannot_upload(partner_client):
    c, _, _ = partner_client(status="SUBMITTED")
    r = c.post(
        "/api/partner/payslips",
        json={"imageUrl": "https://files.example.com/slip.png", "originalFilename": "slip.png"},
    )
    assert r.status_code == 403
