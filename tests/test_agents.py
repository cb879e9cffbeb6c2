from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL, STATUS_APPROVED, STATUS_DENIED


def _agent_payload(business_id: int, **overrides) -> dict:
    payload = {
        "firstName": "Yaw",
        "surname": "Boateng",
        "phoneNumber": "0244556677",
        "email": "yaw@example.com",
        "ghanaCardNumber": "GHA-111222333-4",
        "ghanaCardFrontUrl": "https://files.example.com/yaw-front.png",
        "ghanaCardBackUrl": "https://files.example.com/yaw-back.png",
        "passportPhotoUrl": "https://files.example.com/yaw.png",
        "addressRegionCode": "G",
        "addressDistrictCode": "GA",
        "addressCode": "GA-183-8164",
        "city": "Accra",
        "businessName": "Osu Shop",
        "businessId": business_id,
    }
    payload.update(overrides)
    return payload

def test_create_and_list_agents(partner_client, make_business):
    c, _, profile_id = partner_client()
    business_id = make_business(profile_id)

    r = c.post("/api/partner/agents", json=_agent_payload(business_id))
    assert r.status_code == 201
    agent = r.json["agent"]
    assert agent["status"] == "SUBMITTED"
    assert agent["business"]["id"] == business_id
    assert agent["cpAppNumber"] is None

    r = c.get("/api/partner/agents")
    assert r.status_code == 200
    assert [a["id"] for a in r.json["agents"]] == [agent["id"]]
    assert [b["id"] for b in r.json["businesses"]] == [business_id]
    assert r.json["partnerBusinessName"] == "Kofi Ventures"

def test_create_agent_validation(partner_client, make_partner, make_business):
    c, _, profile_id = partner_client()
    business_id = make_business(profile_id)
    _, other_profile = make_partner()
    foreign_business = make_business(other_profile)

    r = c.post("/api/partner/agents", json=_agent_payload(business_id, email="nope"))
    assert r.status_code == 400
    assert r.json["error"] == "email must be a valid email address"

    r = c.post("/api/partner/agents", json=_agent_payload(business_id, firstName=""))
    assert r.json["error"] == "firstName is required"

    r = c.post("/api/partner/agents", json=_agent_payload(foreign_business))
    assert r.status_code == 400
    assert r.json["error"] == "Invalid business"

    r = c.post("/api/partner/agents", json=_agent_payload("abc"))
    assert r.json["error"] == "Invalid business"

def test_cp_app_number(app, make_agent, partner_client, make_business):
    c, _, profile_id = partner_client()
    agent_id = make_agent(profile_id, make_business(profile_id))

    r = c.post(f"/api/partner/agents/{agent_id}/cp-app", json={"cpAppNumber": "12345678901"})
    assert r.status_code == 400
    assert r.json["error"] == "CP app number must be 1-10 digits"

    r = c.post(f"/api/partner/agents/{agent_id}/cp-app", json={"cpAppNumber": "0012345"})
    assert r.status_code == 200
    assert r.json["agent"]["cpAppNumber"] == "0012345"

def test_agent_credentials(app, make_agent, partner_client, make_business):
    c, _, profile_id = partner_client()
    agent_id = make_agent(profile_id, make_business(profile_id))

    r = c.post(f"/api/partner/agents/{agent_id}/credentials", json={})
    assert r.json["error"] == "At least one field is required"

    r = c.post(f"/api/partner/agents/{agent_id}/credentials", json={"minervaReferralCode": "ab-12"})
    assert r.json["error"] == "Referral code must be alphanumeric"

    r = c.post(
        f"/api/partner/agents/{agent_id}/credentials",
        json={"agentUsername": "esi.asante", "minervaReferralCode": "MIN123"},
    )
    assert r.status_code == 200
    assert r.json["agent"]["agentUsername"] == "esi.asante"
    assert r.json["agent"]["minervaReferralCode"] == "MIN123"

def test_other_partners_agent_not_found(app, make_agent, partner_client, make_partner, make_business):
    c, _, _ = partner_client()
    _, other_profile = make_partner()
    agent_id = make_agent(other_profile, make_business(other_profile))
    r = c.post(f"/api/partner/agents/{agent_id}/cp-app", json={"cpAppNumber": "1"})
    assert r.status_code == 404

def test_admin_agent_scope_and_review(app, make_agent, admin_client, make_partner, make_business, outbox):
    _, profile_id = make_partner()
    accra_agent = make_agent(profile_id, make_business(profile_id, region="G", district="GA"))
    tamale_agent = make_agent(
        profile_id, make_business(profile_id, region="N", district="NT"), first_name="Abu"
    )

    coordinator = admin_client(ROLE_COORDINATOR, regions=("G",), email="accra@example.com")
    r = coordinator.get("/api/admin/agents")
    assert r.status_code == 200
    assert [a["id"] for a in r.json["agents"]] == [accra_agent]
    assert coordinator.get(f"/api/admin/agents/{tamale_agent}").status_code == 403

    r = coordinator.post(f"/api/admin/agents/{accra_agent}/deny", json={"reason": "Card expired"})
    assert r.status_code == 200
    assert r.json["agent"]["status"] == STATUS_DENIED

    r = coordinator.post(f"/api/admin/agents/{accra_agent}/approve")
    assert r.json["agent"]["status"] == STATUS_APPROVED
    # the reviewing admin is copied on agent decisions
    assert any(m.subject == "Agent submission approved" and "accra@example.com" in m.to for m in outbox)

    full = admin_client(ROLE_FULL)
    r = full.put(f"/api/admin/agents/{tamale_agent}", json={"phoneNumber": "0501234567"})
    assert r.status_code == 200
    assert r.json["agent"]["phoneNumber"] == "0501234567"
