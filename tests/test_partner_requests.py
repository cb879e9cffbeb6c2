from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL


def test_restock_request(admin_client, partner_client, make_business, outbox):
    c, _, profile_id = partner_client()
    approved = make_business(profile_id, business_name="Osu Shop")
    pending = make_business(profile_id, business_name="Labadi Shop", status="SUBMITTED")

    r = c.post("/api/partner/requests/restock", json={"items": [], "businessId": approved})
    assert r.json["error"] == "At least one item is required"

    r = c.post("/api/partner/requests/restock", json={"items": ["Phones"], "businessId": approved})
    assert r.status_code == 400
    assert r.json["error"].startswith("Items must be drawn from")

    r = c.post("/api/partner/requests/restock", json={"items": ["SIM Cards"], "businessId": pending})
    assert r.json["error"] == "Business not found or not approved"

    r = c.post("/api/partner/requests/restock", json={"items": ["SIM Cards"], "businessId": approved, "quantity": 0})
    assert r.json["error"] == "Quantity must be a positive number"

    for quantity in (2.7, True, "3x", -4):
        r = c.post("/api/partner/requests/restock", json={"items": ["SIM Cards"], "businessId": approved, "quantity": quantity})
        assert r.status_code == 400
        assert r.json["error"] == "Quantity must be a positive number"

    r = c.post(
        "/api/partner/requests/restock",
        json={"items": ["SIM Cards", "Y'ello Biz", "SIM Cards"], "businessId": approved, "quantity": "20", "notes": "Urgent"},
    )
    assert r.status_code == 201
    req = r.json["request"]
    assert req["requestType"] == "restock"
    assert req["items"] == ["SIM Cards", "Y'ello Biz"]
    assert req["quantity"] == 20
    assert req["business"] == {"businessName": "Osu Shop", "city": "Accra"}
    assert outbox[-1].to == ["ops@example.com"]
    assert outbox[-1].subject == "Partner restock request"


def test_training_request(partner_client, make_partner, make_business, make_agent):
    c, _, profile_id = partner_client()
    business_id = make_business(profile_id)
    agent_a = make_agent(profile_id, business_id, first_name="Esi")
    agent_b = make_agent(profile_id, business_id, first_name="Kojo")
    _, other_profile = make_partner()
    foreign = make_agent(other_profile, make_business(other_profile))

    r = c.post("/api/partner/requests/training", json={"agentIds": []})
    assert r.json["error"] == "At least one agent must be selected"

    r = c.post("/api/partner/requests/training", json={"agentIds": [agent_a, foreign]})
    assert r.json["error"] == "Invalid agent selection"

    r = c.post("/api/partner/requests/training", json={"agentIds": [agent_b, agent_a], "notes": "Weekend session"})
    assert r.status_code == 201
    assert r.json["request"]["agentNames"] == ["Esi Asante", "Kojo Asante"]

    r = c.get("/api/partner/requests")
    assert [row["requestType"] for row in r.json["requests"]] == ["training"]


def test_request_threads_and_admin_scope(admin_client, partner_client, make_business):
    c, _, profile_id = partner_client()
    accra = make_business(profile_id, region="G", district="GA")
    kumasi = make_business(profile_id, region="A", district="AK", business_name="Adum Shop", city="Kumasi")
    accra_req = c.post("/api/partner/requests/restock", json={"items": ["SIM Cards"], "businessId": accra}).json["request"]["id"]
    kumasi_req = c.post("/api/partner/requests/restock", json={"items": ["Y'ello Cameras"], "businessId": kumasi}).json["request"]["id"]

    coordinator = admin_client(ROLE_COORDINATOR, regions=("A",))
    r = coordinator.get("/api/admin/requests", query_string={"type": "restock"})
    assert [row["id"] for row in r.json["requests"]] == [kumasi_req]

    full = admin_client(ROLE_FULL)
    r = full.get("/api/admin/requests")
    assert {row["id"] for row in r.json["requests"]} == {accra_req, kumasi_req}

    r = full.post(f"/api/admin/requests/restock/{accra_req}/reply", json={"message": "Shipping Friday"})
    assert r.status_code == 200
    r = full.get(f"/api/admin/requests/restock/{accra_req}")
    assert r.json["request"]["status"] == "RESPONDED"
    assert r.json["request"]["replyCount"] == 1

    r = full.get("/api/admin/requests", query_string={"status": "RESPONDED"})
    assert [row["id"] for row in r.json["requests"]] == [accra_req]

    r = full.patch(f"/api/admin/requests/restock/{accra_req}", json={"status": "CLOSED"})
    assert r.json["request"]["status"] == "CLOSED"

    r = c.post(f"/api/partner/requests/restock/{accra_req}/reply", json={"message": "Any update?"})
    assert r.status_code == 409
    assert r.json["error"] == "Request thread is closed"

    assert full.get("/api/admin/requests/bogus/1").status_code == 404
    assert full.get("/api/admin/requests/training/999").status_code == 404
