from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL


def _seed(make_partner, make_business, make_agent):
    _, kofi = make_partner()
    _, ama = make_partner(business_name="Ama Telecom", partner_first_name="Ama", partner_surname="Boateng")
    osu = make_business(kofi, business_name="Osu Shop")
    make_business(kofi, business_name="Tema Shop", district="GU")
    make_business(ama, region="A", district="AK", business_name="Adum Shop", city="Kumasi")
    make_business(ama, business_name="Pending Shop", status="SUBMITTED")
    make_agent(kofi, osu, status="APPROVED")
    make_agent(kofi, osu, first_name="Yaw", status="SUBMITTED")


def test_region_stats_for_full_admin(admin_client, make_partner, make_business, make_agent):
    _seed(make_partner, make_business, make_agent)
    r = admin_client(ROLE_FULL).get("/api/admin/map-stats")
    assert r.status_code == 200
    body = r.json
    assert body["isFiltered"] is False
    assert body["totalPartners"] == 2
    assert body["totalBusinesses"] == 3
    assert body["totalAgents"] == 1

    by_code = {row["regionCode"]: row for row in body["stats"]}
    assert by_code["G"] == {
        "regionCode": "G",
        "regionName": "Greater Accra Region",
        "partnerCount": 1,
        "businessCount": 2,
        "agentCount": 1,
    }
    assert by_code["A"]["businessCount"] == 1
    names = [row["regionName"] for row in body["stats"]]
    assert names == sorted(names)


def test_region_stats_search_and_scope(admin_client, make_partner, make_business, make_agent):
    _seed(make_partner, make_business, make_agent)
    full = admin_client(ROLE_FULL)

    r = full.get("/api/admin/map-stats", query_string={"search": "OSU"})
    assert r.status_code == 200
    assert r.json["stats"] == [
        {"regionCode": "G", "regionName": "Greater Accra Region", "partnerCount": 1, "businessCount": 1, "agentCount": 1}
    ]
    assert r.json["totalAgents"] == 1

    r = full.get("/api/admin/map-stats", query_string={"search": "ama"})
    assert r.status_code == 200
    assert r.json["isFiltered"] is True
    assert [row["regionCode"] for row in r.json["stats"]] == ["A"]

    # approved agent names match their location
    r = full.get("/api/admin/map-stats", query_string={"search": "esi"})
    assert [row["businessCount"] for row in r.json["stats"]] == [1]

    coordinator = admin_client(ROLE_COORDINATOR, regions=("A",))
    r = coordinator.get("/api/admin/map-stats")
    assert r.json["assignedRegions"] == ["A"]
    assert [row["regionCode"] for row in r.json["stats"]] == ["A"]


def test_region_detail(admin_client, make_partner, make_business, make_agent):
    _seed(make_partner, make_business, make_agent)
    coordinator = admin_client(ROLE_COORDINATOR, regions=("G",))

    r = coordinator.get("/api/admin/map-stats/G")
    assert r.status_code == 200
    assert r.json["regionName"] == "Greater Accra Region"
    assert [b["businessName"] for b in r.json["businesses"]] == ["Osu Shop", "Tema Shop"]
    osu = r.json["businesses"][0]
    assert osu["partnerName"] == "Kofi Ventures"
    assert [a["firstName"] for a in osu["agents"]] == ["Esi"]
    assert r.json["totalAgents"] == 1

    r = coordinator.get("/api/admin/map-stats/A")
    assert r.status_code == 403
    assert r.json["error"] == "Access denied to this region"


def test_region_detail_search(admin_client, make_partner, make_business, make_agent):
    _seed(make_partner, make_business, make_agent)
    r = admin_client(ROLE_FULL).get("/api/admin/map-stats/G", query_string={"search": "esi"})
    assert r.status_code == 200
    assert [b["businessName"] for b in r.json["businesses"]] == ["Osu Shop"]
