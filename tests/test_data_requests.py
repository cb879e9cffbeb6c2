from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL, ROLE_LEGAL, ROLE_MANAGER, ROLE_SENIOR_MANAGER


def _create(coordinator, **overrides):
    payload = {"businessName": "Volta Data Hub", "regionCode": "G", "tinNumber": "C0012345678", **overrides}
    r = coordinator.post("/api/admin/data-requests", json=payload)
    assert r.status_code == 201
    return r.json["form"]["id"]


def test_data_request_chain(admin_client, make_admin, login_admin):
    coordinator_id = make_admin(ROLE_COORDINATOR, regions=("G",))
    coordinator = login_admin(coordinator_id)
    other_coordinator = admin_client(ROLE_COORDINATOR, regions=("G",))
    manager = admin_client(ROLE_MANAGER)
    senior = admin_client(ROLE_SENIOR_MANAGER, regions=("G",))
    legal = admin_client(ROLE_LEGAL, regions=())

    form_id = _create(coordinator)

    # coordinators only see their own forms
    assert [f["id"] for f in coordinator.get("/api/admin/data-requests").json["forms"]] == [form_id]
    assert other_coordinator.get("/api/admin/data-requests").json["forms"] == []

    r = other_coordinator.post(f"/api/admin/data-requests/{form_id}/submit", json={})
    assert r.status_code == 403
    assert r.json["error"] == "Only the coordinator who created this can submit"

    r = coordinator.post(f"/api/admin/data-requests/{form_id}/submit", json={})
    assert r.json["form"]["status"] == "PENDING_MANAGER"

    r = manager.post(f"/api/admin/data-requests/{form_id}/submit", json={"comments": "ok"})
    assert r.json["form"]["status"] == "PENDING_SENIOR_MANAGER"

    r = senior.post(f"/api/admin/data-requests/{form_id}/submit", json={"signatureDate": "2024-03-01T10:00:00Z"})
    assert r.json["form"]["status"] == "PENDING_LEGAL"
    assert r.json["form"]["approvals"][-1]["signatureDate"] == "2024-03-01T10:00:00"

    r = legal.post(f"/api/admin/data-requests/{form_id}/submit", json={})
    assert r.status_code == 400
    assert r.json["error"] == "Legal score is required for final approval"

    r = legal.post(f"/api/admin/data-requests/{form_id}/submit", json={"legalScore": 75})
    assert r.status_code == 200
    assert r.json["form"]["status"] == "APPROVED"
    assert r.json["form"]["approvals"][-1]["legalScore"] == 75


def test_full_admin_stands_in_for_every_reviewer(admin_client, make_admin, login_admin):
    coordinator = login_admin(make_admin(ROLE_COORDINATOR, regions=("A",)))
    full = admin_client(ROLE_FULL)
    form_id = _create(coordinator, regionCode="A")
    coordinator.post(f"/api/admin/data-requests/{form_id}/submit", json={})

    assert full.post(f"/api/admin/data-requests/{form_id}/submit", json={}).json["form"]["status"] == "PENDING_SENIOR_MANAGER"
    assert full.post(f"/api/admin/data-requests/{form_id}/submit", json={}).json["form"]["status"] == "PENDING_LEGAL"

    r = full.post(f"/api/admin/data-requests/{form_id}/deny", json={"comments": "Incomplete consent form"})
    assert r.status_code == 200
    assert r.json["form"]["status"] == "DENIED"

    r = coordinator.put(f"/api/admin/data-requests/{form_id}", json={"postalAddress": "P.O. Box 12"})
    assert r.status_code == 200
    assert r.json["form"]["status"] == "DRAFT"


def test_data_request_edit_rules(admin_client, make_admin, login_admin):
    coordinator = login_admin(make_admin(ROLE_COORDINATOR, regions=("G",)))
    form_id = _create(coordinator)

    r = coordinator.put(f"/api/admin/data-requests/{form_id}", json={"regionCode": "A"})
    assert r.status_code == 403

    r = coordinator.put(f"/api/admin/data-requests/{form_id}", json={"authorizedSignatory": "Kojo"})
    assert r.status_code == 400
    assert r.json["error"] == "authorizedSignatory must be an object"

    r = coordinator.put(
        f"/api/admin/data-requests/{form_id}",
        json={"authorizedSignatory": {"name": "Kojo Addo", "position": "CEO"}},
    )
    assert r.status_code == 200
    assert r.json["form"]["authorizedSignatory"]["name"] == "Kojo Addo"

    coordinator.post(f"/api/admin/data-requests/{form_id}/submit", json={})
    r = coordinator.put(f"/api/admin/data-requests/{form_id}", json={"tinNumber": "X"})
    assert r.status_code == 400
    assert r.json["error"] == "Can only edit draft or denied forms"

    assert admin_client(ROLE_FULL).get("/api/admin/data-requests/999").status_code == 404
