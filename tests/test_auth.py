import re
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse

from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL
from app.partnerhub.db import session_scope
from app.partnerhub.models import AdminOtp, AdminSession, AuditEvent


def _link_params(text: str) -> dict:
    url = re.search(r"https?://\S+", text).group(0)
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True

    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_regions_payload(client):
    r = client.get("/api/locations/regions")
    assert r.status_code == 200
    regions = {row["code"]: row for row in r.json["regions"]}
    assert regions["G"]["name"] == "Greater Accra Region"
    assert {"code": "GA", "name": "Accra Metropolitan"} in regions["G"]["districts"]


def test_signup_verify_login(client, outbox):
    r = client.post("/api/auth/signup", json={"email": "New@Example.com", "password": "password123"})
    assert r.status_code == 201
    assert outbox[-1].to == ["new@example.com"]

    # unverified accounts cannot sign in
    r = client.post("/api/auth/login", json={"email": "new@example.com", "password": "password123"})
    assert r.status_code == 403

    params = _link_params(outbox[-1].text)
    r = client.get("/api/auth/verify", query_string=params)
    assert r.status_code == 200
    assert r.json["status"] == "verified"

    r = client.post("/api/auth/login", json={"email": "new@example.com", "password": "password123"})
    assert r.status_code == 200
    assert r.json["status"] is None

    # signup does not create a profile; the portal reports none yet
    r = client.get("/api/partner/onboarding")
    assert r.status_code == 200
    assert r.json["profile"] is None


def test_signup_validation(client):
    assert client.post("/api/auth/signup", json={"email": "bad", "password": "password123"}).status_code == 400
    assert client.post("/api/auth/signup", json={"email": "a@example.com", "password": "short"}).status_code == 400
    assert client.post("/api/auth/signup", json={"email": "a@example.com", "password": "password123"}).status_code == 201
    r = client.post("/api/auth/signup", json={"email": "a@example.com", "password": "password123"})
    assert r.status_code == 409


def test_login_bad_password(client, make_partner):
    make_partner(email="kofi@example.com")
    r = client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json["error"] == "Invalid credentials"


def test_login_rate_limited_per_ip(client, make_partner):
    make_partner(email="kofi@example.com")
    for _ in range(5):
        r = client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "wrong-password"})
        assert r.status_code == 401

    r = client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "password123"})
    assert r.status_code == 429
    assert r.json["error"] == "Too many login attempts. Please wait 5 minutes."

    r = client.post(
        "/api/auth/login",
        json={"email": "kofi@example.com", "password": "password123"},
        environ_base={"REMOTE_ADDR": "10.0.0.2"},
    )
    assert r.status_code == 200


def test_successful_login_resets_attempts(client, make_partner):
    make_partner(email="kofi@example.com")
    for _ in range(4):
        client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "wrong-password"})
    assert client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "password123"}).status_code == 200

    for _ in range(4):
        r = client.post("/api/auth/login", json={"email": "kofi@example.com", "password": "wrong-password"})
    assert r.status_code == 401


def test_logout_clears_partner_session(make_partner, login_partner):
    user_id, _ = make_partner()
    c = login_partner(user_id)
    assert c.get("/api/partner/onboarding").status_code == 200
    assert c.post("/api/auth/logout").status_code == 200
    assert c.get("/api/partner/onboarding").status_code == 401


def test_password_reset_flow(client, make_partner, outbox):
    make_partner(email="reset@example.com")
    r = client.post("/api/auth/forgot-password", json={"email": "reset@example.com"})
    assert r.status_code == 200
    params = _link_params(outbox[-1].text)

    r = client.post(
        "/api/auth/reset-password",
        json={"email": params["email"], "token": params["token"], "password": "brand-new-pass"},
    )
    assert r.status_code == 200

    # token is single use
    r = client.post(
        "/api/auth/reset-password",
        json={"email": params["email"], "token": params["token"], "password": "another-pass"},
    )
    assert r.status_code == 400

    r = client.post("/api/auth/login", json={"email": "reset@example.com", "password": "brand-new-pass"})
    assert r.status_code == 200


def test_forgot_password_unknown_email_is_silent(client, outbox):
    r = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert outbox == []


def test_admin_otp_login(app, client, make_admin, outbox):
    admin_id = make_admin(ROLE_FULL, email="boss@example.com")

    r = client.post("/api/admin/otp/request", json={"email": "boss@example.com"})
    assert r.status_code == 200
    code = re.search(r"OTP code: (\d{6})", outbox[-1].text).group(1)

    r = client.post("/api/admin/otp/verify", json={"email": "boss@example.com", "code": code})
    assert r.status_code == 200
    assert r.json["role"] == ROLE_FULL

    r = client.get("/api/admin/me")
    assert r.status_code == 200
    assert r.json["admin"]["id"] == admin_id

    with session_scope(app) as s:
        assert s.query(AdminOtp).filter(AdminOtp.admin_id == admin_id).one().status == "USED"
        assert s.query(AuditEvent).filter(AuditEvent.action == "ADMIN_LOGIN").count() == 1

    # a used code cannot be replayed
    r = client.post("/api/admin/otp/verify", json={"email": "boss@example.com", "code": code})
    assert r.status_code == 400

    assert client.post("/api/admin/logout").status_code == 200
    assert client.get("/api/admin/me").status_code == 401


def test_admin_otp_wrong_code(client, make_admin):
    make_admin(ROLE_FULL, email="boss@example.com")
    client.post("/api/admin/otp/request", json={"email": "boss@example.com"})
    r = client.post("/api/admin/otp/verify", json={"email": "boss@example.com", "code": "abcdef"})
    assert r.status_code == 401


def test_admin_otp_unknown_admin(client):
    r = client.post("/api/admin/otp/request", json={"email": "nobody@example.com"})
    assert r.status_code == 404


def test_expired_admin_session_is_rejected(app, make_admin, login_admin):
    admin_id = make_admin(ROLE_FULL)
    c = login_admin(admin_id)
    with session_scope(app) as s:
        for row in s.query(AdminSession).all():
            row.expires_at = datetime.utcnow() - timedelta(minutes=1)
    assert c.get("/api/admin/me").status_code == 401


def test_admin_role_guard(admin_client):
    coordinator = admin_client(ROLE_COORDINATOR, regions=("G",))
    r = coordinator.get("/api/admin/audit")
    assert r.status_code == 403
    assert r.json["error"] == "Forbidden"

    full = admin_client(ROLE_FULL)
    assert full.get("/api/admin/audit").status_code == 200


def test_admin_list(admin_client, make_admin):
    make_admin(ROLE_COORDINATOR, regions=("A",), name="Ama")
    c = admin_client(ROLE_FULL, name="Zed")
    r = c.get("/api/admin/list")
    assert r.status_code == 200
    assert [a["name"] for a in r.json["admins"]] == ["Ama", "Zed"]


def test_partner_routes_require_session(client):
    assert client.get("/api/partner/businesses").status_code == 401
    assert client.get("/api/admin/partners").status_code == 401
