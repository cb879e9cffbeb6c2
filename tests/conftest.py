from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from app.partnerhub import create_app
from app.partnerhub.auth import _login_attempts
from app.partnerhub.constants import GLOBAL_ROLES, ROLE_FULL, STATUS_APPROVED
from app.partnerhub.db import session_scope
from app.partnerhub.models import Admin, AdminRegionAssignment, AdminSession, Base, User
from app.partnerhub.modules.agents.models import Agent
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.partners.models import PartnerProfile
from app.partnerhub.security import generate_token, hash_token

MAINTENANCE_TOKEN = "maint-secret"

PROFILE_FIELDS = {
    "business_name": "Kofi Ventures",
    "partner_first_name": "Kofi",
    "partner_surname": "Mensah",
    "phone_number": "0240000000",
    "payment_wallet": "0240000000",
    "ghana_card_number": "GHA-123456789-0",
    "ghana_card_front_url": "https://files.example.com/front.png",
    "ghana_card_back_url": "https://files.example.com/back.png",
    "passport_photo_url": "https://files.example.com/passport.png",
    "tax_identity_number": "P0001234567",
    "business_certificate_url": "https://files.example.com/cert.pdf",
    "fire_certificate_url": "https://files.example.com/fire.pdf",
    "insurance_url": "https://files.example.com/insurance.pdf",
    "apn": "1234",
    "mifi_imei": "356938035643809",
}


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("APP_BASE_URL", "http://localhost")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("EMAIL_BACKEND", "memory")
    monkeypatch.setenv("SMTP_DEFAULT_RECIPIENT", "ops@example.com")
    monkeypatch.setenv("MAINTENANCE_TOKEN", MAINTENANCE_TOKEN)
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    _login_attempts.clear()
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def outbox(app):
    """Live view of the memory email backend."""
    return app.extensions.setdefault("email_outbox", [])


def _assignment(entry) -> AdminRegionAssignment:
    """A bare region code covers the whole region; a (region, sbu) pair limits it to one SBU."""
    if isinstance(entry, tuple):
        region_code, sbu_code = entry
        return AdminRegionAssignment(region_code=region_code, sbu_code=sbu_code)
    return AdminRegionAssignment(region_code=entry)


@pytest.fixture()
def make_admin(app):
    counter = {"n": 0}

    def _make(role: str = ROLE_FULL, regions=("G",), *, email: str | None = None, name: str | None = None) -> int:
        counter["n"] += 1
        email = email or f"{role.lower()}{counter['n']}@example.com"
        with session_scope(app) as s:
            admin = Admin(name=name or f"{role.title()} {counter['n']}", email=email, role=role, enabled=True)
            if role not in GLOBAL_ROLES:
                admin.regions = [_assignment(entry) for entry in regions]
            s.add(admin)
            s.flush()
            return admin.id

    return _make


@pytest.fixture()
def login_admin(app):
    """Returns a test client carrying a live admin_session cookie for `admin_id`."""

    def _login(admin_id: int):
        token = generate_token()
        with session_scope(app) as s:
            s.add(
                AdminSession(
                    admin_id=admin_id,
                    token_hash=hash_token(token),
                    expires_at=datetime.utcnow() + timedelta(hours=8),
                )
            )
        c = app.test_client()
        c.set_cookie("admin_session", token)
        return c

    return _login


@pytest.fixture()
def admin_client(make_admin, login_admin):
    def _client(role: str = ROLE_FULL, regions=("G",), **kwargs):
        return login_admin(make_admin(role, regions, **kwargs))

    return _client


@pytest.fixture()
def make_partner(app):
    """Creates a verified user with a profile; returns (user_id, profile_id)."""
    counter = {"n": 0}

    def _make(status: str | None = STATUS_APPROVED, *, email: str | None = None, **fields) -> tuple[int, int | None]:
        counter["n"] += 1
        email = email or f"partner{counter['n']}@example.com"
        with session_scope(app) as s:
            user = User(
                email=email,
                password_hash=generate_password_hash("password123"),
                email_verified_at=datetime.utcnow(),
            )
            s.add(user)
            s.flush()
            profile_id = None
            if status is not None:
                values = {**PROFILE_FIELDS, **fields}
                profile = PartnerProfile(user_id=user.id, status=status, **values)
                if status == STATUS_APPROVED:
                    profile.approved_at = datetime.utcnow()
                s.add(profile)
                s.flush()
                profile_id = profile.id
            return user.id, profile_id

    return _make


@pytest.fixture()
def login_partner(app):
    def _login(user_id: int):
        c = app.test_client()
        with c.session_transaction() as sess:
            sess["user_id"] = user_id
        return c

    return _login


@pytest.fixture()
def partner_client(make_partner, login_partner):
    """Returns (client, user_id, profile_id) for a fresh partner."""

    def _client(status: str | None = STATUS_APPROVED, **kwargs):
        user_id, profile_id = make_partner(status, **kwargs)
        return login_partner(user_id), user_id, profile_id

    return _client


@pytest.fixture()
def make_business(app):
    def _make(profile_id: int, *, region: str = "G", district: str = "GA", status: str = STATUS_APPROVED, **fields) -> int:
        values = {
            "business_name": "Osu Shop",
            "address_code": f"{district}-123-4567",
            "city": "Accra",
            "store_front_url": "https://files.example.com/front.jpg",
            "store_inside_url": "https://files.example.com/inside.jpg",
            "fire_certificate_url": "https://files.example.com/fire.pdf",
            "insurance_url": "https://files.example.com/insurance.pdf",
            **fields,
        }
        with session_scope(app) as s:
            b = Business(
                partner_profile_id=profile_id,
                status=status,
                address_region_code=region,
                address_district_code=district,
                **values,
            )
            s.add(b)
            s.flush()
            return b.id

    return _make


@pytest.fixture()
def make_agent(app):
    def _make(profile_id: int, business_id: int, **fields) -> int:
        values = {
            "first_name": "Esi",
            "surname": "Asante",
            "phone_number": "0209998888",
            "email": "esi@example.com",
            "ghana_card_number": "GHA-555666777-8",
            "address_region_code": "G",
            "address_district_code": "GA",
            "address_code": "GA-100-2000",
            "city": "Accra",
            "business_name": "Osu Shop",
            "status": "SUBMITTED",
            **fields,
        }
        with session_scope(app) as s:
            agent = Agent(partner_profile_id=profile_id, business_id=business_id, **values)
            s.add(agent)
            s.flush()
            return agent.id

    return _make
