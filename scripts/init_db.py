import json
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.partnerhub.constants import ADMIN_ROLES, GLOBAL_ROLES, ROLE_FULL
from app.partnerhub.locations import is_valid_region
from app.partnerhub.models import Admin, AdminRegionAssignment
from scripts._db_utils import resolve_db_url, script_session


def ensure_admin(s, *, name: str, email: str, role: str, regions: list[str] | None = None) -> Admin:
    """
    Create the admin if missing. Existing admins keep their role and enabled flag;
    missing region assignments are added.
    """
    email = email.strip().lower()
    if role not in ADMIN_ROLES:
        raise ValueError(f"Unknown admin role {role!r} for {email}")
    admin = s.query(Admin).filter(Admin.email == email).one_or_none()
    if not admin:
        admin = Admin(name=name.strip() or email, email=email, role=role, enabled=True)
        s.add(admin)
    if admin.role in GLOBAL_ROLES:
        return admin
    have = set(admin.region_codes)
    for code in regions or []:
        if not is_valid_region(code):
            raise ValueError(f"Unknown region code {code!r} for {email}")
        if code not in have:
            admin.regions.append(AdminRegionAssignment(region_code=code))
            have.add(code)
    return admin


def load_seed_file(path: str) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("SEED_ADMINS_FILE must contain a JSON list of admins")
    return data


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the FULL admin (and optional admins from SEED_ADMINS_FILE) in an idempotent way.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@example.com").strip().lower()
    admin_name = (os.environ.get("ADMIN_NAME") or "Administrator").strip()
    seed_file = (os.environ.get("SEED_ADMINS_FILE") or "").strip()

    entries = load_seed_file(seed_file) if seed_file else []

    with script_session(resolve_db_url(database_url)) as s:
        ensure_admin(s, name=admin_name, email=admin_email, role=ROLE_FULL)
        for entry in entries:
            ensure_admin(
                s,
                name=entry.get("name") or "",
                email=entry["email"],
                role=entry.get("role") or "COORDINATOR",
                regions=entry.get("regions") or [],
            )

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    if entries:
        print(f"Seeded {len(entries)} additional admin(s) from {seed_file}")


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
