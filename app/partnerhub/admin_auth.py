from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from flask import Blueprint, abort, current_app, g, jsonify, request

from app.partnerhub.audit import record_event
from app.partnerhub.constants import ADMIN_SESSION_HOURS, OTP_TTL_MINUTES, ROLE_FULL
from app.partnerhub.db import db_session
from app.partnerhub.mailer import Highlight, send_templated_email
from app.partnerhub.models import Admin, AdminOtp, AdminSession, AuditEvent
from app.partnerhub.rbac import current_admin, require_admin
from app.partnerhub.security import generate_otp, generate_token, hash_secret, hash_token, verify_secret
from app.partnerhub.utils import clean_str, is_email, json_body

bp = Blueprint("admin_auth", __name__)

OTP_PENDING = "PENDING"
OTP_USED = "USED"


def _cookie_name() -> str:
    return current_app.config.get("ADMIN_SESSION_COOKIE", "admin_session")


def load_current_admin() -> None:
    """
    Resolves g.current_admin from the admin_session cookie.
    Expired sessions and disabled admins resolve to None.
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_admin = None
    token = request.cookies.get(_cookie_name())
    if not token:
        return

    s = db_session()
    row = s.query(AdminSession).filter(AdminSession.token_hash == hash_token(token)).one_or_none()
    if not row or row.expires_at <= datetime.utcnow():
        return
    if not row.admin.enabled:
        return
    g.current_admin = row.admin


def admin_to_dict(admin: Admin) -> dict:
    return {
        "id": admin.id,
        "name": admin.name,
        "email": admin.email,
        "role": admin.role,
        "enabled": admin.enabled,
        "regions": [{"regionCode": r.region_code, "sbuCode": r.sbu_code} for r in admin.regions],
    }


def _find_admin(s, email: str | None) -> Admin | None:
    if not email:
        return None
    return s.query(Admin).filter(Admin.email == email.lower()).one_or_none()


@bp.post("/otp/request")
def otp_request():
    email = clean_str(json_body().get("email"))
    if not is_email(email):
        abort(400, description="Invalid input")

    s = db_session()
    admin = _find_admin(s, email)
    if not admin or not admin.enabled:
        abort(404, description="Admin not found")

    code = generate_otp()
    s.add(
        AdminOtp(
            admin_id=admin.id,
            code_hash=hash_secret(code),
            status=OTP_PENDING,
            expires_at=datetime.utcnow() + timedelta(minutes=OTP_TTL_MINUTES),
        )
    )
    s.commit()

    send_templated_email(
        to=admin.email,
        subject="Your admin login code",
        title="Your admin login code",
        preheader="Use this one-time code to complete your sign-in.",
        message=f"Use this one-time code to finish signing in. It expires in {OTP_TTL_MINUTES} minutes.",
        highlights=[Highlight(code, "OTP code")],
        footer_note="If you did not request this code, please ignore this email.",
    )
    return jsonify({"ok": True})


@bp.post("/otp/verify")
def otp_verify():
    payload = json_body()
    email = clean_str(payload.get("email"))
    code = clean_str(payload.get("code")) or ""
    if not is_email(email) or len(code) != 6:
        abort(400, description="Invalid input")

    s = db_session()
    admin = _find_admin(s, email)
    if not admin or not admin.enabled:
        abort(404, description="Admin not found")

    now = datetime.utcnow()
    otp = (
        s.query(AdminOtp)
        .filter(AdminOtp.admin_id == admin.id, AdminOtp.status == OTP_PENDING, AdminOtp.expires_at > now)
        .order_by(AdminOtp.created_at.desc(), AdminOtp.id.desc())
        .first()
    )
    if not otp:
        abort(400, description="No valid OTP")
    if not verify_secret(otp.code_hash, code):
        current_app.logger.warning("Admin OTP mismatch (admin_id=%s request_id=%s)", admin.id, g.request_id)
        abort(401, description="Invalid code")

    otp.status = OTP_USED
    token = generate_token()
    expires_at = now + timedelta(hours=ADMIN_SESSION_HOURS)
    s.add(AdminSession(admin_id=admin.id, token_hash=hash_token(token), expires_at=expires_at))
    record_event(s, actor=admin, action="ADMIN_LOGIN", entity_type="Admin", entity_id=admin.id)
    s.commit()

    resp = jsonify({"ok": True, "role": admin.role})
    resp.set_cookie(
        _cookie_name(),
        token,
        max_age=ADMIN_SESSION_HOURS * 3600,
        httponly=True,
        samesite="Lax",
        secure=bool(current_app.config.get("SESSION_COOKIE_SECURE")),
        path="/",
    )
    return resp


@bp.post("/logout")
def logout():
    token = request.cookies.get(_cookie_name())
    if token:
        s = db_session()
        s.query(AdminSession).filter(AdminSession.token_hash == hash_token(token)).delete(synchronize_session=False)
        s.commit()
    resp = jsonify({"ok": True})
    resp.delete_cookie(_cookie_name(), path="/")
    return resp


@bp.get("/me")
@require_admin()
def me():
    return jsonify({"admin": admin_to_dict(current_admin())})


@bp.get("/list")
@require_admin()
def admins_list():
    s = db_session()
    admins = s.query(Admin).order_by(Admin.name.asc()).all()
    return jsonify({"admins": [{"id": a.id, "name": a.name, "email": a.email, "role": a.role} for a in admins]})


@bp.get("/audit")
@require_admin(ROLE_FULL)
def audit_log():
    s = db_session()
    events = s.query(AuditEvent).order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(200).all()
    return jsonify(
        {
            "events": [
                {
                    "id": ev.id,
                    "createdAt": ev.created_at.isoformat(),
                    "action": ev.action,
                    "entityType": ev.entity_type,
                    "entityId": ev.entity_id,
                    "reason": ev.reason,
                    "metadata": ev.metadata_json,
                    "requestId": ev.request_id,
                    "clientIp": ev.client_ip,
                    "admin": {"name": ev.actor.name, "email": ev.actor.email} if ev.actor else None,
                }
                for ev in events
            ]
        }
    )
