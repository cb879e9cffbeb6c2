from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from urllib.parse import urlencode

from flask import Blueprint, abort, current_app, g, jsonify, request, session

from app.partnerhub.constants import (
    MIN_PASSWORD_LENGTH,
    RESET_TOKEN_HOURS,
    TOKEN_RESET_PASSWORD,
    TOKEN_VERIFY_EMAIL,
    VERIFY_TOKEN_HOURS,
)
from app.partnerhub.db import db_session
from app.partnerhub.mailer import Cta, send_templated_email
from app.partnerhub.models import AuthToken, User
from app.partnerhub.security import generate_token, hash_secret, hash_token, verify_secret
from app.partnerhub.utils import clean_str, is_email, json_body

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user (the partner account) from the signed session cookie.
    Also assigns a per-request request_id for audit/log correlation.
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    try:
        s = db_session()
        user = s.get(User, int(user_id))
        if not user:
            session.pop("user_id", None)
            g.current_user = None
            return
        g.current_user = user
    except Exception as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        session.pop("user_id", None)
        g.current_user = None


def _issue_token(s, email: str, purpose: str, hours: int) -> str:
    raw = generate_token()
    s.add(
        AuthToken(
            identifier=email,
            token_hash=hash_token(raw),
            purpose=purpose,
            expires_at=datetime.utcnow() + timedelta(hours=hours),
        )
    )
    return raw


def _find_token(s, email: str, raw: str, purpose: str) -> AuthToken | None:
    return (
        s.query(AuthToken)
        .filter(
            AuthToken.identifier == email,
            AuthToken.token_hash == hash_token(raw),
            AuthToken.purpose == purpose,
        )
        .one_or_none()
    )


def _link(path: str, **params: str) -> str:
    return f"{current_app.config['APP_BASE_URL']}{path}?{urlencode(params)}"


@bp.post("/signup")
def signup():
    payload = json_body()
    email = (clean_str(payload.get("email")) or "").lower()
    password = payload.get("password") or ""
    if not is_email(email) or not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        abort(400, description="Invalid input")

    s = db_session()
    if s.query(User).filter(User.email == email).one_or_none():
        abort(409, description="Email already in use")

    user = User(email=email, password_hash=hash_secret(password))
    s.add(user)
    raw = _issue_token(s, email, TOKEN_VERIFY_EMAIL, VERIFY_TOKEN_HOURS)
    s.commit()

    send_templated_email(
        to=email,
        subject="Verify your MTN Community Shop account",
        title="Verify your account",
        preheader="Confirm your email to activate your account.",
        message=[
            "Thanks for joining MTN Community Shop.",
            "Confirm your email to activate your account and start onboarding.",
        ],
        cta=Cta("Verify account", _link("/auth/verify", token=raw, email=email)),
    )
    return jsonify({"id": user.id}), 201


@bp.get("/verify")
def verify():
    email = (clean_str(request.args.get("email")) or "").lower()
    raw = clean_str(request.args.get("token"))
    if not email or not raw:
        abort(400, description="Invalid link")

    s = db_session()
    token = _find_token(s, email, raw, TOKEN_VERIFY_EMAIL)
    if not token or token.expires_at < datetime.utcnow():
        abort(400, description="Link expired")
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user:
        abort(400, description="Link expired")

    user.email_verified_at = datetime.utcnow()
    s.delete(token)
    s.commit()
    return jsonify({"status": "verified"})


@bp.post("/login")
def login():
    payload = json_body()
    email = (clean_str(payload.get("email")) or "").lower()
    password = payload.get("password") or ""
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        abort(429, description="Too many login attempts. Please wait 5 minutes.")
    _record_attempt(ip)

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not isinstance(password, str) or not verify_secret(user.password_hash, password):
        current_app.logger.info("Partner login failed (email=%s request_id=%s)", email, g.request_id)
        abort(401, description="Invalid credentials")
    if not user.is_verified:
        abort(403, description="Please verify your email before signing in")

    session.clear()
    session["user_id"] = user.id
    session.permanent = True
    _login_attempts[ip].clear()
    profile = user.profile
    return jsonify({"ok": True, "id": user.id, "status": profile.status if profile else None})


@bp.post("/logout")
def logout():
    session.pop("user_id", None)
    return jsonify({"ok": True})


@bp.post("/forgot-password")
def forgot_password():
    """Always answers ok so the endpoint cannot be used to probe for accounts."""
    email = (clean_str(json_body().get("email")) or "").lower()
    if not is_email(email):
        return jsonify({"ok": True})

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if user and user.is_verified:
        s.query(AuthToken).filter(
            AuthToken.identifier == email, AuthToken.purpose == TOKEN_RESET_PASSWORD
        ).delete(synchronize_session=False)
        raw = _issue_token(s, email, TOKEN_RESET_PASSWORD, RESET_TOKEN_HOURS)
        s.commit()
        send_templated_email(
            to=email,
            subject="Reset Your Password - MTN Community Shop",
            title="Reset Your Password",
            preheader="Reset your MTN Community Shop password",
            message=[
                "We received a request to reset your password.",
                "Click the button below to set a new password. This link will expire in 1 hour.",
            ],
            cta=Cta("Reset Password", _link("/auth/reset-password", email=email, token=raw)),
            footer_note="If you did not request a password reset, you can safely ignore this email.",
        )
    return jsonify({"ok": True})


@bp.post("/reset-password")
def reset_password():
    payload = json_body()
    email = (clean_str(payload.get("email")) or "").lower()
    raw = clean_str(payload.get("token"))
    password = payload.get("password") or ""
    if not is_email(email) or not raw:
        abort(400, description="Invalid input")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        abort(400, description="Password must be at least 8 characters")

    s = db_session()
    token = _find_token(s, email, raw, TOKEN_RESET_PASSWORD)
    if not token:
        abort(400, description="Invalid or expired reset link")
    if token.expires_at < datetime.utcnow():
        s.delete(token)
        s.commit()
        abort(400, description="Reset link has expired. Please request a new one.")

    user = s.query(User).filter(User.email == email).one_or_none()
    if not user:
        abort(400, description="Invalid or expired reset link")
    user.password_hash = hash_secret(password)
    s.query(AuthToken).filter(
        AuthToken.identifier == email, AuthToken.purpose == TOKEN_RESET_PASSWORD
    ).delete(synchronize_session=False)
    s.commit()
    return jsonify({"ok": True})
