from __future__ import annotations

import os
import secrets

from flask import Blueprint, abort, current_app, g, jsonify, request, send_file
from werkzeug.utils import secure_filename

from app.partnerhub.storage import StorageError, normalize_key, storage_from_config
from app.partnerhub.utils import clean_str, json_body

bp = Blueprint("uploads", __name__)

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "application/pdf")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
UPLOAD_PREFIX = "onboarding/"


def _require_session() -> None:
    if not getattr(g, "current_user", None) and not getattr(g, "current_admin", None):
        abort(401, description="Unauthorized")


def build_upload_key(path: str | None, filename: str | None) -> str:
    """onboarding/<dir>/<name>-<suffix>.<ext>; the path must live under onboarding/."""
    folder = (path or "").strip().lstrip("/")
    if not folder.startswith(UPLOAD_PREFIX):
        raise StorageError("Invalid upload path")
    safe = secure_filename(filename or "") or "upload"
    stem, ext = os.path.splitext(safe)
    return normalize_key(f"{folder.rstrip('/')}/{stem}-{secrets.token_hex(4)}{ext.lower()}")


@bp.post("/api/uploads")
def upload_create():
    _require_session()
    f = request.files.get("file")
    if not f or not f.filename:
        abort(400, description="File is required")
    if f.mimetype not in ALLOWED_CONTENT_TYPES:
        abort(400, description="Unsupported file type")
    data = f.read()
    if len(data) > MAX_UPLOAD_BYTES:
        abort(400, description="File exceeds 10MB limit")
    try:
        key = build_upload_key(request.form.get("path"), f.filename)
    except StorageError as e:
        abort(400, description=str(e))

    storage = storage_from_config(current_app.config)
    storage.put_bytes(key, data, content_type=f.mimetype)
    current_app.logger.info("Upload stored key=%s bytes=%s request_id=%s", key, len(data), getattr(g, "request_id", None))
    return jsonify({"url": storage.url(key), "key": key})


@bp.delete("/api/uploads")
def upload_delete():
    _require_session()
    raw = clean_str(json_body().get("key")) or ""
    if not raw.lstrip("/").startswith(UPLOAD_PREFIX):
        abort(400, description="Invalid key")
    try:
        key = normalize_key(raw)
    except StorageError as e:
        abort(400, description=str(e))
    storage_from_config(current_app.config).delete(key)
    return jsonify({"ok": True})


@bp.get("/uploads/<path:key>")
def upload_serve(key: str):
    storage = storage_from_config(current_app.config)
    try:
        fobj = storage.open(key)
    except StorageError:
        abort(404, description="Not found")
    return send_file(fobj, download_name=os.path.basename(key), max_age=3600)
