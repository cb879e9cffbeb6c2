from __future__ import annotations

import io
from datetime import date

from flask import Blueprint, abort, request, send_file

from app.partnerhub.audit import record_event
from app.partnerhub.constants import ROLE_FULL, ROLE_MANAGER
from app.partnerhub.db import db_session
from app.partnerhub.modules.reports.service import (
    MANAGER_REPORT_TYPES,
    REPORT_BUILDERS,
    REPORT_TYPES,
    generate_csv,
    parse_filters,
)
from app.partnerhub.rbac import current_admin, require_admin

bp = Blueprint("admin_reports", __name__)


@bp.get("/reports")
@require_admin(ROLE_FULL, ROLE_MANAGER)
def reports_download():
    admin = current_admin()
    report_type = (request.args.get("type") or "").strip()
    if report_type not in REPORT_TYPES:
        abort(400, description="Invalid report type")
    if admin.role == ROLE_MANAGER and report_type not in MANAGER_REPORT_TYPES:
        abort(403, description="Forbidden")

    s = db_session()
    filters = parse_filters(report_type, request.args)
    headers, rows = REPORT_BUILDERS[report_type](s, filters)
    data = generate_csv(headers, rows).encode("utf-8")

    record_event(
        s,
        actor=admin,
        action="REPORT_GENERATED",
        entity_type="Report",
        entity_id=report_type,
        metadata={"reportType": report_type, "rowCount": len(rows), **filters.audit_metadata()},
    )
    s.commit()

    filename = f"{report_type}-report-{date.today().isoformat()}.csv"
    resp = send_file(
        io.BytesIO(data),
        mimetype="text/csv",
        as_attachment=True,
        download_name=filename,
        max_age=0,
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp
