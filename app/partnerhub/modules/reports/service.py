"""
CSV report builders. Each builder returns (headers, rows) for one report type.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable

from sqlalchemy import exists, func, or_, select

from app.partnerhub.constants import STATUS_APPROVED
from app.partnerhub.errors import ServiceError
from app.partnerhub.locations import districts, region_name
from app.partnerhub.models import User
from app.partnerhub.modules.agents.models import Agent
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.feedback.models import Feedback
from app.partnerhub.modules.partner_requests.models import RestockRequest, TrainingRequest
from app.partnerhub.modules.partners.models import PartnerProfile
from app.partnerhub.utils import clean_str

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

REPORT_TYPES = (
    "partners",
    "agents",
    "locations",
    "location-coordinates",
    "training-requests",
    "restock-requests",
    "feedback",
)
MANAGER_REPORT_TYPES = ("partners", "agents")
ENTITY_REPORT_TYPES = ("partners", "agents", "locations", "location-coordinates")

CSV_BOM = "\ufeff"


@dataclass(frozen=True)
class ReportFilters:
    status: str | None = None
    region: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None  # exclusive upper bound
    partner_search: str | None = None
    only_with_coords: bool = False

    def audit_metadata(self) -> dict:
        return {
            "status": self.status,
            "region": self.region,
            "dateFrom": self.date_from.date().isoformat() if self.date_from else None,
            "dateTo": (self.date_to - timedelta(days=1)).date().isoformat() if self.date_to else None,
            "partnerSearch": self.partner_search,
            "onlyWithCoords": self.only_with_coords or None,
        }


def _parse_day(value: str | None) -> date | None:
    value = clean_str(value)
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ServiceError("Invalid date") from None


def parse_filters(report_type: str, args) -> ReportFilters:
    """
    Entity reports default to APPROVED; "ALL" drops the status filter.
    dateTo covers the whole named day.
    """
    status = clean_str(args.get("status"))
    if status == "ALL":
        status = None
    elif not status and report_type in ENTITY_REPORT_TYPES:
        status = STATUS_APPROVED
    day_from = _parse_day(args.get("dateFrom"))
    day_to = _parse_day(args.get("dateTo"))
    return ReportFilters(
        status=status,
        region=clean_str(args.get("region")),
        date_from=datetime.combine(day_from, datetime.min.time()) if day_from else None,
        date_to=datetime.combine(day_to + timedelta(days=1), datetime.min.time()) if day_to else None,
        partner_search=clean_str(args.get("partnerSearch")),
        only_with_coords=(args.get("onlyWithCoords") or "").lower() == "true",
    )


def format_dt(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def district_name(region_code: str | None, district_code: str | None) -> str:
    if not region_code or not district_code:
        return ""
    for code, name in districts(region_code):
        if code == district_code:
            return name
    return district_code


def _person(profile: PartnerProfile) -> str:
    return " ".join(p for p in (profile.partner_first_name, profile.partner_surname) if p)


def _partner_match(search: str):
    like = f"%{search.lower()}%"
    return or_(
        func.lower(PartnerProfile.business_name).like(like),
        func.lower(PartnerProfile.partner_first_name).like(like),
        func.lower(PartnerProfile.partner_surname).like(like),
    )


def _dated(q, column, f: ReportFilters):
    if f.date_from:
        q = q.filter(column >= f.date_from)
    if f.date_to:
        q = q.filter(column < f.date_to)
    return q


def partners_report(s: "Session", f: ReportFilters) -> tuple[list[str], list[list]]:
    q = s.query(PartnerProfile).join(User, User.id == PartnerProfile.user_id)
    if f.status:
        q = q.filter(PartnerProfile.status == f.status)
    if f.region:
        q = q.filter(
            exists(
                select(Business.id).where(
                    Business.partner_profile_id == PartnerProfile.id,
                    Business.address_region_code == f.region,
                )
            )
        )
    if f.partner_search:
        q = q.filter(_partner_match(f.partner_search))
    headers = [
        "Business Name", "First Name", "Surname", "Email", "Phone",
        "Payment Wallet", "Ghana Card #", "TIN", "Region",
        "Status", "Submitted", "Approved", "Denied",
    ]
    rows = []
    for p in q.order_by(PartnerProfile.created_at.desc()).all():
        regions = sorted({b.address_region_code for b in p.businesses if b.address_region_code})
        rows.append(
            [
                p.business_name, p.partner_first_name, p.partner_surname, p.user.email, p.phone_number,
                p.payment_wallet, p.ghana_card_number, p.tax_identity_number,
                "; ".join(region_name(r) for r in regions),
                p.status, format_dt(p.submitted_at), format_dt(p.approved_at), format_dt(p.denied_at),
            ]
        )
    return headers, rows


def agents_report(s: "Session", f: ReportFilters) -> tuple[list[str], list[list]]:
    q = (
        s.query(Agent)
        .join(Business, Business.id == Agent.business_id)
        .join(PartnerProfile, PartnerProfile.id == Agent.partner_profile_id)
    )
    if f.status:
        q = q.filter(Agent.status == f.status)
    if f.region:
        q = q.filter(Business.address_region_code == f.region)
    if f.partner_search:
        q = q.filter(_partner_match(f.partner_search))
    headers = [
        "First Name", "Surname", "Phone", "Email", "CP App #",
        "Agent Username", "Minerva Code", "Ghana Card #", "Business Name",
        "Region", "City", "Partner", "Status", "Submitted", "Approved", "Denied",
    ]
    rows = [
        [
            a.first_name, a.surname, a.phone_number, a.email, a.cp_app_number,
            a.agent_username, a.minerva_referral_code, a.ghana_card_number, a.business_name,
            region_name(a.business.address_region_code), a.business.city, a.partner_profile.business_name,
            a.status, format_dt(a.created_at), format_dt(a.approved_at), format_dt(a.denied_at),
        ]
        for a in q.order_by(Agent.created_at.desc()).all()
    ]
    return headers, rows


def _business_query(s: "Session", f: ReportFilters):
    q = s.query(Business).join(PartnerProfile, PartnerProfile.id == Business.partner_profile_id)
    if f.status:
        q = q.filter(Business.status == f.status)
    if f.region:
        q = q.filter(Business.address_region_code == f.region)
    if f.partner_search:
        q = q.filter(_partner_match(f.partner_search))
    return q


def locations_report(s: "Session", f: ReportFilters) -> tuple[list[str], list[list]]:
    headers = [
        "Business Name", "Region", "District", "City", "Landmark",
        "Latitude", "Longitude", "APN", "MiFi IMEI", "Partner", "Status", "Submitted", "Approved", "Denied",
    ]
    rows = [
        [
            b.business_name, region_name(b.address_region_code),
            district_name(b.address_region_code, b.address_district_code), b.city, b.landmark,
            b.gps_latitude, b.gps_longitude, b.apn, b.mifi_imei, b.partner_profile.business_name,
            b.status, format_dt(b.created_at), format_dt(b.approved_at), format_dt(b.denied_at),
        ]
        for b in _business_query(s, f).order_by(Business.created_at.desc()).all()
    ]
    return headers, rows


def location_coordinates_report(s: "Session", f: ReportFilters) -> tuple[list[str], list[list]]:
    q = _business_query(s, f)
    if f.only_with_coords:
        q = q.filter(
            Business.gps_latitude.is_not(None),
            Business.gps_latitude != "",
            Business.gps_longitude.is_not(None),
            Business.gps_longitude != "",
        )
    rows = [[b.business_name, b.gps_latitude, b.gps_longitude] for b in q.order_by(Business.created_at.desc()).all()]
    return ["Business Name", "Latitude", "Longitude"], rows


def training_requests_report(s: "Session", f: ReportFilters) -> tuple[list[str], list[list]]:
    q = s.query(TrainingRequest).join(PartnerProfile, PartnerProfile.id == TrainingRequest.partner_profile_id)
    if f.status:
        q = q.filter(TrainingRequest.status == f.status)
    q = _dated(q, TrainingRequest.created_at, f)
    if f.region:
        q = q.filter(
            exists(
                select(Business.id).where(
                    Business.partner_profile_id == TrainingRequest.partner_profile_id,
                    Business.address_region_code == f.region,
                )
            )
        )
    if f.partner_search:
        q = q.filter(_partner_match(f.partner_search))
    rows = [
        [_person(t.partner_profile), ", ".join(t.agent_names or []), t.notes, t.status, format_dt(t.created_at)]
        for t in q.order_by(TrainingRequest.created_at.desc()).all()
    ]
    return ["Partner", "Agent Names", "Notes", "Status", "Created"], rows


def restock_requests_report(s: "Session", f: ReportFilters) -> tuple[list[str], list[list]]:
    q = (
        s.query(RestockRequest)
        .join(Business, Business.id == RestockRequest.business_id)
        .join(PartnerProfile, PartnerProfile.id == RestockRequest.partner_profile_id)
    )
    if f.status:
        q = q.filter(RestockRequest.status == f.status)
    q = _dated(q, RestockRequest.created_at, f)
    if f.region:
        q = q.filter(Business.address_region_code == f.region)
    if f.partner_search:
        q = q.filter(_partner_match(f.partner_search))
    rows = [
        [
            _person(r.partner_profile), r.business.business_name, r.business.city, ", ".join(r.items or []),
            r.quantity, r.notes, r.status, format_dt(r.created_at),
        ]
        for r in q.order_by(RestockRequest.created_at.desc()).all()
    ]
    return ["Partner", "Business", "City", "Items", "Quantity", "Notes", "Status", "Created"], rows


def feedback_report(s: "Session", f: ReportFilters) -> tuple[list[str], list[list]]:
    q = s.query(Feedback).join(PartnerProfile, PartnerProfile.id == Feedback.partner_profile_id)
    if f.status:
        q = q.filter(Feedback.status == f.status)
    q = _dated(q, Feedback.created_at, f)
    if f.partner_search:
        q = q.filter(_partner_match(f.partner_search))
    rows = [
        [_person(fb.partner_profile), fb.subject, fb.message, fb.status, format_dt(fb.created_at)]
        for fb in q.order_by(Feedback.created_at.desc()).all()
    ]
    return ["Partner", "Subject", "Message", "Status", "Created"], rows


REPORT_BUILDERS: dict[str, Callable[["Session", ReportFilters], tuple[list[str], list[list]]]] = {
    "partners": partners_report,
    "agents": agents_report,
    "locations": locations_report,
    "location-coordinates": location_coordinates_report,
    "training-requests": training_requests_report,
    "restock-requests": restock_requests_report,
    "feedback": feedback_report,
}


def generate_csv(headers: list[str], rows: list[list]) -> str:
    """
    BOM-prefixed CSV with CRLF line endings and no trailing newline.
    Values are quoted only when they contain a comma, a quote, CR or LF.
    """
    out = io.StringIO()
    w = csv.writer(out, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)
    w.writerow(headers)
    for row in rows:
        w.writerow(["" if v is None else v for v in row])
    return CSV_BOM + out.getvalue().removesuffix("\r\n")
