from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, exists, func, or_, select

from app.partnerhub.constants import ROLE_FULL, STATUS_APPROVED
from app.partnerhub.errors import ServiceError
from app.partnerhub.locations import REGION_CODES, region_name
from app.partnerhub.modules.agents.models import Agent
from app.partnerhub.modules.businesses.models import Business
from app.partnerhub.modules.partners.models import PartnerProfile
from app.partnerhub.rbac import admin_can_access_region

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.partnerhub.models import Admin


def _search_condition(search: str | None):
    """Match on the location name, the partner's names, or an approved agent's names."""
    if not search:
        return None
    like = f"%{search.lower()}%"
    partner_match = exists(
        select(PartnerProfile.id).where(
            PartnerProfile.id == Business.partner_profile_id,
            or_(
                func.lower(PartnerProfile.business_name).like(like),
                func.lower(PartnerProfile.partner_first_name).like(like),
                func.lower(PartnerProfile.partner_surname).like(like),
            ),
        ).correlate_except(PartnerProfile)
    )
    agent_match = exists(
        select(Agent.id).where(
            Agent.business_id == Business.id,
            Agent.status == STATUS_APPROVED,
            or_(func.lower(Agent.first_name).like(like), func.lower(Agent.surname).like(like)),
        ).correlate_except(Agent)
    )
    return or_(func.lower(Business.business_name).like(like), partner_match, agent_match)


def _approved_in(regions: list[str], search: str | None):
    conditions = [Business.status == STATUS_APPROVED, Business.address_region_code.in_(regions)]
    condition = _search_condition(search)
    if condition is not None:
        conditions.append(condition)
    return and_(*conditions)


def region_stats(s: "Session", admin: "Admin", search: str | None = None) -> dict[str, Any]:
    regions = list(REGION_CODES) if admin.role == ROLE_FULL else admin.region_codes
    where = _approved_in(regions, search)

    business_counts = dict(
        s.execute(
            select(Business.address_region_code, func.count(Business.id)).where(where).group_by(Business.address_region_code)
        ).all()
    )
    partner_counts = dict(
        s.execute(
            select(Business.address_region_code, func.count(func.distinct(Business.partner_profile_id)))
            .where(where)
            .group_by(Business.address_region_code)
        ).all()
    )
    agent_counts = dict(
        s.execute(
            select(Business.address_region_code, func.count(Agent.id))
            .join(Agent, Agent.business_id == Business.id)
            .where(where, Agent.status == STATUS_APPROVED)
            .group_by(Business.address_region_code)
        ).all()
    )
    total_partners = s.execute(select(func.count(func.distinct(Business.partner_profile_id))).where(where)).scalar_one()

    stats = [
        {
            "regionCode": code,
            "regionName": region_name(code),
            "partnerCount": partner_counts.get(code, 0),
            "businessCount": business_counts.get(code, 0),
            "agentCount": agent_counts.get(code, 0),
        }
        for code in regions
    ]
    if search:
        stats = [r for r in stats if r["partnerCount"] or r["businessCount"] or r["agentCount"]]
    stats.sort(key=lambda r: r["regionName"])

    return {
        "assignedRegions": regions,
        "stats": stats,
        "totalPartners": total_partners,
        "totalBusinesses": sum(r["businessCount"] for r in stats),
        "totalAgents": sum(r["agentCount"] for r in stats),
        "isFiltered": bool(search),
    }


def region_detail(s: "Session", admin: "Admin", region_code: str, search: str | None = None) -> dict[str, Any]:
    if not admin_can_access_region(admin, region_code):
        raise ServiceError("Access denied to this region", 403)

    businesses = (
        s.query(Business)
        .filter(_approved_in([region_code], search))
        .order_by(Business.business_name.asc())
        .all()
    )
    out = []
    for b in businesses:
        agents = [a for a in b.agents if a.status == STATUS_APPROVED]
        out.append(
            {
                "id": b.id,
                "businessName": b.business_name,
                "city": b.city,
                "district": b.address_district_code,
                "status": b.status,
                "partnerName": b.partner_profile.display_name,
                "agentCount": len(agents),
                "agents": [
                    {
                        "id": a.id,
                        "firstName": a.first_name,
                        "surname": a.surname,
                        "phoneNumber": a.phone_number,
                        "email": a.email,
                        "status": a.status,
                    }
                    for a in agents
                ],
            }
        )
    return {
        "regionCode": region_code,
        "regionName": region_name(region_code),
        "businesses": out,
        "totalBusinesses": len(out),
        "totalAgents": sum(b["agentCount"] for b in out),
    }
