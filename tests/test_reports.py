from datetime import date

from app.partnerhub.constants import ROLE_COORDINATOR, ROLE_FULL, ROLE_MANAGER
from app.partnerhub.db import session_scope
from app.partnerhub.models import AuditEvent
from app.partnerhub.modules.reports.service import generate_csv

BOM = "\ufeff"


def test_generate_csv_quoting():
    out = generate_csv(["Name", "Notes"], [["Osu, Shop", 'say "hi"'], ["Adum", None]])
    assert out == BOM + 'Name,Notes\r\n"Osu, Shop","say ""hi"""\r\nAdum,'


def test_partners_report(app, admin_client, make_partner):
    make_partner()
    make_partner(status="SUBMITTED", business_name="Pending Traders")
    full = admin_client(ROLE_FULL)

    r = full.get("/api/admin/reports", query_string={"type": "partners"})
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    assert r.headers["Cache-Control"] == "no-store"
    assert f"partners-report-{date.today().isoformat()}.csv" in r.headers["Content-Disposition"]

    text = r.data.decode("utf-8")
    assert text.startswith(BOM + "Business Name,First Name,Surname,Email,Phone,")
    assert not text.endswith("\r\n")
    lines = text.split("\r\n")
    assert len(lines) == 2
    assert lines[1].startswith("Kofi Ventures,Kofi,Mensah,partner1@example.com,")
    r.close()

    r = full.get("/api/admin/reports", query_string={"type": "partners", "status": "ALL"})
    assert len(r.data.decode("utf-8").split("\r\n")) == 3
    r.close()

    with session_scope(app) as s:
        events = s.query(AuditEvent).filter(AuditEvent.action == "REPORT_GENERATED").all()
        assert len(events) == 2
        assert events[0].entity_id == "partners"


def test_report_access(admin_client):
    full = admin_client(ROLE_FULL)
    r = full.get("/api/admin/reports", query_string={"type": "bogus"})
    assert r.status_code == 400
    assert r.json["error"] == "Invalid report type"

    manager = admin_client(ROLE_MANAGER)
    r = manager.get("/api/admin/reports", query_string={"type": "agents"})
    assert r.status_code == 200
    r.close()
    assert manager.get("/api/admin/reports", query_string={"type": "feedback"}).status_code == 403

    coordinator = admin_client(ROLE_COORDINATOR, regions=("G",))
    assert coordinator.get("/api/admin/reports", query_string={"type": "partners"}).status_code == 403


def test_restock_report_filters(admin_client, partner_client, make_business):
    c, _, profile_id = partner_client()
    business_id = make_business(profile_id, business_name="Osu, Main Shop")
    c.post("/api/partner/requests/restock", json={"items": ["SIM Cards"], "businessId": business_id, "quantity": 5})

    full = admin_client(ROLE_FULL)
    r = full.get("/api/admin/reports", query_string={"type": "restock-requests"})
    lines = r.data.decode("utf-8").split("\r\n")
    r.close()
    assert lines[0] == BOM + "Partner,Business,City,Items,Quantity,Notes,Status,Created"
    assert lines[1].startswith('Kofi Mensah,"Osu, Main Shop",Accra,SIM Cards,5,,OPEN,')

    r = full.get("/api/admin/reports", query_string={"type": "restock-requests", "region": "A"})
    assert r.data.decode("utf-8").split("\r\n") == [lines[0]]
    r.close()

    r = full.get("/api/admin/reports", query_string={"type": "restock-requests", "dateFrom": "not-a-date"})
    assert r.status_code == 400
