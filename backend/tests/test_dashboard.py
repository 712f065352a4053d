import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from rev import schemas
from rev.services.pdf import format_money, render_template

from conftest import API


async def _paid_invoice(client, headers, amount, **extra):
    created = await client.post(f"{API}/invoices/", headers=headers, json={
        "items": [{"description": "Prestation", "quantity": 1, "unit_price": amount}],
        **extra,
    })
    await client.post(f"{API}/invoices/{created.json()['id']}/mark-paid", headers=headers)
    return created.json()


# =============================================================================
# Dashboard
# =============================================================================

class TestDashboard:
    """Tests for GET /dashboard/stats"""

    async def test_totals(self, client, auth_headers, sample_project):
        await _paid_invoice(client, auth_headers, 300000, project_id=str(sample_project.id))
        await client.post(f"{API}/invoices/", headers=auth_headers, json={"amount": 80000})
        await client.post(f"{API}/expenses/", headers=auth_headers, json={"description": "Loyer", "amount": 100000})

        response = await client.get(f"{API}/dashboard/stats", headers=auth_headers)

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_revenue"] == 300000
        assert stats["total_expenses"] == 100000
        assert stats["profit"] == 200000
        assert stats["pending_amount"] == 80000
        assert stats["currency"] == "XOF"
        assert stats["counts"]["clients"] == 1
        assert stats["counts"]["active_projects"] == 1
        assert stats["counts"]["paid_invoices"] == 1
        assert stats["counts"]["pending_invoices"] == 1
        assert stats["recent_activities"]

    async def test_date_filter(self, client, auth_headers):
        await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Ancien", "amount": 5000, "date": "2024-01-10T00:00:00Z",
        })
        await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Récent", "amount": 7000,
        })

        since = (datetime.now(timezone.utc) - timedelta(days=30)).isoformat()
        response = await client.get(f"{API}/dashboard/stats", headers=auth_headers, params={"start_date": since})

        assert response.json()["total_expenses"] == 7000
        assert response.json()["counts"]["expenses"] == 1

    async def test_upcoming_deadlines(self, client, auth_headers):
        soon = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()
        later = (datetime.now(timezone.utc) + timedelta(days=90)).isoformat()
        await client.post(f"{API}/projects/", headers=auth_headers, json={"name": "Urgent", "end_date": soon})
        await client.post(f"{API}/projects/", headers=auth_headers, json={"name": "Tranquille", "end_date": later})

        response = await client.get(f"{API}/dashboard/stats", headers=auth_headers)

        assert [p["name"] for p in response.json()["upcoming_deadlines"]] == ["Urgent"]

    async def test_isolated_per_user(self, client, auth_headers, other_headers):
        await _paid_invoice(client, auth_headers, 50000)

        response = await client.get(f"{API}/dashboard/stats", headers=other_headers)

        assert response.json()["total_revenue"] == 0
        assert response.json()["counts"]["invoices"] == 0


# =============================================================================
# Statistics
# =============================================================================

class TestStatistics:
    """Tests for /statistics"""

    async def test_monthly_report(self, client, auth_headers, sample_project):
        await _paid_invoice(client, auth_headers, 400000, project_id=str(sample_project.id))
        await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Sous-traitance", "amount": 100000, "category": "Prestataires",
            "project_id": str(sample_project.id),
        })

        response = await client.get(f"{API}/statistics/", headers=auth_headers, params={"months": 6})

        assert response.status_code == 200
        report = response.json()
        assert len(report["monthly"]) == 6
        current = report["monthly"][-1]
        assert current["month"] == datetime.now(timezone.utc).strftime("%Y-%m")
        assert current["revenue"] == 400000
        assert current["expenses"] == 100000
        assert current["invoices_count"] == 1
        assert report["totals"]["profit_margin"] == 75.0
        assert report["projects"][0]["profit"] == 300000
        assert report["expenses_by_category"] == {"Prestataires": 100000}

    async def test_months_bounds(self, client, auth_headers):
        response = await client.get(f"{API}/statistics/", headers=auth_headers, params={"months": 36})

        assert response.status_code == 400

    async def test_pdf(self, client, auth_headers):
        with patch("rev.api.endpoints.statistics.render_pdf", new=AsyncMock(return_value=b"%PDF-1.7")) as render:
            response = await client.get(f"{API}/statistics/pdf", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert render.await_args.args[0] == "statistics_report.html"


# =============================================================================
# Company settings and document templates
# =============================================================================

class TestCompanySettings:
    """Tests for /settings/company"""

    async def test_defaults_then_save(self, client, auth_headers):
        defaults = await client.get(f"{API}/settings/company", headers=auth_headers)
        assert defaults.status_code == 200
        assert defaults.json()["id"] is None
        assert defaults.json()["country"] == "Côte d'Ivoire"

        saved = await client.put(f"{API}/settings/company", headers=auth_headers, json={
            "name": "Diallo Studio SARL",
            "rccm": "CI-ABJ-2024-B-12345",
            "email": "",
        })
        assert saved.status_code == 200
        assert saved.json()["id"] is not None
        assert saved.json()["email"] is None

        again = await client.get(f"{API}/settings/company", headers=auth_headers)
        assert again.json()["name"] == "Diallo Studio SARL"


class TestTemplates:
    """The HTML handed to WeasyPrint"""

    def test_money_format(self):
        assert format_money(1250000, "XOF") == "1 250 000 FCFA"
        assert format_money(99.5, "EUR") == "99.50 EUR"

    def test_invoice_template(self):
        invoice_id = uuid.uuid4()
        invoice = schemas.Invoice(
            id=invoice_id,
            invoice_number="PRO-202610-123456",
            type=schemas.InvoiceTypeEnum.PROFORMA,
            status=schemas.InvoiceStatusEnum.PENDING,
            amount=300000,
            currency="XOF",
            client_name="Orange Digital",
            user_id=uuid.uuid4(),
            created_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
            items=[schemas.InvoiceItem(
                id=uuid.uuid4(), invoice_id=invoice_id, description="Audit", quantity=1, unit_price=300000, total=300000,
            )],
        )
        company = schemas.CompanySettings(user_id=invoice.user_id, name="Diallo Studio", nif="123456A")

        html = render_template("invoice.html", {
            "invoice": invoice, "items": invoice.items, "company": company, "user": None, "is_proforma": True,
        })

        assert "FACTURE PROFORMA" in html
        assert "PRO-202610-123456" in html
        assert "300 000 FCFA" in html
        assert "01/10/2026" in html
        assert "NIF 123456A" in html
