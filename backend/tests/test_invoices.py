import re
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from rev.services.exceptions import EmailDeliveryError, WaveAPIError

from conftest import API


async def _create_invoice(client, headers, **overrides):
    payload = {
        "items": [
            {"description": "Développement", "quantity": 2, "unit_price": 150000},
            {"description": "Hébergement", "quantity": 1, "unit_price": 25000},
        ],
    }
    payload.update(overrides)
    response = await client.post(f"{API}/invoices/", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Invoice CRUD
# =============================================================================

class TestInvoiceCreate:
    """Tests for POST /invoices/"""

    async def test_amount_is_sum_of_items(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        assert invoice["amount"] == 325000
        assert [item["total"] for item in invoice["items"]] == [300000, 25000]
        assert invoice["status"] == "PENDING"
        assert re.fullmatch(r"INV-\d{6}-\d{6}", invoice["invoice_number"])

    async def test_proforma_number_prefix(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers, type="PROFORMA")

        assert invoice["invoice_number"].startswith("PRO-")

    async def test_client_snapshot_from_project(self, client, auth_headers, sample_project, sample_client):
        invoice = await _create_invoice(client, auth_headers, project_id=str(sample_project.id))

        assert invoice["client_id"] == str(sample_client.id)
        assert invoice["client_name"] == "Orange Digital"
        assert invoice["client_email"] == "compta@orange.example"

    async def test_foreign_project_is_rejected(self, client, other_headers, sample_project):
        response = await client.post(f"{API}/invoices/", headers=other_headers, json={
            "project_id": str(sample_project.id),
            "amount": 1000,
        })

        assert response.status_code == 404

    async def test_update_replaces_items(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.put(f"{API}/invoices/{invoice['id']}", headers=auth_headers, json={
            "items": [{"description": "Forfait", "quantity": 1, "unit_price": 90000}],
        })

        assert response.status_code == 200
        assert response.json()["amount"] == 90000
        assert len(response.json()["items"]) == 1

    async def test_filter_by_type(self, client, auth_headers):
        await _create_invoice(client, auth_headers)
        await _create_invoice(client, auth_headers, type="PROFORMA")

        response = await client.get(f"{API}/invoices/", headers=auth_headers, params={"type": "PROFORMA"})

        assert [i["type"] for i in response.json()] == ["PROFORMA"]


# =============================================================================
# Payment status and proforma conversion
# =============================================================================

class TestMarkPaid:
    """Tests for POST /invoices/{id}/mark-paid"""

    async def test_mark_paid_notifies(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.post(f"{API}/invoices/{invoice['id']}/mark-paid", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "PAID"
        assert response.json()["paid_date"] is not None

        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        assert notifications.json()["unread_count"] == 1
        assert notifications.json()["notifications"][0]["type"] == "INVOICE_PAID"

    async def test_mark_paid_twice(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)
        await client.post(f"{API}/invoices/{invoice['id']}/mark-paid", headers=auth_headers)

        response = await client.post(f"{API}/invoices/{invoice['id']}/mark-paid", headers=auth_headers)

        assert response.status_code == 400


class TestConvertProforma:
    """Tests for POST /invoices/{id}/convert"""

    async def test_convert(self, client, auth_headers):
        proforma = await _create_invoice(client, auth_headers, type="PROFORMA")

        response = await client.post(f"{API}/invoices/{proforma['id']}/convert", headers=auth_headers)

        assert response.status_code == 201
        invoice = response.json()
        assert invoice["type"] == "INVOICE"
        assert invoice["invoice_number"] == f"INV-{datetime.now(timezone.utc).year}-001"
        assert invoice["amount"] == proforma["amount"]
        assert len(invoice["items"]) == 2

        original = await client.get(f"{API}/invoices/{proforma['id']}", headers=auth_headers)
        assert original.json()["status"] == "CANCELLED"

    async def test_convert_and_mark_paid(self, client, auth_headers):
        proforma = await _create_invoice(client, auth_headers, type="PROFORMA")

        response = await client.post(
            f"{API}/invoices/{proforma['id']}/convert", headers=auth_headers, json={"mark_as_paid": True}
        )

        assert response.json()["status"] == "PAID"

    async def test_sequential_numbers(self, client, auth_headers):
        year = datetime.now(timezone.utc).year
        numbers = []
        for _ in range(2):
            proforma = await _create_invoice(client, auth_headers, type="PROFORMA")
            converted = await client.post(f"{API}/invoices/{proforma['id']}/convert", headers=auth_headers)
            numbers.append(converted.json()["invoice_number"])

        assert numbers == [f"INV-{year}-001", f"INV-{year}-002"]

    async def test_convert_regular_invoice(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.post(f"{API}/invoices/{invoice['id']}/convert", headers=auth_headers)

        assert response.status_code == 404

    async def test_project_already_invoiced(self, client, auth_headers, sample_project):
        await _create_invoice(client, auth_headers, project_id=str(sample_project.id))
        proforma = await _create_invoice(client, auth_headers, type="PROFORMA", project_id=str(sample_project.id))

        response = await client.post(f"{API}/invoices/{proforma['id']}/convert", headers=auth_headers)

        assert response.status_code == 400


# =============================================================================
# PDF, email and Wave payment links
# =============================================================================

class TestInvoiceDocuments:
    """Tests for /invoices/{id}/pdf and /invoices/{id}/send"""

    async def test_pdf(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        with patch("rev.api.endpoints.invoices.render_pdf", new=AsyncMock(return_value=b"%PDF-1.7")) as render:
            response = await client.get(f"{API}/invoices/{invoice['id']}/pdf", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert invoice["invoice_number"] in response.headers["content-disposition"]
        template_name, context = render.await_args.args
        assert template_name == "invoice.html"
        assert context["is_proforma"] is False

    async def test_send_requires_smtp(self, client, auth_headers, sample_client):
        invoice = await _create_invoice(client, auth_headers, client_id=str(sample_client.id))

        response = await client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)

        assert response.status_code == 400

    async def test_send(self, client, auth_headers, smtp_user, sample_client):
        invoice = await _create_invoice(client, auth_headers, client_id=str(sample_client.id))

        with patch("rev.api.endpoints.invoices.render_pdf", new=AsyncMock(return_value=b"%PDF-1.7")), \
                patch("rev.services.email.send_email", new=AsyncMock()) as send:
            response = await client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"sent": True, "recipient": "compta@orange.example"}
        assert send.await_args.kwargs["attachment"] == b"%PDF-1.7"

    async def test_send_smtp_failure(self, client, auth_headers, smtp_user, sample_client):
        invoice = await _create_invoice(client, auth_headers, client_id=str(sample_client.id))

        with patch("rev.api.endpoints.invoices.render_pdf", new=AsyncMock(return_value=b"%PDF-1.7")), \
                patch("rev.services.email.send_email", new=AsyncMock(side_effect=EmailDeliveryError("refused"))):
            response = await client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)

        assert response.status_code == 502


class TestPaymentLink:
    """Tests for POST /invoices/{id}/payment-link"""

    async def test_without_wave_key(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.post(f"{API}/invoices/{invoice['id']}/payment-link", headers=auth_headers)

        assert response.status_code == 400
        assert "Wave" in response.json()["detail"]

    async def test_payment_link(self, client, auth_headers, wave_mock):
        invoice = await _create_invoice(client, auth_headers)
        wave_mock.create_checkout_session.return_value = {
            "id": "cos-18qq25rgr100a",
            "wave_launch_url": "https://pay.wave.com/c/cos-18qq25rgr100a",
            "amount": "325000",
            "currency": "XOF",
        }

        response = await client.post(f"{API}/invoices/{invoice['id']}/payment-link", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["payment_link"] == "https://pay.wave.com/c/cos-18qq25rgr100a"
        payload = wave_mock.create_checkout_session.call_args.args[0]
        assert payload["amount"] == "325000"
        assert payload["currency"] == "XOF"
        assert payload["client_reference"] == invoice["id"]

        assignments = await client.get(f"{API}/wave/assignments", headers=auth_headers)
        assert [a["type"] for a in assignments.json()] == ["checkout"]
        assert assignments.json()[0]["invoice_id"] == invoice["id"]

    async def test_paid_invoice(self, client, auth_headers, wave_mock):
        invoice = await _create_invoice(client, auth_headers)
        await client.post(f"{API}/invoices/{invoice['id']}/mark-paid", headers=auth_headers)

        response = await client.post(f"{API}/invoices/{invoice['id']}/payment-link", headers=auth_headers)

        assert response.status_code == 400
        wave_mock.create_checkout_session.assert_not_called()

    async def test_wave_error_is_reported(self, client, auth_headers, wave_mock):
        invoice = await _create_invoice(client, auth_headers)
        wave_mock.create_checkout_session.side_effect = WaveAPIError(
            400, {"code": "request-validation-error", "message": "Invalid amount"}
        )

        response = await client.post(f"{API}/invoices/{invoice['id']}/payment-link", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid amount"
        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        assert notifications.json()["notifications"][0]["type"] == "WAVE_PAYMENT_FAILED"


# =============================================================================
# Partial proforma conversion and advance payments
# =============================================================================

class TestPartialConversion:
    """Tests for POST /invoices/{id}/partial-convert and GET /invoices/{id}/conversion-status"""

    async def test_partial_then_full(self, client, auth_headers):
        proforma = await _create_invoice(client, auth_headers, type="PROFORMA")
        year = datetime.now(timezone.utc).year

        first = await client.post(f"{API}/invoices/{proforma['id']}/partial-convert", headers=auth_headers, json={
            "items": [{"description": "Première tranche", "quantity": 1, "unit_price": 125000}],
        })

        assert first.status_code == 201, first.text
        body = first.json()
        assert body["invoice"]["amount"] == 125000
        assert body["invoice"]["invoice_number"] == f"INV-{year}-001"
        assert body["invoice"]["parent_proforma_id"] == proforma["id"]
        assert body["total_invoiced"] == 125000
        assert body["remaining_amount"] == 200000
        assert body["is_fully_converted"] is False
        original = await client.get(f"{API}/invoices/{proforma['id']}", headers=auth_headers)
        assert original.json()["status"] == "PENDING"

        second = await client.post(f"{API}/invoices/{proforma['id']}/partial-convert", headers=auth_headers, json={
            "items": [{"description": "Solde", "quantity": 1, "unit_price": 200000}],
            "mark_as_paid": True,
        })

        assert second.status_code == 201
        assert second.json()["invoice"]["status"] == "PAID"
        assert second.json()["is_fully_converted"] is True
        assert sorted(i["amount"] for i in second.json()["invoices"]) == [125000, 200000]
        original = await client.get(f"{API}/invoices/{proforma['id']}", headers=auth_headers)
        assert original.json()["status"] == "CANCELLED"

    async def test_client_snapshot_prefers_request(self, client, auth_headers, sample_project):
        proforma = await _create_invoice(
            client, auth_headers, type="PROFORMA", project_id=str(sample_project.id)
        )

        response = await client.post(f"{API}/invoices/{proforma['id']}/partial-convert", headers=auth_headers, json={
            "items": [{"description": "Tranche", "quantity": 1, "unit_price": 1000}],
            "client_name": "Orange Digital SA",
        })

        invoice = response.json()["invoice"]
        assert invoice["client_name"] == "Orange Digital SA"
        assert invoice["client_email"] == "compta@orange.example"

    async def test_cancelled_proforma(self, client, auth_headers):
        proforma = await _create_invoice(client, auth_headers, type="PROFORMA")
        await client.post(f"{API}/invoices/{proforma['id']}/convert", headers=auth_headers)

        response = await client.post(f"{API}/invoices/{proforma['id']}/partial-convert", headers=auth_headers, json={
            "items": [{"description": "Tranche", "quantity": 1, "unit_price": 1000}],
        })

        assert response.status_code == 400

    async def test_zero_amount(self, client, auth_headers):
        proforma = await _create_invoice(client, auth_headers, type="PROFORMA")

        response = await client.post(f"{API}/invoices/{proforma['id']}/partial-convert", headers=auth_headers, json={
            "items": [{"description": "Offert", "quantity": 1, "unit_price": 0}],
        })

        assert response.status_code == 400

    async def test_regular_invoice(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.post(f"{API}/invoices/{invoice['id']}/partial-convert", headers=auth_headers, json={
            "items": [{"description": "Tranche", "quantity": 1, "unit_price": 1000}],
        })

        assert response.status_code == 404

    async def test_conversion_status(self, client, auth_headers, other_headers):
        proforma = await _create_invoice(client, auth_headers, type="PROFORMA")
        await client.post(f"{API}/invoices/{proforma['id']}/partial-convert", headers=auth_headers, json={
            "items": [{"description": "Tranche", "quantity": 1, "unit_price": 25000}],
        })

        response = await client.get(f"{API}/invoices/{proforma['id']}/conversion-status", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["amount"] == 325000
        assert response.json()["total_invoiced"] == 25000
        assert response.json()["remaining_amount"] == 300000
        assert len(response.json()["invoices"]) == 1

        foreign = await client.get(f"{API}/invoices/{proforma['id']}/conversion-status", headers=other_headers)
        assert foreign.status_code == 404


class TestAdvancePayment:
    """Tests for POST /invoices/advance-payment"""

    async def test_advance_invoice(self, client, auth_headers, sample_project):
        response = await client.post(f"{API}/invoices/advance-payment", headers=auth_headers, json={
            "project_id": str(sample_project.id),
            "amount": 150000,
        })

        assert response.status_code == 201, response.text
        invoice = response.json()["invoice"]
        assert invoice["type"] == "INVOICE"
        assert invoice["status"] == "PENDING"
        assert invoice["amount"] == 150000
        assert invoice["notes"] == "Acompte pour le projet Site vitrine"
        assert invoice["client_name"] == "Orange Digital"
        assert invoice["items"][0]["description"] == "Acompte - Site vitrine"
        assert response.json()["payment_link"] is None

    async def test_foreign_project(self, client, other_headers, sample_project):
        response = await client.post(f"{API}/invoices/advance-payment", headers=other_headers, json={
            "project_id": str(sample_project.id),
            "amount": 150000,
        })

        assert response.status_code == 404

    async def test_payment_link_requires_wave(self, client, auth_headers, sample_project):
        response = await client.post(f"{API}/invoices/advance-payment", headers=auth_headers, json={
            "project_id": str(sample_project.id),
            "amount": 150000,
            "generate_payment_link": True,
        })

        assert response.status_code == 400
        invoices = await client.get(f"{API}/invoices/", headers=auth_headers)
        assert invoices.json() == []

    async def test_with_payment_link(self, client, auth_headers, wave_user, sample_project):
        with patch("rev.api.deps.WaveClient") as wave_class:
            wave = wave_class.return_value
            wave.create_checkout_session.return_value = {
                "id": "cos-advance",
                "wave_launch_url": "https://pay.wave.com/c/cos-advance",
            }
            response = await client.post(f"{API}/invoices/advance-payment", headers=auth_headers, json={
                "project_id": str(sample_project.id),
                "amount": 150000,
                "description": "Acompte 30%",
                "generate_payment_link": True,
            })

        assert response.status_code == 201
        assert response.json()["payment_link"] == "https://pay.wave.com/c/cos-advance"
        assert response.json()["invoice"]["notes"] == "Acompte 30%"
        assert wave.create_checkout_session.call_args.args[0]["amount"] == "150000"
        wave.close.assert_called_once()

    async def test_payment_link_failure_keeps_invoice(self, client, auth_headers, wave_user, sample_project):
        with patch("rev.api.deps.WaveClient") as wave_class:
            wave_class.return_value.create_checkout_session.side_effect = WaveAPIError(
                500, {"code": "internal-server-error", "message": "Try again"}
            )
            response = await client.post(f"{API}/invoices/advance-payment", headers=auth_headers, json={
                "project_id": str(sample_project.id),
                "amount": 150000,
                "generate_payment_link": True,
            })

        assert response.status_code == 201
        assert response.json()["payment_link"] is None
        assert "Try again" in response.json()["message"]


# =============================================================================
# Payer-facing views
# =============================================================================

class TestPublicInvoice:
    """Tests for the unauthenticated /public, /pdf-public and /mark-paid-public routes"""

    async def test_public_view(self, client, auth_headers, sample_project):
        invoice = await _create_invoice(client, auth_headers, project_id=str(sample_project.id))

        response = await client.get(
            f"{API}/invoices/{invoice['id']}/public", params={"invoice_number": invoice["invoice_number"]}
        )

        assert response.status_code == 200
        assert response.json()["amount"] == 325000
        assert response.json()["project_name"] == "Site vitrine"
        assert "items" not in response.json()
        assert "user_id" not in response.json()

    async def test_wrong_number(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.get(f"{API}/invoices/{invoice['id']}/public", params={"invoice_number": "INV-X"})

        assert response.status_code == 403

    async def test_number_required(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.get(f"{API}/invoices/{invoice['id']}/public")

        assert response.status_code == 400

    async def test_unknown_invoice(self, client):
        response = await client.get(
            f"{API}/invoices/00000000-0000-0000-0000-000000000000/public", params={"invoice_number": "INV-X"}
        )

        assert response.status_code == 404

    async def test_public_pdf(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        with patch("rev.api.endpoints.invoices.render_pdf", new=AsyncMock(return_value=b"%PDF-1.7")):
            response = await client.get(
                f"{API}/invoices/{invoice['id']}/pdf-public", params={"invoice_number": invoice["invoice_number"]}
            )
            denied = await client.get(
                f"{API}/invoices/{invoice['id']}/pdf-public", params={"invoice_number": "INV-X"}
            )

        assert response.status_code == 200
        assert response.content == b"%PDF-1.7"
        assert denied.status_code == 403


class TestMarkPaidPublic:
    """Tests for POST /invoices/{id}/mark-paid-public"""

    async def _invoice_with_checkout(self, client, auth_headers, wave_mock):
        invoice = await _create_invoice(client, auth_headers)
        wave_mock.create_checkout_session.return_value = {
            "id": "cos-public", "wave_launch_url": "https://pay.wave.com/c/cos-public",
        }
        await client.post(f"{API}/invoices/{invoice['id']}/payment-link", headers=auth_headers)
        return invoice

    async def test_marks_paid(self, client, auth_headers, wave_user, wave_mock):
        invoice = await self._invoice_with_checkout(client, auth_headers, wave_mock)

        with patch("rev.api.deps.WaveClient") as wave_class:
            wave_class.return_value.get_checkout_session.return_value = {
                "id": "cos-public", "payment_status": "succeeded", "when_completed": "2026-03-02T10:15:00Z",
            }
            response = await client.post(f"{API}/invoices/{invoice['id']}/mark-paid-public", json={
                "wave_checkout_id": "cos-public", "transaction_id": "T_PUBLIC",
            })

        assert response.status_code == 200, response.text
        assert response.json()["status"] == "paid"
        assert response.json()["invoice"]["status"] == "PAID"
        assert response.json()["invoice"]["paid_date"].startswith("2026-03-02T10:15:00")
        wave_class.assert_called_once_with("wave_sn_prod_test_key")
        wave_class.return_value.close.assert_called_once()
        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        assert notifications.json()["notifications"][0]["type"] == "INVOICE_PAID"

    async def test_checkout_mismatch(self, client, auth_headers, wave_user, wave_mock):
        invoice = await self._invoice_with_checkout(client, auth_headers, wave_mock)

        response = await client.post(f"{API}/invoices/{invoice['id']}/mark-paid-public", json={
            "wave_checkout_id": "cos-someone-else",
        })

        assert response.status_code == 403

    async def test_invoice_without_checkout(self, client, auth_headers):
        invoice = await _create_invoice(client, auth_headers)

        response = await client.post(f"{API}/invoices/{invoice['id']}/mark-paid-public", json={
            "wave_checkout_id": "cos-public",
        })

        assert response.status_code == 403

    async def test_payment_not_succeeded(self, client, auth_headers, wave_user, wave_mock):
        invoice = await self._invoice_with_checkout(client, auth_headers, wave_mock)

        with patch("rev.api.deps.WaveClient") as wave_class:
            wave_class.return_value.get_checkout_session.return_value = {
                "id": "cos-public", "payment_status": "processing",
            }
            response = await client.post(f"{API}/invoices/{invoice['id']}/mark-paid-public", json={
                "wave_checkout_id": "cos-public",
            })

        assert response.status_code == 400
        current = await client.get(f"{API}/invoices/{invoice['id']}", headers=auth_headers)
        assert current.json()["status"] == "PENDING"

    async def test_already_paid(self, client, auth_headers, wave_user, wave_mock):
        invoice = await self._invoice_with_checkout(client, auth_headers, wave_mock)
        await client.post(f"{API}/invoices/{invoice['id']}/mark-paid", headers=auth_headers)

        with patch("rev.api.deps.WaveClient") as wave_class:
            response = await client.post(f"{API}/invoices/{invoice['id']}/mark-paid-public", json={
                "wave_checkout_id": "cos-public",
            })

        assert response.status_code == 200
        assert response.json()["status"] == "already_paid"
        wave_class.assert_not_called()
