from datetime import datetime, timedelta, timezone

from rev.services.exceptions import WaveAPIError

from conftest import API


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


async def _notification_types(client, headers):
    response = await client.get(f"{API}/notifications/", headers=headers)
    return [n["type"] for n in response.json()["notifications"]]


# =============================================================================
# Checkout sessions
# =============================================================================

class TestCheckoutSessions:

    async def test_create_records_assignment(self, client, auth_headers, wave_mock, sample_project):
        wave_mock.create_checkout_session.return_value = {
            "id": "cos-18qq25rgr100a",
            "wave_launch_url": "https://pay.wave.com/c/cos-18qq25rgr100a",
            "checkout_status": "open",
        }

        response = await client.post(f"{API}/wave/checkout/sessions", headers=auth_headers, json={
            "amount": 15000.4,
            "currency": "FCFA",
            "success_url": "https://example.com/ok",
            "error_url": "https://example.com/ko",
            "project_id": str(sample_project.id),
        })

        assert response.status_code == 201, response.text
        assert response.json()["checkout"]["id"] == "cos-18qq25rgr100a"
        payload = wave_mock.create_checkout_session.call_args.args[0]
        assert payload["amount"] == "15000"
        assert payload["currency"] == "XOF"
        assert "client_reference" not in payload

        assignments = await client.get(f"{API}/wave/assignments", headers=auth_headers)
        assert [(a["transaction_id"], a["type"]) for a in assignments.json()] == [("cos-18qq25rgr100a", "checkout")]

    async def test_foreign_project(self, client, other_headers, wave_mock, sample_project):
        response = await client.post(f"{API}/wave/checkout/sessions", headers=other_headers, json={
            "amount": 1000,
            "success_url": "https://example.com/ok",
            "error_url": "https://example.com/ko",
            "project_id": str(sample_project.id),
        })

        assert response.status_code == 404
        wave_mock.create_checkout_session.assert_not_called()

    async def test_provider_error_notifies(self, client, auth_headers, wave_mock):
        wave_mock.create_checkout_session.side_effect = WaveAPIError(
            400, {"code": "request-validation-error", "message": "Invalid amount"}
        )

        response = await client.post(f"{API}/wave/checkout/sessions", headers=auth_headers, json={
            "amount": 1000,
            "success_url": "https://example.com/ok",
            "error_url": "https://example.com/ko",
        })

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "request-validation-error"
        assert await _notification_types(client, auth_headers) == ["WAVE_PAYMENT_FAILED"]

    async def test_search_requires_reference(self, client, auth_headers, wave_mock):
        response = await client.get(f"{API}/wave/checkout/sessions/search", headers=auth_headers)

        assert response.status_code == 400

    async def test_refund_only_succeeded(self, client, auth_headers, wave_mock):
        wave_mock.get_checkout_session.return_value = {"id": "cos-1", "payment_status": "processing"}

        response = await client.post(f"{API}/wave/checkout/sessions/cos-1/refund", headers=auth_headers)

        assert response.status_code == 400
        wave_mock.refund_checkout_session.assert_not_called()

    async def test_refund(self, client, auth_headers, wave_mock):
        wave_mock.get_checkout_session.return_value = {
            "id": "cos-1", "payment_status": "succeeded", "amount": "20000", "currency": "XOF",
        }
        wave_mock.refund_checkout_session.return_value = {}

        response = await client.post(f"{API}/wave/checkout/sessions/cos-1/refund", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "refunded"
        assert await _notification_types(client, auth_headers) == ["SUCCESS"]


# =============================================================================
# Payouts
# =============================================================================

class TestPayouts:

    async def test_payout_books_expense_with_fee(self, client, auth_headers, wave_mock, sample_project):
        wave_mock.create_payout.return_value = {"id": "pt-185sewgm8100t", "status": "processing", "fee": "100"}

        response = await client.post(f"{API}/wave/payouts", headers=auth_headers, json={
            "receive_amount": 10000,
            "mobile": "+221761110001",
            "name": "Fatou Ndiaye",
            "payment_reason": "Design logo",
            "project_id": str(sample_project.id),
        })

        assert response.status_code == 201, response.text
        payload, idempotency_key = wave_mock.create_payout.call_args.args
        assert payload["receive_amount"] == "10000"
        assert idempotency_key

        expenses = await client.get(f"{API}/expenses/", headers=auth_headers)
        [expense] = expenses.json()
        assert expense["id"] == response.json()["expense_id"]
        assert expense["description"] == "Paiement Wave - Fatou Ndiaye"
        assert expense["amount"] == 10100
        assert expense["category"] == "Wave"
        assert expense["type"] == "PROJECT"
        assert await _notification_types(client, auth_headers) == ["PROVIDER_PAYMENT_COMPLETED"]

    async def test_client_refund_label(self, client, auth_headers, wave_mock):
        wave_mock.create_payout.return_value = {"id": "pt-2", "status": "succeeded"}

        await client.post(f"{API}/wave/payouts", headers=auth_headers, json={
            "receive_amount": 5000,
            "mobile": "+221761110002",
            "type": "client_refund",
        })

        expenses = await client.get(f"{API}/expenses/", headers=auth_headers)
        assert expenses.json()[0]["description"] == "Remboursement client - +221761110002"
        assert expenses.json()[0]["type"] == "GENERAL"

    async def test_failed_payout_books_nothing(self, client, auth_headers, wave_mock):
        wave_mock.create_payout.side_effect = WaveAPIError(400, {"code": "insufficient-funds", "message": "Solde insuffisant"})

        response = await client.post(f"{API}/wave/payouts", headers=auth_headers, json={
            "receive_amount": 5000, "mobile": "+221761110002",
        })

        assert response.status_code == 400
        expenses = await client.get(f"{API}/expenses/", headers=auth_headers)
        assert expenses.json() == []


class TestPayoutReversal:
    """Tests for POST /wave/payouts/{id}/reverse"""

    async def test_already_reversed(self, client, auth_headers, wave_mock):
        wave_mock.get_payout.return_value = {"id": "pt-1", "status": "reversed"}

        response = await client.post(f"{API}/wave/payouts/pt-1/reverse", headers=auth_headers)

        assert response.json()["status"] == "already_reversed"
        wave_mock.reverse_payout.assert_not_called()

    async def test_not_succeeded(self, client, auth_headers, wave_mock):
        wave_mock.get_payout.return_value = {"id": "pt-1", "status": "processing"}

        response = await client.post(f"{API}/wave/payouts/pt-1/reverse", headers=auth_headers)

        assert response.status_code == 400

    async def test_time_limit(self, client, auth_headers, wave_mock):
        sent = datetime.now(timezone.utc) - timedelta(days=4)
        wave_mock.get_payout.return_value = {"id": "pt-1", "status": "succeeded", "timestamp": _iso(sent)}

        response = await client.post(f"{API}/wave/payouts/pt-1/reverse", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "payout-reversal-time-limit-exceeded"
        wave_mock.reverse_payout.assert_not_called()

    async def test_reverse(self, client, auth_headers, wave_mock):
        sent = datetime.now(timezone.utc) - timedelta(hours=5)
        wave_mock.get_payout.return_value = {"id": "pt-1", "status": "succeeded", "timestamp": _iso(sent)}
        wave_mock.reverse_payout.return_value = {}

        response = await client.post(f"{API}/wave/payouts/pt-1/reverse", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"status": "reversed", "payout": wave_mock.get_payout.return_value}
        assert await _notification_types(client, auth_headers) == ["INFO"]


# =============================================================================
# Transactions
# =============================================================================

TRANSACTION = {
    "transaction_id": "T_46HS5COOWE",
    "amount": "-2500",
    "fee": "25",
    "currency": "XOF",
    "timestamp": "2026-10-18T09:30:00Z",
    "counterparty_name": "Sonatel",
    "counterparty_mobile": "+221770001122",
}


class TestTransactionAssignment:

    async def test_assign_expense(self, client, auth_headers):
        response = await client.post(
            f"{API}/wave/transactions/T_46HS5COOWE/assign",
            headers=auth_headers,
            json={"type": "expense", "description": "Forfait internet", "wave_transaction_data": TRANSACTION},
        )

        assert response.status_code == 201, response.text
        assignment = response.json()
        assert assignment["amount"] == 2500
        assert assignment["fee"] == 25
        assert assignment["expense_id"]

        expenses = await client.get(f"{API}/expenses/", headers=auth_headers)
        [expense] = expenses.json()
        assert expense["amount"] == 2500
        assert expense["category"] == "Wave"
        assert expense["description"] == "Forfait internet"

        activities = await client.get(f"{API}/activities/", headers=auth_headers)
        assert "WAVE_TRANSACTION_ASSIGNED" in [a["type"] for a in activities.json()]

    async def test_assign_revenue_creates_paid_invoice(self, client, auth_headers, sample_client):
        data = dict(TRANSACTION, transaction_id="T_REV", amount="75000")

        response = await client.post(
            f"{API}/wave/transactions/T_REV/assign",
            headers=auth_headers,
            json={"type": "revenue", "client_id": str(sample_client.id), "wave_transaction_data": data},
        )

        assert response.status_code == 201, response.text
        invoice = await client.get(f"{API}/invoices/{response.json()['invoice_id']}", headers=auth_headers)
        assert invoice.json()["invoice_number"] == "WAVE-T_REV"
        assert invoice.json()["status"] == "PAID"
        assert invoice.json()["amount"] == 75000
        assert invoice.json()["client_name"] == "Orange Digital"

    async def test_assign_twice(self, client, auth_headers):
        body = {"type": "expense", "wave_transaction_data": TRANSACTION}
        await client.post(f"{API}/wave/transactions/T_46HS5COOWE/assign", headers=auth_headers, json=body)

        response = await client.post(f"{API}/wave/transactions/T_46HS5COOWE/assign", headers=auth_headers, json=body)

        assert response.status_code == 409

    async def test_assign_rejects_other_types(self, client, auth_headers):
        response = await client.post(
            f"{API}/wave/transactions/T_1/assign",
            headers=auth_headers,
            json={"type": "payout", "wave_transaction_data": TRANSACTION},
        )

        assert response.status_code == 400

    async def test_non_numeric_amount(self, client, auth_headers):
        response = await client.post(
            f"{API}/wave/transactions/T_1/assign",
            headers=auth_headers,
            json={"type": "expense", "wave_transaction_data": dict(TRANSACTION, amount="beaucoup")},
        )

        assert response.status_code == 400

    async def test_unassign_keeps_expense(self, client, auth_headers):
        await client.post(
            f"{API}/wave/transactions/T_46HS5COOWE/assign",
            headers=auth_headers,
            json={"type": "expense", "wave_transaction_data": TRANSACTION},
        )

        response = await client.delete(f"{API}/wave/transactions/T_46HS5COOWE/assign", headers=auth_headers)

        assert response.json() == {"deleted": True, "transaction_id": "T_46HS5COOWE"}
        assignments = await client.get(f"{API}/wave/assignments", headers=auth_headers)
        assert assignments.json() == []
        expenses = await client.get(f"{API}/expenses/", headers=auth_headers)
        assert len(expenses.json()) == 1

    async def test_unassign_missing(self, client, auth_headers):
        response = await client.delete(f"{API}/wave/transactions/T_NONE/assign", headers=auth_headers)

        assert response.status_code == 404

    async def test_transactions_carry_local_assignment(self, client, auth_headers, wave_mock):
        await client.post(
            f"{API}/wave/transactions/T_46HS5COOWE/assign",
            headers=auth_headers,
            json={"type": "expense", "wave_transaction_data": TRANSACTION},
        )
        wave_mock.list_transactions.return_value = {
            "items": [dict(TRANSACTION), dict(TRANSACTION, transaction_id="T_OTHER")],
            "page_info": {"has_next_page": False},
        }

        response = await client.get(f"{API}/wave/transactions", headers=auth_headers, params={"date": "2026-10-18"})

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["date"] == "2026-10-18"
        assert body["items"][0]["local_assignment"]["type"] == "expense"
        assert body["items"][1]["local_assignment"] is None
        assert wave_mock.list_transactions.call_args.args[0] == "2026-10-18"


# =============================================================================
# Webhook secret
# =============================================================================

class TestWebhookSecret:

    async def test_regenerate(self, client, auth_headers, db, user):
        response = await client.post(f"{API}/wave/webhook-secret", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["webhook_secret"].startswith("wave_sn_WHS_")
        assert body["webhook_url"] == "http://testserver/api/v1/webhooks/wave"

        await db.refresh(user)
        assert user.wave_webhook_secret == body["webhook_secret"]
