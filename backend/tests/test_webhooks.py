import json
import time
import uuid
from unittest.mock import AsyncMock, patch

from rev.core.security import (
    compute_webhook_signature,
    parse_signature_header,
    verify_webhook_signature,
)
from rev.services.wave_webhook import EVENT_HANDLERS, process_wave_event

from conftest import API

SECRET = "wave_sn_WHS_test_secret"


def _signed(event, secret=SECRET):
    body = json.dumps(event).encode()
    timestamp = str(int(time.time()))
    signature = compute_webhook_signature(secret, timestamp, body)
    return body, {"Wave-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


# =============================================================================
# Signatures
# =============================================================================

class TestSignature:

    def test_parse_header(self):
        assert parse_signature_header("t=1639081943,v1=abc,v1=def") == ("1639081943", ["abc", "def"])
        assert parse_signature_header("v1=abc") is None
        assert parse_signature_header("") is None

    def test_any_listed_signature_matches(self):
        body = b'{"type":"checkout.session.completed"}'
        good = compute_webhook_signature(SECRET, "1639081943", body)

        assert verify_webhook_signature(SECRET, f"t=1639081943,v1=deadbeef,v1={good}", body)

    def test_tampered_body(self):
        body = b'{"amount":"100"}'
        signature = compute_webhook_signature(SECRET, "1639081943", body)

        assert not verify_webhook_signature(SECRET, f"t=1639081943,v1={signature}", b'{"amount":"900"}')


# =============================================================================
# Receiver
# =============================================================================

class TestWaveWebhook:
    """Tests for POST /webhooks/wave"""

    async def test_missing_signature(self, client, wave_user):
        response = await client.post(f"{API}/webhooks/wave", content=b"{}")

        assert response.status_code == 401

    async def test_unknown_secret(self, client, wave_user):
        body, headers = _signed({"type": "merchant.payment_received"}, secret="someone-else")

        response = await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        assert response.status_code == 401

    async def test_invalid_json(self, client, wave_user):
        body = b"not json"
        timestamp = str(int(time.time()))
        signature = compute_webhook_signature(SECRET, timestamp, body)

        response = await client.post(
            f"{API}/webhooks/wave", content=body, headers={"Wave-Signature": f"t={timestamp},v1={signature}"}
        )

        assert response.status_code == 400

    async def test_checkout_completed_pays_invoice(self, client, wave_user, auth_headers):
        invoice = await client.post(f"{API}/invoices/", headers=auth_headers, json={"amount": 25000})
        invoice_id = invoice.json()["id"]
        body, headers = _signed({
            "id": "AE_ijzo7oGgrlM",
            "type": "checkout.session.completed",
            "data": {
                "id": "cos-18qq25rgr100a",
                "amount": "25000",
                "currency": "XOF",
                "client_reference": invoice_id,
                "payment_status": "succeeded",
                "when_completed": "2026-10-18T14:05:00Z",
            },
        })

        response = await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"received": True}
        paid = await client.get(f"{API}/invoices/{invoice_id}", headers=auth_headers)
        assert paid.json()["status"] == "PAID"
        assert paid.json()["wave_checkout_id"] == "cos-18qq25rgr100a"
        assert paid.json()["paid_date"].startswith("2026-10-18T14:05")

        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        assert [n["type"] for n in notifications.json()["notifications"]] == ["INVOICE_PAID"]

    async def test_checkout_without_invoice(self, client, wave_user, auth_headers):
        body, headers = _signed({
            "id": "AE_1",
            "type": "checkout.session.completed",
            "data": {"id": "cos-unknown", "amount": "5000", "currency": "XOF"},
        })

        await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        notification = notifications.json()["notifications"][0]
        assert notification["type"] == "WAVE_CHECKOUT_COMPLETED"
        assert "5 000 FCFA" in notification["message"]

    async def test_payment_received(self, client, wave_user, auth_headers):
        body, headers = _signed({
            "id": "AE_2",
            "type": "merchant.payment_received",
            "data": {"id": "T_46HS5COOWE", "amount": "12000", "currency": "XOF", "sender_mobile": "+221761110001"},
        })

        await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        notification = notifications.json()["notifications"][0]
        assert notification["type"] == "WAVE_PAYMENT_RECEIVED"
        assert "+221761110001" in notification["message"]

    async def test_unhandled_event_is_acknowledged(self, client, wave_user, auth_headers):
        body, headers = _signed({"id": "AE_3", "type": "b2b.payment_reversed", "data": {}})

        response = await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        assert response.status_code == 200
        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        assert notifications.json()["notifications"] == []

    async def test_status_endpoint(self, client):
        response = await client.get(f"{API}/webhooks/wave")

        assert response.status_code == 200
        assert response.json()["webhook_url"].endswith("/api/v1/webhooks/wave")

    async def test_checkout_payment_failed(self, client, wave_user, auth_headers):
        body, headers = _signed({
            "id": "AE_4",
            "type": "checkout.session.payment_failed",
            "data": {
                "id": "cos-failed",
                "amount": "8000",
                "currency": "XOF",
                "last_payment_error": {"code": "blocked-account", "message": "Compte Wave bloqué"},
            },
        })

        await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        notification = notifications.json()["notifications"][0]
        assert notification["type"] == "WAVE_CHECKOUT_FAILED"
        assert notification["message"] == "Compte Wave bloqué"

    async def test_b2b_payment_failed(self, client, wave_user, auth_headers):
        body, headers = _signed({
            "id": "AE_5",
            "type": "b2b.payment_failed",
            "data": {"id": "T_B2B", "amount": "40000", "currency": "XOF"},
        })

        await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        notification = notifications.json()["notifications"][0]
        assert notification["type"] == "WAVE_PAYMENT_FAILED"
        assert "40 000 FCFA" in notification["message"]

    async def test_secret_selects_the_account(self, client, db, wave_user, other_user, auth_headers, other_headers):
        other_user.wave_webhook_secret = "wave_sn_WHS_other_secret"
        db.add(other_user)
        await db.commit()
        body, headers = _signed({
            "id": "AE_6",
            "type": "merchant.payment_received",
            "data": {"id": "T_OTHER", "amount": "3000", "currency": "XOF"},
        }, secret="wave_sn_WHS_other_secret")

        response = await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        assert response.status_code == 200
        other = await client.get(f"{API}/notifications/", headers=other_headers)
        assert [n["type"] for n in other.json()["notifications"]] == ["WAVE_PAYMENT_RECEIVED"]
        mine = await client.get(f"{API}/notifications/", headers=auth_headers)
        assert mine.json()["notifications"] == []

    async def test_checkout_for_paid_invoice_is_ignored(self, client, wave_user, auth_headers):
        invoice = await client.post(f"{API}/invoices/", headers=auth_headers, json={"amount": 25000})
        invoice_id = invoice.json()["id"]
        paid = await client.post(f"{API}/invoices/{invoice_id}/mark-paid", headers=auth_headers)
        body, headers = _signed({
            "id": "AE_7",
            "type": "checkout.session.completed",
            "data": {
                "id": "cos-late",
                "amount": "25000",
                "currency": "XOF",
                "client_reference": invoice_id,
                "when_completed": "2020-01-01T00:00:00Z",
            },
        })

        response = await client.post(f"{API}/webhooks/wave", content=body, headers=headers)

        assert response.status_code == 200
        current = await client.get(f"{API}/invoices/{invoice_id}", headers=auth_headers)
        assert current.json()["paid_date"] == paid.json()["paid_date"]
        assert current.json()["wave_checkout_id"] is None
        notifications = await client.get(f"{API}/notifications/", headers=auth_headers)
        assert len(notifications.json()["notifications"]) == 1


class TestProcessWaveEvent:
    """Tests for the background event processor"""

    async def test_handler_error_is_logged(self, session_factory, user, caplog):
        failing = AsyncMock(side_effect=RuntimeError("boom"))

        with patch.dict(EVENT_HANDLERS, {"merchant.payment_received": failing}):
            await process_wave_event(session_factory, user.id, {"id": "AE_8", "type": "merchant.payment_received"})

        failing.assert_awaited_once()
        assert "Error processing Wave event merchant.payment_received" in caplog.text

    async def test_unknown_user(self, session_factory, caplog):
        await process_wave_event(
            session_factory, uuid.uuid4(), {"id": "AE_9", "type": "merchant.payment_received", "data": {}}
        )

        assert "unknown user" in caplog.text
