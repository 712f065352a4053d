from datetime import datetime, timedelta, timezone

from conftest import API


# =============================================================================
# Expenses
# =============================================================================

class TestExpenses:
    """Tests for /expenses"""

    async def test_project_expense_type(self, client, auth_headers, sample_project):
        response = await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Licence Figma",
            "amount": 15000,
            "category": "Logiciels",
            "project_id": str(sample_project.id),
        })

        assert response.status_code == 201
        assert response.json()["type"] == "PROJECT"

    async def test_filter_by_category(self, client, auth_headers):
        for description, category in (("Taxi", "Transport"), ("Serveur", "Hébergement")):
            await client.post(f"{API}/expenses/", headers=auth_headers, json={
                "description": description, "amount": 5000, "category": category,
            })

        response = await client.get(f"{API}/expenses/", headers=auth_headers, params={"category": "Transport"})

        assert [e["description"] for e in response.json()] == ["Taxi"]

    async def test_subscription_requires_period(self, client, auth_headers):
        response = await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Notion",
            "amount": 6000,
            "is_subscription": True,
        })

        assert response.status_code == 400

    async def test_other_user_expense_is_hidden(self, client, auth_headers, other_headers):
        created = await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Café", "amount": 1000,
        })

        response = await client.get(f"{API}/expenses/{created.json()['id']}", headers=other_headers)

        assert response.status_code == 404


# =============================================================================
# Subscriptions
# =============================================================================

class TestSubscriptions:
    """Tests for subscription renewal and reminders"""

    async def test_next_renewal_is_computed(self, client, auth_headers):
        response = await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Google Workspace",
            "amount": 9000,
            "date": "2026-01-31T00:00:00Z",
            "is_subscription": True,
            "subscription_period": "MONTHLY",
        })

        assert response.status_code == 201
        assert response.json()["next_renewal_date"].startswith("2026-02-28")

    async def test_renew(self, client, auth_headers):
        created = await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Nom de domaine",
            "amount": 12000,
            "date": "2026-03-15T00:00:00Z",
            "is_subscription": True,
            "subscription_period": "YEARLY",
        })

        response = await client.post(
            f"{API}/expenses/{created.json()['id']}/renew-subscription", headers=auth_headers
        )

        assert response.status_code == 201
        renewed = response.json()
        assert renewed["date"].startswith("2027-03-15")
        assert renewed["next_renewal_date"].startswith("2028-03-15")
        assert renewed["is_active"] is True

        previous = await client.get(f"{API}/expenses/{created.json()['id']}", headers=auth_headers)
        assert previous.json()["is_active"] is False

        again = await client.post(
            f"{API}/expenses/{created.json()['id']}/renew-subscription", headers=auth_headers
        )
        assert again.status_code == 400

    async def test_renew_one_off_expense(self, client, auth_headers):
        created = await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Imprimante", "amount": 80000,
        })

        response = await client.post(
            f"{API}/expenses/{created.json()['id']}/renew-subscription", headers=auth_headers
        )

        assert response.status_code == 400

    async def test_due_subscriptions(self, client, auth_headers):
        now = datetime.now(timezone.utc)
        await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Canva",
            "amount": 7000,
            "date": (now - timedelta(days=25)).isoformat(),
            "is_subscription": True,
            "subscription_period": "MONTHLY",
            "reminder_days": 7,
        })
        await client.post(f"{API}/expenses/", headers=auth_headers, json={
            "description": "Assurance",
            "amount": 150000,
            "date": now.isoformat(),
            "is_subscription": True,
            "subscription_period": "YEARLY",
        })

        response = await client.get(f"{API}/expenses/subscriptions/due", headers=auth_headers)

        assert response.status_code == 200
        assert [e["description"] for e in response.json()] == ["Canva"]
