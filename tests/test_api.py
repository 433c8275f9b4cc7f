"""
HTTP tests: auth guards, cron secret, maintenance mode and the main
scoring and loyalty endpoints.
"""
from datetime import datetime, timedelta

from conftest import auth_headers, cron_headers

LEAD = {
    "name": "Ada Obi",
    "source": "referral",
    "email": "ada@obievents.ng",
    "budget": "high",
    "timeline": "immediate",
    "interest_level": "high",
    "estimated_value": 150000,
}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database"] == "ok"


class TestLeadEndpoints:
    async def test_create_and_score(self, client, admin):
        response = await client.post("/api/leads/", json=LEAD, headers=auth_headers(admin))
        assert response.status_code == 201
        lead = response.json()
        assert lead["score"] == 92

        response = await client.get(f"/api/leads/{lead['id']}/score", headers=auth_headers(admin))
        assert response.status_code == 200
        analysis = response.json()
        assert analysis["quality"] == "Hot Lead"
        assert analysis["breakdown"]["budget"] == {"label": "Budget", "value": "high", "points": 20}
        assert "recency" in analysis["breakdown"]

        response = await client.post(f"/api/leads/{lead['id']}/score", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["new_score"] == 92

    async def test_invalid_payload(self, client, admin):
        response = await client.post("/api/leads/", json={"name": "", "source": "referral"}, headers=auth_headers(admin))
        assert response.status_code == 422

    async def test_duplicate_email(self, client, admin):
        await client.post("/api/leads/", json=LEAD, headers=auth_headers(admin))
        response = await client.post("/api/leads/", json=LEAD, headers=auth_headers(admin))
        assert response.status_code == 409

    async def test_customers_cannot_manage_leads(self, client, customer):
        response = await client.get("/api/leads/", headers=auth_headers(customer))
        assert response.status_code == 403

    async def test_token_required(self, client):
        response = await client.get("/api/leads/")
        assert response.status_code == 401

    async def test_bad_token(self, client):
        response = await client.get("/api/leads/", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    async def test_activity_and_recalculate(self, client, admin):
        lead = (await client.post("/api/leads/", json=LEAD, headers=auth_headers(admin))).json()

        response = await client.post(
            f"/api/leads/{lead['id']}/activities",
            json={"activity_type": "meeting", "subject": "Tasting session"},
            headers=auth_headers(admin)
        )
        assert response.status_code == 201

        response = await client.get(f"/api/leads/{lead['id']}", headers=auth_headers(admin))
        assert response.json()["score"] == 99

        response = await client.post("/api/scoring/recalculate", json={}, headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["total_updated"] == 1

    async def test_update_stores_contact_time_as_utc(self, client, admin):
        lead = (await client.post("/api/leads/", json=LEAD, headers=auth_headers(admin))).json()

        response = await client.patch(
            f"/api/leads/{lead['id']}",
            json={"last_contacted_at": "2025-06-01T13:00:00+01:00"},
            headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert response.json()["last_contacted_at"] == "2025-06-01T12:00:00"

        response = await client.get(f"/api/leads/{lead['id']}", headers=auth_headers(admin))
        assert response.json()["last_contacted_at"] == "2025-06-01T12:00:00"

    async def test_missing_lead(self, client, admin):
        response = await client.get(
            "/api/leads/00000000-0000-0000-0000-000000000000/score", headers=auth_headers(admin)
        )
        assert response.status_code == 404


class TestLoyaltyEndpoints:
    async def test_my_points(self, client, customer):
        response = await client.get("/api/loyalty/me", headers=auth_headers(customer))
        assert response.status_code == 200
        body = response.json()
        assert body["total_points"] == 120
        assert body["tier"] == "Wing Member"
        assert body["progress"]["message"] == "4,881 pts to Wing Leader"

    async def test_claim_reward_once(self, client, customer):
        claim = {"reward_type": "instagram_follow"}

        response = await client.post("/api/rewards/claim", json=claim, headers=auth_headers(customer))
        assert response.status_code == 200
        assert response.json()["new_total_points"] == 130

        response = await client.post("/api/rewards/claim", json=claim, headers=auth_headers(customer))
        assert response.status_code == 400

        response = await client.get(
            "/api/rewards/claim", params={"type": "instagram_follow"}, headers=auth_headers(customer)
        )
        assert response.json()["claimed"] is True

    async def test_claim_ignores_caller_points(self, client, customer):
        response = await client.post(
            "/api/rewards/claim",
            json={"reward_type": "review", "points": 1000000},
            headers=auth_headers(customer)
        )
        assert response.status_code == 200
        assert response.json()["new_total_points"] == 140
        assert response.json()["tier"] == "Wing Member"

    async def test_admin_award_promotes(self, client, admin, customer):
        response = await client.post(
            "/api/admin/points/award",
            json={"user_id": str(customer.id), "points": 5000, "reason": "Launch partner"},
            headers=auth_headers(admin)
        )
        assert response.status_code == 200
        body = response.json()
        assert body["new_total_points"] == 5120
        assert body["tier"] == "Wing Leader"

    async def test_admin_adjust_requires_non_zero(self, client, admin, customer):
        response = await client.post(
            "/api/admin/points/adjust",
            json={"user_id": str(customer.id), "points_change": 0, "reason": "Oops"},
            headers=auth_headers(admin)
        )
        assert response.status_code == 422

    async def test_admin_tools_are_admin_only(self, client, customer):
        response = await client.get(f"/api/admin/points/{customer.id}", headers=auth_headers(customer))
        assert response.status_code == 403

    async def test_maintenance_blocks_writes(self, client, admin, customer, site):
        site["maintenance_mode"] = True

        response = await client.post(
            "/api/admin/points/adjust",
            json={"user_id": str(customer.id), "points_change": 50, "reason": "Goodwill"},
            headers=auth_headers(admin)
        )
        assert response.status_code == 503

        response = await client.get("/api/loyalty/me", headers=auth_headers(customer))
        assert response.status_code == 200


class TestCronEndpoints:
    async def test_secret_required(self, client):
        assert (await client.get("/api/cron/tier-downgrades")).status_code == 401
        response = await client.get("/api/cron/tier-downgrades", headers=cron_headers("wrong"))
        assert response.status_code == 401

    async def test_tier_downgrades(self, client, make_customer):
        await make_customer(total_points=35000, last_activity_date=datetime.utcnow() - timedelta(days=200))
        await make_customer(total_points=900, last_activity_date=datetime.utcnow() - timedelta(days=400))

        preview = await client.get("/api/cron/tier-downgrades", headers=cron_headers())
        assert preview.status_code == 200
        assert preview.json()["total_affected"] == 1

        response = await client.post("/api/cron/tier-downgrades", headers=cron_headers())
        assert response.status_code == 200
        body = response.json()
        assert body["downgrades_processed"] == 1
        assert body["downgrades"][0]["new_tier"] == "Wing Leader"
        assert body["downgrades"][0]["new_points"] == 20000
        assert body["downgrades"] == preview.json()["users"]

    async def test_expire_points(self, client):
        response = await client.get("/api/cron/expire-points", headers=cron_headers())
        assert response.status_code == 200
        assert response.json() == {"total_affected": 0, "total_points_to_expire": 0, "rewards": []}

        response = await client.post("/api/cron/expire-points", headers=cron_headers())
        assert response.json()["expirations_processed"] == 0
