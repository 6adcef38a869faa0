"""
Tests for the HTTP API

Tests cover:
- Health, security headers and metrics
- Auth flow and bearer token errors
- Preference and job match routes
- Duplicate, notification and data-retention routes
- N8N webhooks (camelCase payloads, API key, alert enqueueing)
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select
from starlette.routing import Match

from jobfinder.config import get_settings
from jobfinder.middleware.metrics import PrometheusMiddleware
from jobfinder.models import JobMatch
from conftest import create_match


PREFERENCE_BODY = {
    "profile_name": "Backend",
    "job_title": "Software Engineer",
    "keywords": ["React", "Node.js"],
    "location": {"city": "San Francisco", "state": "CA"},
    "contract_types": ["permanent"],
    "salary_range": {"min": 100000, "max": 160000, "currency": "USD"},
    "experience_levels": ["senior"],
    "company_sizes": ["medium"],
}

FOUND_JOB = {
    "title": "Senior Software Engineer",
    "company": "Tech Corp",
    "location": "San Francisco, CA",
    "salary": "$120,000 - $150,000",
    "contractType": "permanent",
    "url": "https://example.com/job/123",
    "description": "React and Node.js",
}


class TestAppBasics:
    """Test app-level routes and middleware."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        await client.get("/health")
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_endpoint_label_for_route_without_path(self):
        mount = MagicMock(spec=["matches"])
        mount.matches.return_value = (Match.FULL, {})
        request = MagicMock()
        request.app.routes = [mount]
        request.url.path = "/mounted/thing"

        middleware = PrometheusMiddleware(MagicMock())
        assert middleware._get_endpoint(request) == "/mounted/thing"


class TestAuthRoutes:
    """Test registration, login and token handling."""

    @pytest.mark.asyncio
    async def test_register_login_profile(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"email": "sam@example.com", "password": "password123", "first_name": "Sam"},
        )
        assert response.status_code == 201
        token = response.json()["token"]

        response = await client.post(
            "/api/auth/login", json={"email": "sam@example.com", "password": "password123"}
        )
        assert response.status_code == 200

        response = await client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.json()["first_name"] == "Sam"

        response = await client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
        assert response.json()["valid"] is True

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/preferences")
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "MISSING_TOKEN"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get("/api/preferences", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_bad_login(self, client, user):
        response = await client.post(
            "/api/auth/login", json={"email": user.email, "password": "wrong-password"}
        )
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_refresh(self, client, auth_headers):
        response = await client.post("/api/auth/refresh", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["token"]


class TestPreferenceRoutes:
    """Test preference CRUD over HTTP."""

    @pytest.mark.asyncio
    async def test_crud(self, client, auth_headers):
        response = await client.post("/api/preferences", json=PREFERENCE_BODY, headers=auth_headers)
        assert response.status_code == 201
        preference_id = response.json()["id"]

        response = await client.post("/api/preferences", json=PREFERENCE_BODY, headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_PROFILE_NAME"

        response = await client.put(
            f"/api/preferences/{preference_id}", json={"keywords": ["Go"]}, headers=auth_headers
        )
        assert response.json()["keywords"] == ["Go"]

        response = await client.patch(f"/api/preferences/{preference_id}/toggle", headers=auth_headers)
        assert response.json()["is_active"] is False

        response = await client.get("/api/preferences/stats", headers=auth_headers)
        assert response.json() == {"total_profiles": 1, "active_profiles": 0}

        response = await client.delete(f"/api/preferences/{preference_id}", headers=auth_headers)
        assert response.status_code == 200

        response = await client.get(f"/api/preferences/{preference_id}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_validation_error(self, client, auth_headers):
        body = dict(PREFERENCE_BODY, contract_types=[])
        response = await client.post("/api/preferences", json=body, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_keyword_limits(self, client, auth_headers):
        body = dict(PREFERENCE_BODY, keywords=["x" * 60])
        response = await client.post("/api/preferences", json=body, headers=auth_headers)
        assert response.status_code == 422

        body = dict(PREFERENCE_BODY, keywords=[f"kw{i}" for i in range(21)])
        response = await client.post("/api/preferences", json=body, headers=auth_headers)
        assert response.status_code == 422

        body = dict(PREFERENCE_BODY, keywords=[f"kw{i}" for i in range(20)])
        response = await client.post("/api/preferences", json=body, headers=auth_headers)
        assert response.status_code == 201
        preference_id = response.json()["id"]

        response = await client.put(
            f"/api/preferences/{preference_id}", json={"keywords": ["y" * 51]}, headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_camel_case_body(self, client, auth_headers):
        body = {
            "profileName": "Camel",
            "jobTitle": "Data Engineer",
            "location": {"remote": True},
            "contractTypes": ["contract"],
            "dayRateRange": {"min": 400, "max": 600, "currency": "gbp"},
            "experienceLevels": ["mid"],
            "companySizes": ["startup"],
        }
        response = await client.post("/api/preferences", json=body, headers=auth_headers)
        assert response.status_code == 201
        created = response.json()
        assert created["profile_name"] == "Camel"
        assert created["job_title"] == "Data Engineer"
        assert created["day_rate_range"] == {"min": 400, "max": 600, "currency": "GBP"}


class TestJobRoutes:
    """Test job match listing and status updates."""

    @pytest.mark.asyncio
    async def test_list_and_update_status(self, client, auth_headers, db, preference):
        match = await create_match(db, preference)

        response = await client.get("/api/jobs", headers=auth_headers)
        body = response.json()
        assert body["total"] == 1
        assert body["matches"][0]["profile_name"] == "Software Engineering"

        response = await client.patch(
            f"/api/jobs/{match.id}/status",
            json={"application_status": "applied"},
            headers=auth_headers,
        )
        assert response.json()["application_status"] == "applied"

        response = await client.get("/api/jobs/dashboard", headers=auth_headers)
        assert response.json()["statistics"]["applied_jobs"] == 1

    @pytest.mark.asyncio
    async def test_unknown_match(self, client, auth_headers):
        response = await client.get("/api/jobs/nope", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "JOB_MATCH_NOT_FOUND"


class TestDuplicateRoutes:
    """Test the duplicates API."""

    @pytest.mark.asyncio
    async def test_detect_and_batch(self, client, auth_headers, db, preference):
        await create_match(db, preference)

        response = await client.post(
            "/api/duplicates/detect", json={"job_data": FOUND_JOB}, headers=auth_headers
        )
        assert response.json()["is_duplicate"] is True
        assert response.json()["confidence"] == 1.0

        other = dict(FOUND_JOB, url="https://other.com/1", title="Chef", company="Bistro")
        response = await client.post(
            "/api/duplicates/detect/batch", json={"jobs": [FOUND_JOB, other]}, headers=auth_headers
        )
        assert response.json()["summary"] == {"total_jobs": 2, "duplicates_found": 1, "unique_jobs": 1}

    @pytest.mark.asyncio
    async def test_consolidate_foreign_profile(self, client, auth_headers):
        response = await client.post("/api/duplicates/consolidate/not-mine", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_detect_hides_other_users_matches(self, client, auth_headers, db, other_preference):
        await create_match(db, other_preference, application_status="interviewed")

        response = await client.post(
            "/api/duplicates/detect", json={"job_data": FOUND_JOB}, headers=auth_headers
        )
        body = response.json()
        assert body["is_duplicate"] is True
        assert body["confidence"] == 1.0
        assert body["existing_job"] is None
        assert body["similar_jobs"] == []

        response = await client.post(
            "/api/duplicates/detect/batch", json={"jobs": [FOUND_JOB]}, headers=auth_headers
        )
        result = response.json()["results"][FOUND_JOB["url"]]
        assert result["is_duplicate"] is True
        assert result["existing_job"] is None

    @pytest.mark.asyncio
    async def test_cleanup(self, client, auth_headers, db, preference):
        await create_match(db, preference, days_ago=40, job_title="Software Engineer")
        fresh = await create_match(db, preference, days_ago=1)

        response = await client.delete("/api/duplicates/cleanup?days_old=30", headers=auth_headers)
        assert response.json() == {"removed_count": 1, "days_old": 30}

        response = await client.get("/api/jobs", headers=auth_headers)
        assert [m["id"] for m in response.json()["matches"]] == [fresh.id]

    @pytest.mark.asyncio
    async def test_cleanup_leaves_other_users_matches(self, client, auth_headers, db, other_preference):
        stale = await create_match(db, other_preference, days_ago=40, job_title="Software Engineer")
        await create_match(db, other_preference, days_ago=1)

        response = await client.delete("/api/duplicates/cleanup?days_old=30", headers=auth_headers)
        assert response.json() == {"removed_count": 0, "days_old": 30}

        remaining = (await db.execute(select(JobMatch.id))).scalars().all()
        assert stale.id in remaining
        assert len(remaining) == 2


class TestNotificationRoutes:
    """Test notification settings over HTTP."""

    @pytest.mark.asyncio
    async def test_settings_and_test_send(self, client, auth_headers, user):
        response = await client.get("/api/notifications/settings", headers=auth_headers)
        assert response.json()["email_address"] == user.email

        response = await client.post("/api/notifications/test", json={"type": "sms"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_RECIPIENT"

        response = await client.post("/api/notifications/test", json={"type": "email"}, headers=auth_headers)
        assert response.json() == {"success": False, "message_id": None, "error": "Brevo not configured"}


class TestRetentionRoutes:
    """Test data-retention routes."""

    @pytest.mark.asyncio
    async def test_config_and_dry_run(self, client, auth_headers, db, preference):
        await create_match(db, preference, days_ago=120)

        response = await client.put(
            "/api/data-retention/config", json={"job_match_retention_days": 100}, headers=auth_headers
        )
        assert response.json()["job_match_retention_days"] == 100

        response = await client.put(
            "/api/data-retention/config", json={"batch_size": 5}, headers=auth_headers
        )
        assert response.status_code == 422

        response = await client.post(
            "/api/data-retention/execute", json={"dry_run": True}, headers=auth_headers
        )
        assert response.json()["job_matches_deleted"] == 1
        assert response.json()["dry_run"] is True

        response = await client.get("/api/data-retention/statistics", headers=auth_headers)
        assert response.json()["total_job_matches"] == 1

        response = await client.get("/api/data-retention/health", headers=auth_headers)
        assert response.json()["status"] == "healthy"


class TestN8NRoutes:
    """Test the N8N webhooks."""

    @pytest.mark.asyncio
    async def test_preferences(self, client, preference):
        response = await client.get("/api/n8n/preferences")
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 1
        assert body["data"][0]["id"] == preference.id

    @pytest.mark.asyncio
    async def test_jobs_found_stores_and_enqueues(self, client, preference):
        payload = {"jobs": [FOUND_JOB, FOUND_JOB], "websiteSource": "indeed", "executionId": "exec-1"}

        with patch("jobfinder.api.n8n.enqueue_job_alerts") as mock_enqueue:
            response = await client.post("/api/n8n/jobs/found", json=payload)

        body = response.json()
        assert response.status_code == 200
        assert body == {
            "success": True,
            "processed": 1,
            "duplicates": 1,
            "matched": 1,
            "total": 2,
            "errors": [],
        }
        assert len(mock_enqueue.call_args.args[0]) == 1

    @pytest.mark.asyncio
    async def test_jobs_found_validation(self, client):
        payload = {"jobs": [{"title": "No URL"}], "websiteSource": "indeed"}
        response = await client.post("/api/n8n/jobs/found", json=payload)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_store_matches(self, client, preference):
        payload = {"matches": [{"preferenceId": preference.id, "job": FOUND_JOB, "matchScore": 0.9}]}
        with patch("jobfinder.api.n8n.enqueue_job_alerts"):
            response = await client.post("/api/n8n/jobs/matches", json=payload)
        assert response.json() == {"success": True, "stored": 1, "total": 1}

    @pytest.mark.asyncio
    async def test_websites(self, client):
        response = await client.get("/api/n8n/websites")
        names = [site["name"] for site in response.json()["data"]]
        assert names == ["indeed", "linkedin", "glassdoor"]

    @pytest.mark.asyncio
    async def test_webhook_test(self, client):
        response = await client.post("/api/n8n/webhook/test", json={"testType": "duplicate"})
        assert response.status_code == 400

        response = await client.post(
            "/api/n8n/webhook/test", json={"testType": "duplicate", "data": {"job": FOUND_JOB}}
        )
        assert response.json()["result"] == "Job is unique"

    @pytest.mark.asyncio
    async def test_webhook_test_matching_camel_case(self, client):
        barista = dict(FOUND_JOB, title="Barista", description="Coffee")
        preference = {"jobTitle": "Software Engineer", "location": {"remote": True}}

        response = await client.post(
            "/api/n8n/webhook/test",
            json={"testType": "matching", "data": {"job": barista, "preferences": [preference]}},
        )
        assert response.json()["result"] == "Found 0 matches"

        response = await client.post(
            "/api/n8n/webhook/test",
            json={"testType": "matching", "data": {"job": FOUND_JOB, "preferences": [preference]}},
        )
        assert response.json()["result"] == "Found 1 matches"

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/n8n/health")
        assert response.status_code == 200
        assert response.json()["services"] == {"database": "healthy"}

    @pytest.mark.asyncio
    async def test_api_key_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "n8n_api_key", "secret")

        response = await client.get("/api/n8n/websites")
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_API_KEY"

        response = await client.get("/api/n8n/websites", headers={"X-N8N-API-Key": "secret"})
        assert response.status_code == 200
