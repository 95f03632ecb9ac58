"""
Tests for the HTTP surface
Routing, header identity, request transactions and error mapping
"""
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from core.config import settings
from core.database import get_db
from domain.enums import OrganizationRole
from infrastructure.persistence.repositories.organization_member import SQLAlchemyOrganizationMemberRepository
from presentation.main import app


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client whose requests each commit or roll back their own session"""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def ids(session_factory):
    """Organization with one committed staff member"""
    ids = {
        "org": uuid4(),
        "staff": uuid4(),
        "candidate": uuid4(),
        "outsider": uuid4(),
        "job": uuid4(),
    }
    async with session_factory() as session:
        await SQLAlchemyOrganizationMemberRepository(session).add(
            ids["org"], ids["staff"], OrganizationRole.RECRUITER.value
        )
        await session.commit()
    return ids


def headers(user_id, organization_id=None):
    result = {"X-User-Id": str(user_id)}
    if organization_id is not None:
        result["X-Organization-Id"] = str(organization_id)
    return result


async def apply(client, ids):
    response = await client.post(
        f"/api/v1/jobs/{ids['job']}/applications",
        json={"organization_id": str(ids["org"])},
        headers=headers(ids["candidate"]),
    )
    assert response.status_code == 201
    return response.json()


async def advance(client, ids, application_id, target, **extra):
    return await client.post(
        f"/api/v1/applications/{application_id}/advance",
        json={"target_status": target, **extra},
        headers=headers(ids["staff"], ids["org"]),
    )


class TestIdentity:
    """Test header-based caller identity"""

    @pytest.mark.asyncio
    async def test_missing_user_header_is_401(self, client, ids):
        response = await client.get("/api/v1/messaging/unread-count")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_organization_header_is_400(self, client, ids):
        response = await client.get(f"/api/v1/pipeline/jobs/{ids['job']}", headers=headers(ids["staff"]))

        assert response.status_code == 400


class TestPipelineApi:
    """Test pipeline endpoints"""

    @pytest.mark.asyncio
    async def test_apply_and_advance(self, client, ids):
        application = await apply(client, ids)
        assert application["status"] == "applied"

        response = await advance(client, ids, application["id"], "screening", notes="Looks good")

        assert response.status_code == 200
        assert response.json()["status"] == "screening"
        assert response.json()["version"] == application["version"] + 1

        history = await client.get(
            f"/api/v1/applications/{application['id']}/history", headers=headers(ids["staff"], ids["org"])
        )
        assert [h["to_status"] for h in history.json()] == ["applied", "screening"]

    @pytest.mark.asyncio
    async def test_invalid_transition_is_409(self, client, ids):
        application = await apply(client, ids)

        response = await advance(client, ids, application["id"], "hired")

        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransitionError"

    @pytest.mark.asyncio
    async def test_hire_without_confirmation_is_412(self, client, ids):
        application = await apply(client, ids)
        for target in ("screening", "interviewed", "pre_hire_checks"):
            assert (await advance(client, ids, application["id"], target)).status_code == 200

        blocked = await advance(client, ids, application["id"], "hired")
        assert blocked.status_code == 412

        hired = await advance(
            client,
            ids,
            application["id"],
            "hired",
            pre_hire_confirmation={"right_to_work_confirmed": True, "confirmation_text": "Passport checked"},
        )
        assert hired.status_code == 200

        detail = await client.get(
            f"/api/v1/applications/{application['id']}", headers=headers(ids["staff"], ids["org"])
        )
        assert detail.json()["status"] == "hired"
        assert detail.json()["pre_hire_check_confirmed"] is True

    @pytest.mark.asyncio
    async def test_other_organization_gets_404(self, client, ids):
        application = await apply(client, ids)

        response = await client.get(
            f"/api/v1/applications/{application['id']}", headers=headers(ids["staff"], uuid4())
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_candidate_cannot_hire_self(self, client, ids):
        application = await apply(client, ids)

        response = await client.post(
            f"/api/v1/applications/{application['id']}/advance",
            json={"target_status": "screening"},
            headers=headers(ids["candidate"], ids["org"]),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "UnauthorizedError"

    @pytest.mark.asyncio
    async def test_unknown_status_is_422(self, client, ids):
        application = await apply(client, ids)

        response = await advance(client, ids, application["id"], "promoted")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_pipeline_view(self, client, ids):
        await apply(client, ids)

        response = await client.get(f"/api/v1/pipeline/jobs/{ids['job']}", headers=headers(ids["staff"], ids["org"]))

        body = response.json()
        assert body["total"] == 1
        assert len(body["stages"]["applied"]) == 1
        assert body["stages"]["hired"] == []


class TestMessagingApi:
    """Test messaging endpoints"""

    async def _conversation(self, client, ids):
        application = await apply(client, ids)
        await advance(client, ids, application["id"], "screening")
        response = await client.post(
            "/api/v1/messaging/conversations",
            json={
                "subject": "Interview",
                "participant_ids": [str(ids["candidate"])],
                "application_id": application["id"],
            },
            headers=headers(ids["staff"], ids["org"]),
        )
        assert response.status_code == 201
        return response.json()

    @pytest.mark.asyncio
    async def test_ineligible_application_is_403(self, client, ids):
        application = await apply(client, ids)

        response = await client.post(
            "/api/v1/messaging/conversations",
            json={
                "subject": "Too early",
                "participant_ids": [str(ids["candidate"])],
                "application_id": application["id"],
            },
            headers=headers(ids["staff"], ids["org"]),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "IneligibleApplicationError"

    @pytest.mark.asyncio
    async def test_send_and_read(self, client, ids):
        conversation = await self._conversation(client, ids)

        sent = await client.post(
            f"/api/v1/messaging/conversations/{conversation['id']}/messages",
            json={"content": "Are you free Tuesday?"},
            headers=headers(ids["staff"]),
        )
        assert sent.status_code == 201

        unread = await client.get("/api/v1/messaging/unread-count", headers=headers(ids["candidate"]))
        assert unread.json()["unread_count"] == 1

        page = await client.get(
            f"/api/v1/messaging/conversations/{conversation['id']}/messages", headers=headers(ids["candidate"])
        )
        assert page.json()["total_count"] == 1
        assert page.json()["items"][0]["content"] == "Are you free Tuesday?"

    @pytest.mark.asyncio
    async def test_rate_limited_send_is_429_with_retry_after(self, client, ids):
        conversation = await self._conversation(client, ids)
        url = f"/api/v1/messaging/conversations/{conversation['id']}/messages"

        for i in range(settings.MESSAGE_RATE_LIMIT_COUNT):
            response = await client.post(url, json={"content": f"ping {i}"}, headers=headers(ids["staff"]))
            assert response.status_code == 201

        response = await client.post(url, json={"content": "one more"}, headers=headers(ids["staff"]))

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        assert response.json()["error"] == "RateLimitedError"

    @pytest.mark.asyncio
    async def test_outsider_is_403(self, client, ids):
        conversation = await self._conversation(client, ids)

        response = await client.get(
            f"/api/v1/messaging/conversations/{conversation['id']}", headers=headers(ids["outsider"])
        )

        assert response.status_code == 403


class TestDocumentsApi:
    """Test document sharing endpoints"""

    @pytest.mark.asyncio
    async def test_grant_check_revoke(self, client, ids):
        registered = await client.post(
            "/api/v1/documents",
            json={"file_name": "cv.pdf", "content_type": "application/pdf"},
            headers=headers(ids["candidate"], ids["org"]),
        )
        assert registered.status_code == 201
        document_id = registered.json()["id"]
        access_url = f"/api/v1/documents/{document_id}/access"

        granted = await client.post(
            f"/api/v1/documents/{document_id}/grants",
            json={"business_user_id": str(ids["staff"])},
            headers=headers(ids["candidate"]),
        )
        assert granted.status_code == 200
        assert (await client.get(access_url, headers=headers(ids["staff"]))).json()["has_access"] is True

        revoked = await client.delete(
            f"/api/v1/documents/{document_id}/grants/{ids['staff']}",
            params={"reason": "Role filled"},
            headers=headers(ids["candidate"]),
        )
        assert revoked.status_code == 200
        assert revoked.json()["revocation_reason"] == "Role filled"
        assert (await client.get(access_url, headers=headers(ids["staff"]))).json()["has_access"] is False

    @pytest.mark.asyncio
    async def test_non_owner_grant_is_403_and_rolled_back(self, client, ids):
        registered = await client.post(
            "/api/v1/documents",
            json={"file_name": "cv.pdf", "content_type": "application/pdf"},
            headers=headers(ids["candidate"], ids["org"]),
        )
        document_id = registered.json()["id"]

        response = await client.post(
            f"/api/v1/documents/{document_id}/grants",
            json={"business_user_id": str(ids["outsider"])},
            headers=headers(ids["staff"]),
        )

        assert response.status_code == 403
        grants = await client.get(f"/api/v1/documents/{document_id}/grants", headers=headers(ids["candidate"]))
        assert grants.json() == []


class TestHealth:
    """Test health endpoint"""

    @pytest.mark.asyncio
    async def test_health(self, client, monkeypatch):
        async def healthy():
            return True

        monkeypatch.setattr("presentation.main.database_health_check", healthy)

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
