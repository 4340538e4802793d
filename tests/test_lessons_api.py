"""
Lesson API Tests

End-to-end tests for the student lesson routes.
"""

import pytest


class TestGetLesson:
    """Tests for GET /lessons/{id}."""

    @pytest.mark.asyncio
    async def test_enrolled_student(self, client, seed, auth_headers):
        response = await client.get(f"/api/v1/lessons/{seed.video.id}", headers=auth_headers(seed.student))

        assert response.status_code == 200
        data = response.json()
        assert data["can_watch"] is True
        assert data["playback_id"] == "playback-1"
        assert data["signed_url"].startswith("https://stream.mux.com/playback-1.m3u8?token=")
        assert data["mux_status"] == "ready"
        assert data["view_status"] == {
            "lesson_id": seed.video.id,
            "view_count": 0,
            "effective_limit": 2,
            "can_watch": True,
            "remaining_views": 2,
        }
        assert data["course"]["slug"] == "physics-101"
        assert data["chapter"]["title"] == "Mechanics"
        assert data["watermark"]["phone"] == "+15550100"
        assert data["watermark"]["text"].startswith("+15550100 | ")

    @pytest.mark.asyncio
    async def test_watermark_falls_back_to_email(self, client, seed, auth_headers):
        response = await client.get(
            f"/api/v1/lessons/{seed.free_video.id}", headers=auth_headers(seed.outsider)
        )

        assert response.status_code == 200
        assert response.json()["watermark"]["text"].startswith("outsider@example.com | ")

    @pytest.mark.asyncio
    async def test_not_enrolled(self, client, seed, auth_headers):
        response = await client.get(f"/api/v1/lessons/{seed.video.id}", headers=auth_headers(seed.outsider))

        assert response.status_code == 403
        assert response.json()["detail"] == "You are not enrolled in this course"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client, seed):
        response = await client.get(f"/api/v1/lessons/{seed.video.id}")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, client, seed):
        response = await client.get(
            f"/api/v1/lessons/{seed.video.id}", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_lesson(self, client, seed, auth_headers):
        response = await client.get("/api/v1/lessons/9999", headers=auth_headers(seed.student))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_admin_sees_unlimited_sentinel(self, client, seed, auth_headers):
        response = await client.get(f"/api/v1/lessons/{seed.video.id}", headers=auth_headers(seed.admin))

        assert response.status_code == 200
        assert response.json()["view_status"]["effective_limit"] == 999
        assert response.json()["view_status"]["remaining_views"] == 999


class TestViewQuota:
    """Tests for POST /lessons/{id}/view and GET /lessons/{id}/view-status."""

    @pytest.mark.asyncio
    async def test_quota_exhaustion_flow(self, client, seed, auth_headers):
        """Two full views, then the third is refused and the URL is withheld."""
        headers = auth_headers(seed.student)
        url = f"/api/v1/lessons/{seed.video.id}/view"

        partial = await client.post(url, json={"watch_percentage": 50}, headers=headers)
        assert partial.json()["counted"] is False
        assert partial.json()["view_count"] == 0

        for expected in (1, 2):
            response = await client.post(url, json={"watch_percentage": 100}, headers=headers)
            assert response.status_code == 200
            assert response.json()["counted"] is True
            assert response.json()["view_count"] == expected

        refused = await client.post(url, json={"watch_percentage": 100}, headers=headers)
        assert refused.status_code == 200
        assert refused.json()["counted"] is False
        assert refused.json()["limit_reached"] is True
        assert refused.json()["message"] == "View limit reached for this lesson"

        status = await client.get(f"/api/v1/lessons/{seed.video.id}/view-status", headers=headers)
        assert status.json()["can_watch"] is False
        assert status.json()["remaining_views"] == 0

        lesson = await client.get(f"/api/v1/lessons/{seed.video.id}", headers=headers)
        assert lesson.json()["can_watch"] is False
        assert lesson.json()["signed_url"] is None
        assert lesson.json()["playback_id"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("percentage", [-1, 100.5, 150])
    async def test_percentage_out_of_range(self, client, seed, auth_headers, percentage):
        response = await client.post(
            f"/api/v1/lessons/{seed.video.id}/view",
            json={"watch_percentage": percentage},
            headers=auth_headers(seed.student),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_view_requires_enrollment(self, client, seed, auth_headers):
        response = await client.post(
            f"/api/v1/lessons/{seed.video.id}/view",
            json={"watch_percentage": 100},
            headers=auth_headers(seed.outsider),
        )

        assert response.status_code == 403


class TestRecentLessons:
    """Tests for GET /lessons/recent."""

    @pytest.mark.asyncio
    async def test_recently_watched(self, client, seed, auth_headers):
        headers = auth_headers(seed.student)
        await client.post(f"/api/v1/lessons/{seed.video.id}/view", json={"watch_percentage": 5}, headers=headers)

        response = await client.get("/api/v1/lessons/recent", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["lesson_id"] == seed.video.id
        assert data[0]["course_slug"] == "physics-101"

    @pytest.mark.asyncio
    async def test_empty(self, client, seed, auth_headers):
        response = await client.get("/api/v1/lessons/recent?limit=3", headers=auth_headers(seed.student))

        assert response.status_code == 200
        assert response.json() == []


class TestServiceRoutes:
    """Tests for the health and root routes."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.json()["docs"] == "/docs"
