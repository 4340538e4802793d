"""
Playback Service Unit Tests

Tests for the enrollment gate, quota-gated playback URLs and attachment
links.
"""

import pytest
from jose import jwt

from coursehall.core.exceptions import LessonNotFound, NotEnrolled, VideoNotReady
from coursehall.services import playback_service, view_service
from coursehall.services.mux_service import MuxService


class TestAuthorize:
    """Tests for authorize."""

    @pytest.mark.asyncio
    async def test_enrolled_student_gets_signed_url(self, db_session, seed, mux, storage):
        authorization = await playback_service.authorize(
            seed.student, seed.video.id, db_session, mux, storage
        )

        assert authorization.can_watch is True
        assert authorization.playback_id == "playback-1"
        assert authorization.signed_url.startswith("https://stream.mux.com/playback-1.m3u8?token=")

        token = authorization.signed_url.split("token=", 1)[1]
        assert jwt.get_unverified_claims(token)["aud"] == "v"
        assert jwt.get_unverified_claims(token)["sub"] == "playback-1"
        assert jwt.get_unverified_header(token)["kid"] == "signing-key-id"

    @pytest.mark.asyncio
    async def test_not_enrolled_is_forbidden(self, db_session, seed, mux, storage):
        with pytest.raises(NotEnrolled) as exc_info:
            await playback_service.authorize(seed.outsider, seed.video.id, db_session, mux, storage)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_free_lesson_needs_no_enrollment(self, db_session, seed, mux, storage):
        authorization = await playback_service.authorize(
            seed.outsider, seed.free_video.id, db_session, mux, storage
        )

        assert authorization.can_watch is True
        assert authorization.signed_url is not None

    @pytest.mark.asyncio
    async def test_admin_bypasses_enrollment_and_quota(self, db_session, seed, mux, storage):
        authorization = await playback_service.authorize(
            seed.admin, seed.video.id, db_session, mux, storage
        )

        assert authorization.can_watch is True
        assert authorization.view_status.limit is None
        assert authorization.signed_url is not None

    @pytest.mark.asyncio
    async def test_exhausted_quota_withholds_url(self, db_session, seed, mux, storage):
        """Quota exhaustion is a normal result, not an error."""
        await view_service.record_attempt(seed.student, seed.video, 100, db_session)
        await view_service.record_attempt(seed.student, seed.video, 100, db_session)

        authorization = await playback_service.authorize(
            seed.student, seed.video.id, db_session, mux, storage
        )

        assert authorization.can_watch is False
        assert authorization.playback_id is None
        assert authorization.signed_url is None
        assert authorization.thumbnail_url is not None

    @pytest.mark.asyncio
    async def test_processing_video_has_no_url(self, db_session, seed, mux, storage):
        authorization = await playback_service.authorize(
            seed.student, seed.processing.id, db_session, mux, storage
        )

        assert authorization.can_watch is True
        assert authorization.signed_url is None
        assert authorization.thumbnail_url is None

    @pytest.mark.asyncio
    async def test_without_signing_key_playback_is_withheld(self, db_session, seed, mux_settings, storage):
        unsigned_mux = MuxService(mux_settings)

        authorization = await playback_service.authorize(
            seed.student, seed.video.id, db_session, unsigned_mux, storage
        )

        assert authorization.can_watch is True
        assert authorization.signed_url is None
        assert authorization.playback_id is None
        assert "token=" not in authorization.thumbnail_url

    @pytest.mark.asyncio
    async def test_attachments_returned_with_download_url(self, db_session, seed, mux, storage):
        authorization = await playback_service.authorize(
            seed.student, seed.pdf.id, db_session, mux, storage
        )

        assert authorization.attachments == [
            {
                "url": "https://files.example.com/sheets/formulas.pdf",
                "name": "formulas.pdf",
                "type": "pdf",
                "download_url": "https://files.example.com/sheets/formulas.pdf",
            }
        ]

    @pytest.mark.asyncio
    async def test_unknown_lesson(self, db_session, seed, mux, storage):
        with pytest.raises(LessonNotFound):
            await playback_service.authorize(seed.student, 9999, db_session, mux, storage)


class TestAdminSignedUrls:
    """Tests for admin_signed_urls."""

    @pytest.mark.asyncio
    async def test_ready_video(self, db_session, seed, mux):
        urls = await playback_service.admin_signed_urls(seed.video.id, db_session, mux)

        assert urls["playback_id"] == "playback-1"
        assert urls["playback_url"] == (
            f"https://stream.mux.com/playback-1.m3u8?token={urls['playback_token']}"
        )
        thumbnail_token = urls["thumbnail_url"].split("token=", 1)[1]
        assert jwt.get_unverified_claims(thumbnail_token)["aud"] == "t"

    @pytest.mark.asyncio
    async def test_video_not_ready(self, db_session, seed, mux):
        with pytest.raises(VideoNotReady) as exc_info:
            await playback_service.admin_signed_urls(seed.processing.id, db_session, mux)

        assert exc_info.value.status_code == 409
