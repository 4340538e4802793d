"""
Mux Service

Thin client for the Mux Video API: direct uploads, asset deletion,
signed playback/thumbnail tokens and webhook signature checks.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import httpx
from jose import jwt
from jose.exceptions import JOSEError

from coursehall.core.config import Settings, get_settings
from coursehall.core.exceptions import (
    PlaybackSigningFailed,
    ProviderCredentialsMissing,
    ProviderRequestFailed,
)
from coursehall.core.http_client import delete_with_retry, post_with_retry

logger = logging.getLogger(__name__)

STREAM_BASE = "https://stream.mux.com"
IMAGE_BASE = "https://image.mux.com"

# Token audiences. A "v" token cannot fetch thumbnails and vice versa.
PLAYBACK_AUDIENCE = "v"
THUMBNAIL_AUDIENCE = "t"


@dataclass(frozen=True)
class MuxUpload:
    """Direct upload session returned by Mux."""
    upload_id: str
    upload_url: str


class MuxService:
    """
    Mux Video API client.

    All network calls go through the shared httpx client with a finite
    timeout. Only idempotent calls are retried.
    """

    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def is_configured(self) -> bool:
        return self._settings.mux_configured

    @property
    def signing_configured(self) -> bool:
        return self._settings.mux_signing_configured

    @property
    def _auth(self) -> tuple[str, str]:
        return (self._settings.MUX_TOKEN_ID, self._settings.MUX_TOKEN_SECRET)

    def _url(self, path: str) -> str:
        return f"{self._settings.MUX_API_BASE.rstrip('/')}{path}"

    # ============== Uploads & Assets ==============

    async def create_upload(self, cors_origin: str = "*") -> MuxUpload:
        """
        Create a direct upload session for a new signed-playback asset.

        Not retried: a retry after a lost response would open a second
        upload session.

        Raises:
            ProviderCredentialsMissing: Mux is not configured.
            ProviderRequestFailed: Mux rejected the request or was unreachable.
        """
        if not self.is_configured:
            raise ProviderCredentialsMissing()

        body = {
            "cors_origin": cors_origin,
            "new_asset_settings": {
                "playback_policy": ["signed"],
                "video_quality": "basic",
            },
        }

        try:
            response = await post_with_retry(
                self._url("/video/v1/uploads"),
                max_retries=0,
                json=body,
                auth=self._auth,
                timeout=self._settings.MUX_REQUEST_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.error("Mux upload creation failed: %s", e)
            raise ProviderRequestFailed() from e

        if response.status_code not in (200, 201):
            logger.error(
                "Mux upload creation returned %s: %s",
                response.status_code, response.text,
            )
            raise ProviderRequestFailed()

        data = response.json().get("data") or {}
        if not data.get("id") or not data.get("url"):
            logger.error("Mux upload response missing id/url: %s", data)
            raise ProviderRequestFailed()

        return MuxUpload(upload_id=data["id"], upload_url=data["url"])

    async def delete_asset(self, asset_id: str) -> bool:
        """
        Delete an asset.

        Returns:
            True if the asset is gone (deleted now or already missing),
            False on any failure. Never raises.
        """
        if not self.is_configured:
            logger.error("Cannot delete Mux asset %s: Mux is not configured", asset_id)
            return False

        try:
            response = await delete_with_retry(
                self._url(f"/video/v1/assets/{asset_id}"),
                auth=self._auth,
                timeout=self._settings.MUX_REQUEST_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.error("Mux asset %s deletion failed: %s", asset_id, e)
            return False

        if response.status_code in (200, 204):
            return True
        if response.status_code == 404:
            logger.info("Mux asset %s already deleted", asset_id)
            return True

        logger.error(
            "Mux asset %s deletion returned %s: %s",
            asset_id, response.status_code, response.text,
        )
        return False

    # ============== Signed URLs ==============

    def _signing_key(self) -> str:
        try:
            return base64.b64decode(self._settings.MUX_SIGNING_PRIVATE_KEY).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.error("Mux signing key is not valid base64 PEM: %s", e)
            raise PlaybackSigningFailed() from e

    def sign_token(
        self,
        playback_id: str,
        audience: str,
        expires_in: Optional[int] = None,
    ) -> Optional[str]:
        """
        Sign an RS256 token for one playback id and audience.

        Returns:
            The JWT, or None when no signing key is configured.

        Raises:
            PlaybackSigningFailed: The configured key is unusable.
        """
        if not self.signing_configured:
            return None

        ttl = expires_in or self._settings.PLAYBACK_TOKEN_TTL
        claims = {
            "sub": playback_id,
            "aud": audience,
            "exp": int(time.time()) + ttl,
            "kid": self._settings.MUX_SIGNING_KEY_ID,
        }

        try:
            return jwt.encode(
                claims,
                self._signing_key(),
                algorithm="RS256",
                headers={"kid": self._settings.MUX_SIGNING_KEY_ID},
            )
        except (JOSEError, ValueError) as e:
            logger.error("Signing %s token for playback %s failed: %s", audience, playback_id, e)
            raise PlaybackSigningFailed() from e

    def playback_token(self, playback_id: str) -> Optional[str]:
        return self.sign_token(playback_id, PLAYBACK_AUDIENCE)

    def playback_url(self, playback_id: str) -> Optional[str]:
        """
        HLS URL for a signed playback id.

        Signed playback ids cannot stream without a token, so None is
        returned when signing is not configured.
        """
        token = self.playback_token(playback_id)
        if token is None:
            return None
        return f"{STREAM_BASE}/{playback_id}.m3u8?token={token}"

    def thumbnail_url(self, playback_id: str, time_offset: int = 0, width: int = 640) -> str:
        """Thumbnail URL, signed with the thumbnail audience when possible."""
        url = f"{IMAGE_BASE}/{playback_id}/thumbnail.png?time={time_offset}&width={width}"
        token = self.sign_token(playback_id, THUMBNAIL_AUDIENCE)
        if token is None:
            return url
        return f"{url}&token={token}"

    # ============== Webhooks ==============

    @property
    def webhook_verification_enabled(self) -> bool:
        return bool(self._settings.MUX_WEBHOOK_SECRET)

    def verify_webhook_signature(
        self,
        body: bytes,
        header: Optional[str],
        now: Optional[float] = None,
    ) -> bool:
        """
        Check a ``Mux-Signature`` header (``t=<ts>,v1=<hex>``).

        The signature is HMAC-SHA256 over ``"<ts>.<raw body>"``.
        """
        if not header:
            return False

        parts = dict(
            item.split("=", 1) for item in header.split(",") if "=" in item
        )
        timestamp = parts.get("t")
        signature = parts.get("v1")
        if not timestamp or not signature:
            return False

        try:
            issued_at = int(timestamp)
        except ValueError:
            return False

        current = time.time() if now is None else now
        if abs(current - issued_at) > self._settings.MUX_WEBHOOK_TOLERANCE:
            return False

        expected = hmac.new(
            self._settings.MUX_WEBHOOK_SECRET.encode("utf-8"),
            timestamp.encode("utf-8") + b"." + body,
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected, signature)


@lru_cache
def get_mux_service() -> MuxService:
    """Get the process-wide Mux client (FastAPI dependency)."""
    return MuxService(get_settings())
