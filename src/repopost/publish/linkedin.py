"""LinkedIn publishing: text posts and image carousels via the UGC API."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Literal

import httpx
from pydantic import BaseModel

from repopost.config.models import LinkedInConfig
from repopost.errors import AuthenticationRequired, UpstreamError, ValidationError
from repopost.screenshots.models import PageScreenshot

logger = logging.getLogger(__name__)

MAX_IMAGES = 5
_SHARE_CONTENT = "com.linkedin.ugc.ShareContent"
_VISIBILITY = {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"}
_UPLOAD_MECHANISM = "com.linkedin.digitalmedia.uploading.MediaUploadHttpRequest"


class PublishResult(BaseModel):
    success: bool
    post_id: str | None = None


class LinkedInPublisher:
    """Publishes a draft as the member identified by *person_urn*."""

    def __init__(
        self,
        token: str,
        person_urn: str,
        config: LinkedInConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token or not person_urn:
            raise AuthenticationRequired("LinkedIn not connected. Please connect LinkedIn first.")
        self.token = token
        self.person_urn = person_urn
        self.config = config or LinkedInConfig()
        self._client = client

    @classmethod
    def from_env(cls, config: LinkedInConfig, **kwargs: Any) -> LinkedInPublisher:
        return cls(
            token=os.environ.get(config.token_env, ""),
            person_urn=os.environ.get(config.person_urn_env, ""),
            config=config,
            **kwargs,
        )

    async def publish(
        self,
        text: str,
        post_type: Literal["text", "image"] = "text",
        screenshots: list[PageScreenshot] | None = None,
    ) -> PublishResult:
        self._validate_text(text)
        async with self._session() as client:
            if post_type == "text":
                share = {"shareCommentary": {"text": text}, "shareMediaCategory": "NONE"}
                return await self._create_post(client, share)

            images = [s for s in (screenshots or []) if s.is_valid]
            if not images:
                raise ValidationError("At least one screenshot or uploaded image is required for image posts")
            if len(images) > MAX_IMAGES:
                raise ValidationError(f"A post can carry at most {MAX_IMAGES} images, got {len(images)}")

            logger.info("Uploading %d image(s)", len(images))
            asset_urns = await self._upload_all(client, images)
            share = {
                "shareCommentary": {"text": text},
                "shareMediaCategory": "IMAGE",
                "media": [{"status": "READY", "media": urn} for urn in asset_urns],
            }
            return await self._create_post(client, share)

    def _validate_text(self, text: str) -> None:
        if not text or not text.strip():
            raise ValidationError("Post text cannot be empty")
        if len(text) > self.config.max_post_chars:
            raise ValidationError(
                f"Post is {len(text)} characters; LinkedIn allows {self.config.max_post_chars}"
            )

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            yield client

    def _headers(self, **extra: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}", **extra}

    async def _create_post(self, client: httpx.AsyncClient, share: dict[str, Any]) -> PublishResult:
        body = {
            "author": self.person_urn,
            "lifecycleState": "PUBLISHED",
            "specificContent": {_SHARE_CONTENT: share},
            "visibility": _VISIBILITY,
        }
        resp = await self._request(
            client,
            "create_post",
            "POST",
            f"{self.config.api_base}/ugcPosts",
            json=body,
            headers=self._headers(**{"X-Restli-Protocol-Version": "2.0.0"}),
        )
        try:
            post_id = resp.json().get("id")
        except ValueError:
            post_id = None
        post_id = post_id or resp.headers.get("x-restli-id")
        logger.info("Published %s post %s", share["shareMediaCategory"], post_id)
        return PublishResult(success=True, post_id=post_id)

    async def _upload_all(
        self, client: httpx.AsyncClient, images: list[PageScreenshot]
    ) -> list[str]:
        """Upload every image concurrently; the first failure cancels the rest."""
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(self._upload_image(client, s)) for s in images]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None
        return [t.result() for t in tasks]

    async def _upload_image(self, client: httpx.AsyncClient, shot: PageScreenshot) -> str:
        register_body = {
            "registerUploadRequest": {
                "recipes": ["urn:li:digitalmediaRecipe:feedshare-image"],
                "owner": self.person_urn,
                "serviceRelationships": [
                    {"relationshipType": "OWNER", "identifier": "urn:li:userGeneratedContent"}
                ],
            }
        }
        resp = await self._request(
            client,
            "register_upload",
            "POST",
            f"{self.config.api_base}/assets",
            params={"action": "registerUpload"},
            json=register_body,
            headers=self._headers(),
        )
        try:
            value = resp.json()["value"]
            upload_url = value["uploadMechanism"][_UPLOAD_MECHANISM]["uploadUrl"]
            asset_urn = value["asset"]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError("linkedin", "register_upload", "unexpected response shape", e) from e

        data, content_type = await self._image_bytes(client, shot)
        await self._request(
            client,
            "upload_image",
            "PUT",
            upload_url,
            content=data,
            headers=self._headers(**{"Content-Type": content_type}),
        )
        logger.debug("Uploaded %s as %s", shot.description or shot.url, asset_urn)
        return asset_urn

    async def _image_bytes(
        self, client: httpx.AsyncClient, shot: PageScreenshot
    ) -> tuple[bytes, str]:
        if shot.file_data_url:
            header, _, payload = shot.file_data_url.partition(",")
            content_type = header.removeprefix("data:").split(";")[0] or "image/jpeg"
            try:
                return base64.b64decode(payload, validate=True), content_type
            except binascii.Error as e:
                raise ValidationError(f"Uploaded image {shot.description!r} is not valid base64") from e
        resp = await self._request(client, "download_screenshot", "GET", shot.screenshot_url)
        return resp.content, "image/png"

    @staticmethod
    async def _request(
        client: httpx.AsyncClient, operation: str, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            resp = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamError("linkedin", operation, str(e), e) from e
        if resp.is_error:
            raise UpstreamError("linkedin", operation, f"HTTP {resp.status_code}: {resp.text}")
        return resp
