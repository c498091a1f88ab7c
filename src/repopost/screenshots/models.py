"""Pydantic models for screenshots."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PageScreenshot(BaseModel):
    """An image for the post: a captured page or a user upload."""

    path: str = ""
    url: str = ""
    description: str = ""
    screenshot_url: str | None = None
    file_data_url: str | None = Field(
        default=None, description="base64 data URL for user-uploaded images"
    )
    is_user_uploaded: bool = False

    @property
    def is_valid(self) -> bool:
        """True when there is an image to publish."""
        return self.screenshot_url is not None or bool(self.file_data_url)


class _ScreenshotAsset(BaseModel):
    url: str


class _MicrolinkData(BaseModel):
    screenshot: _ScreenshotAsset | None = None


class MicrolinkResponse(BaseModel):
    """The part of a rendering-service response we read."""

    status: str
    message: str | None = None
    data: _MicrolinkData | None = None
