"""Shared draft/screenshot state for the post editor.

:class:`PostStore` holds one immutable :class:`PostState` snapshot and
replaces it on every mutation, notifying subscribers with the new and old
snapshots. The screenshot list never holds more than :data:`MAX_SCREENSHOTS`
entries.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel, Field

from repopost.errors import ValidationError
from repopost.screenshots.models import PageScreenshot

logger = logging.getLogger(__name__)

MAX_SCREENSHOTS = 5
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

PostType = Literal["text", "image"]
Listener = Callable[["PostState", "PostState"], None]


class RepoInfo(BaseModel):
    """The repository the post is about."""

    name: str
    owner: str
    url: str
    description: str | None = None
    homepage: str | None = None


class PostState(BaseModel):
    is_modal_open: bool = False
    draft_post: str = ""
    selected_repo: RepoInfo | None = None
    screenshots: list[PageScreenshot] = Field(default_factory=list)
    is_generating: bool = False
    is_posting: bool = False
    post_type: PostType = "text"


class PostStore:
    """Observable container for a single editing session."""

    def __init__(self) -> None:
        self._state = PostState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> PostState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes: object) -> None:
        self._replace(self._state.model_copy(update=changes))

    def _replace(self, new: PostState) -> None:
        old = self._state
        self._state = new
        for listener in list(self._listeners):
            listener(new, old)

    # -- modal / flags -----------------------------------------------------

    def open_modal(self) -> None:
        self._set(is_modal_open=True)

    def close_modal(self) -> None:
        self._set(is_modal_open=False)

    def set_generating(self, value: bool) -> None:
        self._set(is_generating=value)

    def set_posting(self, value: bool) -> None:
        self._set(is_posting=value)

    def set_post_type(self, post_type: PostType) -> None:
        if post_type not in ("text", "image"):
            raise ValidationError(f"Unknown post type: {post_type!r}")
        self._set(post_type=post_type)

    # -- draft -------------------------------------------------------------

    def set_draft_post(self, draft: str) -> None:
        self._set(draft_post=draft)

    def set_selected_repo(self, repo: RepoInfo) -> None:
        self._set(selected_repo=repo)

    # -- screenshots -------------------------------------------------------

    def set_screenshots(self, screenshots: list[PageScreenshot]) -> None:
        if len(screenshots) > MAX_SCREENSHOTS:
            logger.info("Keeping the first %d of %d screenshots", MAX_SCREENSHOTS, len(screenshots))
        self._set(screenshots=list(screenshots[:MAX_SCREENSHOTS]))

    def add_screenshot(self, screenshot: PageScreenshot) -> None:
        """Append *screenshot*; does nothing once the list is full."""
        if len(self._state.screenshots) >= MAX_SCREENSHOTS:
            return
        self._set(screenshots=[*self._state.screenshots, screenshot])

    def reorder_screenshots(self, start_index: int, end_index: int) -> None:
        """Move the screenshot at *start_index* so it ends up at *end_index*."""
        items = list(self._state.screenshots)
        if not 0 <= start_index < len(items):
            raise IndexError(f"screenshot index {start_index} out of range")
        moved = items.pop(start_index)
        items.insert(end_index, moved)
        self._set(screenshots=items)

    def remove_screenshot(self, index: int) -> None:
        self._set(screenshots=[s for i, s in enumerate(self._state.screenshots) if i != index])

    def valid_screenshots(self) -> list[PageScreenshot]:
        return [s for s in self._state.screenshots if s.is_valid]

    def reset(self) -> None:
        """Back to the initial empty state, e.g. after a successful publish."""
        self._replace(PostState())


def screenshot_from_upload(
    data: bytes,
    content_type: str,
    description: str = "Uploaded image",
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> PageScreenshot:
    """Build a user-uploaded screenshot with an inline base64 data URL."""
    if not content_type.startswith("image/"):
        raise ValidationError(f"Only images can be attached, got {content_type!r}")
    if not data:
        raise ValidationError("Uploaded image is empty")
    if len(data) > max_bytes:
        raise ValidationError(
            f"Image is {len(data) / (1024 * 1024):.1f} MB; the limit is {max_bytes / (1024 * 1024):.0f} MB"
        )
    encoded = base64.b64encode(data).decode("ascii")
    return PageScreenshot(
        description=description,
        file_data_url=f"data:{content_type};base64,{encoded}",
        is_user_uploaded=True,
    )
