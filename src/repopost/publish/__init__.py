"""Publishing targets for finished posts."""

from repopost.publish.linkedin import LinkedInPublisher, PublishResult

__all__ = ["LinkedInPublisher", "PublishResult"]
