"""View layer: signal publisher, console renderer and command input."""

from .publisher import ViewPublisher

__all__ = ["ViewPublisher"]
