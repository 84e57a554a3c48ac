"""Transcript storage for ekko-client."""

from .store import TranscriptStore

__all__ = ["TranscriptStore"]
