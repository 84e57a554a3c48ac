"""Transcript-related data models."""

from dataclasses import dataclass
from datetime import datetime


TIME_FORMAT = "%H:%M:%S"


@dataclass(frozen=True)
class Utterance:
    """One transcribed unit of speech as received from the stream."""
    sequence: int
    text: str
    received_at: datetime

    @property
    def time_label(self) -> str:
        """Wall-clock receive time, 24-hour ``HH:MM:SS``."""
        return self.received_at.strftime(TIME_FORMAT)

    def render(self) -> str:
        return f"[{self.time_label}] {self.text}"
