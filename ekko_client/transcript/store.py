"""Append-only transcript store."""

import logging
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from ..models.transcript import Utterance
from ..ui.publisher import ViewPublisher

logger = logging.getLogger(__name__)


class TranscriptStore:
    """Ordered collection of received utterances.

    Items are kept in arrival order, never re-sorted by sequence. Items
    without a server sequence get the next value of a local counter; the
    counter follows the highest sequence seen so numbering stays increasing.
    """

    def __init__(self,
                 publisher: Optional[ViewPublisher] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.publisher = publisher
        self.clock = clock
        self._items: List[Utterance] = []
        self._last_assigned = 0

    @property
    def last_assigned(self) -> int:
        return self._last_assigned

    @property
    def items(self) -> List[Utterance]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Utterance]:
        return iter(list(self._items))

    def append(self, text: str, sequence: Optional[int] = None) -> Utterance:
        """Append an utterance and notify the view.

        Args:
            text: Transcribed text
            sequence: Server-assigned sequence number, if any

        Returns:
            The stored Utterance
        """
        if sequence is None:
            sequence = self._last_assigned + 1
        self._last_assigned = max(self._last_assigned, sequence)

        utterance = Utterance(sequence=sequence, text=text, received_at=self.clock())
        self._items.append(utterance)
        logger.debug(f"Appended utterance #{sequence}: {text[:50]}")

        if self.publisher:
            self.publisher.transcript_changed(self.items, utterance)
        return utterance

    def clear(self) -> None:
        """Drop all utterances and restart numbering at 1."""
        self._items.clear()
        self._last_assigned = 0
        logger.debug("Transcript cleared")
        if self.publisher:
            self.publisher.transcript_changed([], None)

    def export_text(self) -> str:
        """Render the transcript as ``[HH:MM:SS] text`` lines."""
        return "\n".join(item.render() for item in self._items)
