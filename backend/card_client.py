"""
Client-side consumer for the /api/generate-cards stream.

`CardViewer` holds the paging state a front end renders from, and
`generate_cards` reads the NDJSON response incrementally, feeding each card
into the viewer as soon as its line is complete.
"""
import codecs
import json
import logging
from enum import Enum
from typing import AsyncIterator, Optional, Union

import httpx
from pydantic import ValidationError as SchemaError

from models.schemas import Flashcard

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate-cards"
INITIAL_FAILURE_ALERT = "Something went wrong. Please check your network or API key."
APPEND_FAILURE_ALERT = "Could not generate more cards. Please try again."


class ViewerState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    VIEWING = "viewing"
    END = "end"


class CardViewer:
    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.cards: list[Flashcard] = []
        self.index = 0
        self.state = ViewerState.IDLE
        self.generating_more = False
        self.alert: Optional[str] = None
        self._append_mode = False
        self._new_cards = 0

    @property
    def current_card(self) -> Optional[Flashcard]:
        if self.state is ViewerState.VIEWING:
            return self.cards[self.index]
        return None

    @property
    def counter_text(self) -> str:
        if self.state is ViewerState.END:
            return "COMPLETED"
        if not self.cards:
            return ""
        return f"{self.index + 1} / {len(self.cards)}"

    @property
    def context(self) -> list[str]:
        """Fronts already collected, sent along with a load-more request."""
        return [card.front for card in self.cards]

    def start(self, append: bool = False) -> None:
        self._append_mode = append
        self._new_cards = 0
        self.alert = None
        if append:
            self.generating_more = True
        else:
            self.state = ViewerState.LOADING

    def add_card(self, card: Flashcard) -> None:
        self.cards.append(card)
        self._new_cards += 1
        if self._append_mode:
            # Only jump to the new card if we are parked on the end screen right behind it
            if self._new_cards == 1 and self.index == len(self.cards) - 1:
                self.state = ViewerState.VIEWING
        elif self._new_cards == 1:
            self.index = 0
            self.state = ViewerState.VIEWING

    def finish(self) -> None:
        if self._append_mode and self._new_cards == 0:
            self.state = ViewerState.END
        self.generating_more = False

    def fail(self) -> None:
        if self._append_mode:
            self.alert = APPEND_FAILURE_ALERT
            self.index = len(self.cards)
            self.state = ViewerState.END
        else:
            self.alert = INITIAL_FAILURE_ALERT
            if not self.cards:
                self.state = ViewerState.IDLE
        self.generating_more = False

    def navigate(self, direction: int) -> None:
        if self.generating_more:
            return
        new_index = self.index + direction
        # One step past the last card is the end screen
        if 0 <= new_index <= len(self.cards):
            self.index = new_index
            self.state = ViewerState.END if new_index == len(self.cards) else ViewerState.VIEWING


async def iter_stream_cards(chunks: AsyncIterator[Union[bytes, str]]) -> AsyncIterator[Flashcard]:
    """Buffers by newline and parses each complete line as a card."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    async for chunk in chunks:
        buffer += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        newline_index = buffer.find("\n")
        while newline_index != -1:
            line, buffer = buffer[:newline_index].strip(), buffer[newline_index + 1:]
            card = _parse_card(line)
            if card is not None:
                yield card
            newline_index = buffer.find("\n")

    buffer += decoder.decode(b"", final=True)
    card = _parse_card(buffer.strip())
    if card is not None:
        yield card


def _parse_card(line: str) -> Optional[Flashcard]:
    if not line:
        return None
    try:
        return Flashcard.model_validate(json.loads(line))
    except (ValueError, SchemaError) as e:
        logger.warning("Error parsing JSON line from stream: %s", e)
        return None


async def generate_cards(
    client: httpx.AsyncClient,
    viewer: CardViewer,
    topic: str,
    append: bool = False,
) -> int:
    """
    Requests cards for `topic` and streams them into `viewer`.
    Returns the number of cards received; failures are recorded on the viewer.
    """
    topic = topic.strip()
    if not topic:
        return 0

    payload: dict = {"topic": topic}
    if append:
        payload["context"] = viewer.context

    viewer.start(append)
    received = 0
    try:
        async with client.stream("POST", GENERATE_PATH, json=payload) as response:
            if response.status_code >= 400:
                raise RuntimeError(f"Failed to generate cards (HTTP {response.status_code})")
            async for card in iter_stream_cards(response.aiter_bytes()):
                viewer.add_card(card)
                received += 1
        if received == 0 and not append:
            raise RuntimeError("No cards generated")
    except (httpx.HTTPError, RuntimeError) as e:
        logger.error("Card generation failed: %s", e)
        viewer.fail()
        return received

    viewer.finish()
    return received
