import json
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from exceptions import MalformedLineError

logger = logging.getLogger(__name__)


@dataclass
class RelayStats:
    cards: int = 0
    dropped: int = 0


def _reject_constant(name: str):
    # json.loads accepts NaN/Infinity by default; browsers' JSON.parse does not
    raise ValueError(f"non-standard JSON constant {name}")


def clean_line(line: str) -> str:
    """Strips markdown code fences the model sometimes wraps around a card."""
    text = line.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_card_line(line: str) -> Optional[str]:
    """
    Returns the cleaned line when it is a complete JSON object, or None when it
    is not an object candidate at all (prose, blank, a lone fence).
    Raises MalformedLineError for lines that start like an object but don't parse.
    """
    cleaned = clean_line(line)
    if not cleaned.startswith("{"):
        return None
    try:
        json.loads(cleaned, parse_constant=_reject_constant)
    except ValueError as exc:
        raise MalformedLineError(cleaned, str(exc)) from exc
    return cleaned


def _accept(line: str, stats: RelayStats) -> Optional[str]:
    try:
        card = parse_card_line(line)
    except MalformedLineError as exc:
        stats.dropped += 1
        logger.warning("Skipping invalid JSON line (%s): %.200s", exc.reason, exc.line)
        return None
    if card is None:
        if line.strip():
            logger.debug("Skipping non-object line: %.200s", line.strip())
        return None
    stats.cards += 1
    return card + "\n"


async def iter_ndjson(fragments: AsyncIterator[str], stats: Optional[RelayStats] = None) -> AsyncIterator[str]:
    """
    Turns raw model text fragments into validated NDJSON lines, each ending in "\\n".

    Lines are yielded as soon as their newline arrives. Whatever is left in the
    buffer when the fragments run out gets one final attempt.
    """
    stats = stats if stats is not None else RelayStats()
    buffer = ""
    try:
        async for fragment in fragments:
            if not fragment:
                continue
            buffer += fragment
            newline_index = buffer.find("\n")
            while newline_index != -1:
                line, buffer = buffer[:newline_index], buffer[newline_index + 1:]
                card = _accept(line, stats)
                if card is not None:
                    yield card
                newline_index = buffer.find("\n")

        card = _accept(buffer, stats)
        if card is not None:
            yield card
    finally:
        # Stop pulling from the provider once our consumer is gone
        aclose = getattr(fragments, "aclose", None)
        if aclose is not None:
            await aclose()
