import json
import os

import pytest
import requests

# Point at a running server (e.g. http://localhost:3000) to exercise a real provider
LIVE_SERVER_URL = os.getenv("LIVE_SERVER_URL")


def stream_topic(base_url: str, topic: str, context: list[str] | None = None):
    data = {"topic": topic}
    if context:
        data["context"] = context
    with requests.post(f"{base_url}/api/generate-cards", json=data, stream=True, timeout=60) as r:
        r.raise_for_status()
        for line in r.iter_lines(decode_unicode=True):
            if line:
                yield json.loads(line)


@pytest.mark.skipif(not LIVE_SERVER_URL, reason="LIVE_SERVER_URL not set")
def test_live_generate_cards():
    cards = list(stream_topic(LIVE_SERVER_URL, "Recursion"))
    assert cards
    assert all({"front", "back"} <= set(card) for card in cards)


if __name__ == '__main__':
    for card in stream_topic(LIVE_SERVER_URL or "http://localhost:3000", "Recursion"):
        print(card["front"])
