import pytest
from fastapi.testclient import TestClient

from config import Settings
from dependencies import get_provider_factory
from main import create_app
from services.providers import FlashcardProvider

CARD_LINE = (
    '{"front":"What is recursion?","back":"A function calling itself.",'
    '"code":"function f(n){return n<=1?1:n*f(n-1);}"}'
)


class StubProvider(FlashcardProvider):
    """Replays canned fragments; an Exception in the list is raised at that point."""

    name = "openai"

    def __init__(self, fragments, input_tokens: int = 0, output_tokens: int = 0):
        super().__init__(model="stub-model")
        self.fragments = list(fragments)
        self.pulled = 0
        self.calls = []
        self._tokens = (input_tokens, output_tokens)

    async def stream(self, topic, context_suffix=""):
        self.calls.append((topic, context_suffix))
        for fragment in self.fragments:
            if isinstance(fragment, Exception):
                raise fragment
            self.pulled += 1
            yield fragment
        self.usage.input_tokens, self.usage.output_tokens = self._tokens


def make_settings(**overrides) -> Settings:
    values = {
        "LLM_PROVIDER": "openai",
        "OPENAI_API_KEY": "sk-test",
        "GENERATE_RATE_LIMIT": "1000/minute",
        "STATIC_DIR": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def stub_provider():
    return StubProvider([CARD_LINE + "\n", ""])


@pytest.fixture
def app(settings, stub_provider):
    application = create_app(settings)
    application.dependency_overrides[get_provider_factory] = lambda: (lambda name, s: stub_provider)
    return application


@pytest.fixture
def client(app):
    return TestClient(app)
