import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator

from google.generativeai.client import configure as genai_configure
from google.generativeai.generative_models import GenerativeModel
from openai import AsyncOpenAI

from config import Settings
from exceptions import ConfigurationError, UpstreamError
from models.schemas import ProviderUsage
from services.prompts import build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)

PROVIDER_OPENAI = "openai"
PROVIDER_GEMINI = "gemini"


class FlashcardProvider(ABC):
    """
    A model backend that turns a topic into a lazy stream of raw text fragments.

    `usage` is filled in as the stream reports token counts; it stays at zero
    when the backend never does.
    """

    name: str = ""

    def __init__(self, model: str, card_count: int = 10):
        self.model = model
        self.card_count = card_count
        self.usage = ProviderUsage()

    @abstractmethod
    def stream(self, topic: str, context_suffix: str = "") -> AsyncIterator[str]:
        ...


class OpenAIProvider(FlashcardProvider):
    name = PROVIDER_OPENAI

    def __init__(self, client: AsyncOpenAI, model: str, card_count: int = 10):
        super().__init__(model, card_count)
        self.client = client

    async def stream(self, topic: str, context_suffix: str = "") -> AsyncIterator[str]:
        logger.info("Calling OpenAI API with model: %s (Streaming)", self.model)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(context_suffix, self.card_count)},
                    {"role": "user", "content": build_user_prompt(topic)},
                ],
                stream=True,
                stream_options={"include_usage": True},
            )
        except Exception as e:
            raise UpstreamError(f"OpenAI request failed: {e}") from e

        try:
            async for chunk in response:
                # The final chunk carries usage and an empty choices list
                if chunk.usage:
                    self.usage.input_tokens = chunk.usage.prompt_tokens or 0
                    self.usage.output_tokens = chunk.usage.completion_tokens or 0
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except Exception as e:
            raise UpstreamError(f"OpenAI stream failed: {e}") from e
        finally:
            await response.close()


class GeminiProvider(FlashcardProvider):
    name = PROVIDER_GEMINI

    def __init__(self, model: str, timeout: float = 30.0, card_count: int = 10):
        super().__init__(model, card_count)
        self.timeout = timeout

    async def stream(self, topic: str, context_suffix: str = "") -> AsyncIterator[str]:
        logger.info("Calling Gemini API with model: %s (Streaming)", self.model)
        model = GenerativeModel(
            model_name=self.model,
            system_instruction=build_system_prompt(context_suffix, self.card_count),
        )
        try:
            response = await model.generate_content_async(
                build_user_prompt(topic),
                stream=True,
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            raise UpstreamError(f"Gemini request failed: {e}") from e

        try:
            async for chunk in response:
                usage = getattr(chunk, "usage_metadata", None)
                if usage:
                    self.usage.input_tokens = usage.prompt_token_count or 0
                    self.usage.output_tokens = usage.candidates_token_count or 0
                try:
                    text = chunk.text
                except ValueError:
                    # Final chunk carries finish_reason but no text parts — safe to skip
                    continue
                if text:
                    yield text
        except Exception as e:
            raise UpstreamError(f"Gemini stream failed: {e}") from e


class ProviderClients:
    """
    SDK clients shared by every request of one app.

    Built lazily on first use so a missing key only fails requests for the
    provider that needs it. Closed by the app lifespan.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._openai: AsyncOpenAI | None = None
        self._gemini_configured = False

    def openai(self) -> AsyncOpenAI:
        if self._openai is None:
            if not self.settings.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY is not set")
            self._openai = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.provider_timeout_seconds,
            )
        return self._openai

    def configure_gemini(self) -> None:
        if not self._gemini_configured:
            if not self.settings.gemini_api_key:
                raise ConfigurationError("GEMINI_API_KEY is not set")
            genai_configure(api_key=self.settings.gemini_api_key)
            self._gemini_configured = True

    async def aclose(self) -> None:
        if self._openai is not None:
            await self._openai.close()
            self._openai = None


def make_provider(name: str, settings: Settings, clients: ProviderClients) -> FlashcardProvider:
    """Build the provider selected by LLM_PROVIDER. Credentials are checked here, per request."""
    if name == PROVIDER_OPENAI:
        return OpenAIProvider(
            client=clients.openai(),
            model=settings.openai_model,
            card_count=settings.cards_per_request,
        )
    if name == PROVIDER_GEMINI:
        clients.configure_gemini()
        return GeminiProvider(
            model=settings.gemini_model,
            timeout=settings.provider_timeout_seconds,
            card_count=settings.cards_per_request,
        )
    raise ConfigurationError(f"Unknown LLM provider '{name}'")
