import logging
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from config import Settings
from dependencies import ProviderFactory, enforce_rate_limit, get_app_settings, get_provider_factory
from exceptions import UpstreamError
from models.schemas import GenerationRequest
from services.cost import log_estimated_cost
from services.ndjson_relay import RelayStats, iter_ndjson
from services.prompts import build_context_suffix

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/generate-cards", dependencies=[Depends(enforce_rate_limit)])
async def generate_cards(
    payload: GenerationRequest,
    settings: Settings = Depends(get_app_settings),
    provider_factory: ProviderFactory = Depends(get_provider_factory),
):
    """
    Streams flashcards for a topic as NDJSON, one {front, back, code} object per line.

    The first card is awaited before the response starts so that a provider
    failure can still be reported as a JSON 500. Failures after that point
    can only cut the stream short.
    """
    if payload.context:
        logger.info("Context provided with %d existing cards.", len(payload.context))
    context_suffix = build_context_suffix(payload.context)

    provider = provider_factory(settings.llm_provider, settings)
    stats = RelayStats()
    lines = iter_ndjson(provider.stream(payload.topic, context_suffix), stats)

    try:
        first_line = await anext(lines)
    except StopAsyncIteration:
        first_line = None

    async def body():
        try:
            if first_line is not None:
                yield first_line
            async for line in lines:
                yield line
        except UpstreamError as e:
            # Headers are already sent; the client keeps the cards it has.
            logger.error("Stream terminated after %d cards: %s", stats.cards, e)
        finally:
            logger.info("Stream completed: %d cards, %d malformed lines dropped", stats.cards, stats.dropped)
            log_estimated_cost(provider.name, provider.model, provider.usage, settings.rates_for(provider.name))
            await lines.aclose()

    return StreamingResponse(
        body(),
        media_type="text/plain; charset=utf-8",
        headers={"X-Model-Used": provider.model},
    )
