from functools import partial
from typing import Callable

from fastapi import Depends, Request

from config import Settings
from rate_limiter import GenerationRateLimiter, get_real_ip
from services.providers import FlashcardProvider, make_provider

ProviderFactory = Callable[[str, Settings], FlashcardProvider]


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_rate_limiter(request: Request) -> GenerationRateLimiter:
    return request.app.state.rate_limiter


def get_provider_factory(request: Request) -> ProviderFactory:
    return partial(make_provider, clients=request.app.state.provider_clients)


async def enforce_rate_limit(
    request: Request,
    limiter: GenerationRateLimiter = Depends(get_rate_limiter),
) -> None:
    limiter.hit(get_real_ip(request))
