"""Shared helpers for composing CLI command contexts.

This module centralises CLI wiring: resolving settings and opening the lot
feed and image resolver with the project defaults applied.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from dataclasses import asdict, dataclass
from typing import AsyncIterator, Callable

from auctionwatch.app.config import Settings, load_settings
from auctionwatch.infrastructure.feeds import HttpLotFeed
from auctionwatch.infrastructure.storage import StorageImageResolver
from auctionwatch.services.auction_events import AuctionEventService
from auctionwatch.services.dto import EventPublisher, noop_event_publisher
from auctionwatch.services.lot_management import LotManagementService

FeedFactory = Callable[[Settings], AbstractAsyncContextManager]
ResolverFactory = Callable[[Settings], AbstractAsyncContextManager]


def _http_feed(settings: Settings) -> HttpLotFeed:
    return HttpLotFeed(
        settings.api_url,
        page_size=settings.page_size,
        poll_interval=settings.poll_interval_seconds,
    )


def _storage_resolver(settings: Settings) -> StorageImageResolver:
    return StorageImageResolver(settings.storage_url)


@dataclass(frozen=True)
class CLIContext:
    """Container for CLI settings and adapter factories.

    The factories return async context managers yielding the lot feed (which
    also serves as the mutator) and the image resolver.
    """

    settings: Settings
    feed_factory: FeedFactory = _http_feed
    resolver_factory: ResolverFactory = _storage_resolver


def build_cli_context(
    config_path: str | None = None, api_url: str | None = None
) -> CLIContext:
    """Build the CLI context from the config file, environment and flags."""

    settings = load_settings(config_path)
    if api_url:
        settings = Settings.from_mapping({**asdict(settings), "api_url": api_url})
    return CLIContext(settings=settings)


@asynccontextmanager
async def auction_event_service(
    cli_context: CLIContext,
    *,
    event_publisher: EventPublisher = noop_event_publisher,
    live: bool = False,
) -> AsyncIterator[tuple[AuctionEventService, LotManagementService]]:
    """Yield an event service loaded with the current lots, plus lot management.

    With ``live=True`` the service also subscribes to updates until exit.
    """

    async with AsyncExitStack() as stack:
        feed = await stack.enter_async_context(cli_context.feed_factory(cli_context.settings))
        resolver = await stack.enter_async_context(
            cli_context.resolver_factory(cli_context.settings)
        )
        service = AuctionEventService(
            feed=feed,
            image_resolver=resolver,
            event_publisher=event_publisher,
            placeholder_image=cli_context.settings.placeholder_image,
        )
        if live:
            await stack.enter_async_context(service)
        else:
            await service.refresh()
        yield service, LotManagementService(feed)
