"""FastAPI application exposing the live auction event view.

Run with ``uvicorn auctionwatch.app.api:app``.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncIterator

from fastapi import (Body, Depends, FastAPI, HTTPException, Query, Request,
                     WebSocket, WebSocketDisconnect)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from auctionwatch import __version__
from auctionwatch.app.config import Settings, load_settings
from auctionwatch.app.ws_messages import (MESSAGE_FORMAT_VERSION,
                                          ConnectionReadyMessage,
                                          message_from_event)
from auctionwatch.domain.selection import EventNotFoundError
from auctionwatch.infrastructure.feeds import (HttpLotFeed, LotFeed,
                                               LotMutator, SubscriptionError)
from auctionwatch.infrastructure.observability import (configure_logging,
                                                       format_prometheus,
                                                       get_logger)
from auctionwatch.infrastructure.storage import (ImageResolver,
                                                 StorageImageResolver)
from auctionwatch.services.auction_events import AuctionEventService
from auctionwatch.services.dto import AuctionEventView, SelectionView
from auctionwatch.services.importer import PayloadFormatError
from auctionwatch.services.lot_management import LotManagementService

logger = get_logger(__name__)


class AuctionEventBus:
    """Simple in-memory broadcaster for auction view updates.

    Messages are sent in the v1 wire format:
        {
            "version": "1",
            "type": "<event_type>",
            "timestamp": "<ISO8601>",
            "payload": { ... }
        }
    """

    def __init__(self) -> None:
        self._subscribers: set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def subscribe(self, websocket: WebSocket) -> None:
        """Subscribe a WebSocket and send connection ready message."""
        await websocket.accept()
        async with self._lock:
            self._subscribers.add(websocket)

        ready_msg = ConnectionReadyMessage(
            server_version=__version__,
            message_format_version=MESSAGE_FORMAT_VERSION,
        )
        try:
            await websocket.send_json(ready_msg.to_wire())
        except Exception:
            logger.debug("Could not greet websocket subscriber", exc_info=True)

    async def unsubscribe(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._subscribers.discard(websocket)

    async def publish(self, event: dict[str, Any]) -> None:
        """Validate a service event against its message type and broadcast it.

        Events that match no known message type are logged and dropped.
        """
        try:
            payload = message_from_event(event).to_wire()
        except ValueError as exc:
            logger.warning("Not broadcasting invalid auction view event: %s", exc)
            return

        stale: list[WebSocket] = []
        async with self._lock:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            try:
                await subscriber.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                stale.append(subscriber)
        for subscriber in stale:
            await self.unsubscribe(subscriber)


def create_app(
    *,
    settings: Settings | None = None,
    feed: LotFeed | None = None,
    mutator: LotMutator | None = None,
    image_resolver: ImageResolver | None = None,
) -> FastAPI:
    """Build the API application.

    Without an explicit feed the app talks to the data service configured in
    ``settings`` (or the environment); tests pass an in-memory feed.
    """
    event_bus = AuctionEventBus()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        resolved_settings = settings or load_settings()
        closers: list[Any] = []

        lot_feed = feed
        if lot_feed is None:
            http_feed = HttpLotFeed(
                resolved_settings.api_url,
                page_size=resolved_settings.page_size,
                poll_interval=resolved_settings.poll_interval_seconds,
            )
            closers.append(http_feed)
            lot_feed = http_feed
        resolver = image_resolver
        if resolver is None:
            storage_resolver = StorageImageResolver(resolved_settings.storage_url)
            closers.append(storage_resolver)
            resolver = storage_resolver
        lot_mutator = mutator if mutator is not None else lot_feed

        service = AuctionEventService(
            feed=lot_feed,
            image_resolver=resolver,
            event_publisher=event_bus.publish,
            placeholder_image=resolved_settings.placeholder_image,
        )
        app.state.auction_service = service
        app.state.lot_management = LotManagementService(lot_mutator)  # type: ignore[arg-type]
        app.state.event_bus = event_bus

        try:
            await service.start()
        except SubscriptionError as exc:
            # Serve whatever the initial read produced; live updates stay off.
            logger.error("Live lot updates unavailable: %s", exc)

        try:
            yield
        finally:
            await service.stop()
            for closer in closers:
                await closer.close()

    app = FastAPI(title="Auctionwatch API", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def get_auction_service(request: Request) -> AuctionEventService:
    return request.app.state.auction_service


def get_lot_management(request: Request) -> LotManagementService:
    return request.app.state.lot_management


AuctionServiceDep = Annotated[AuctionEventService, Depends(get_auction_service)]
LotManagementDep = Annotated[LotManagementService, Depends(get_lot_management)]


def _selection_view(service: AuctionEventService) -> SelectionView:
    event = service.selected_event
    return SelectionView(
        status=service.selection_status,
        event=AuctionEventView.from_domain(event) if event else None,
    )


def _register_routes(app: FastAPI) -> None:
    @app.get("/")
    async def root():
        """API root endpoint with welcome message and links."""
        return {
            "name": "Auctionwatch API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "events": "/events",
                "selection": "/selection",
                "status": "/status",
                "metrics": "/metrics",
                "websocket": "/ws/events",
            },
        }

    @app.get("/status")
    async def get_status(service: AuctionServiceDep) -> dict[str, Any]:
        return service.get_status()

    @app.get("/events", response_model=list[AuctionEventView])
    async def list_events(
        service: AuctionServiceDep,
        include_lots: bool = Query(False, description="Embed member lots in each event."),
    ) -> list[AuctionEventView]:
        return [
            AuctionEventView.from_domain(event, include_lots=include_lots)
            for event in service.events
        ]

    @app.delete("/events/{key:path}/lots")
    async def delete_event_lots(
        key: str,
        service: AuctionServiceDep,
        management: LotManagementDep,
    ) -> dict[str, object]:
        """Delete every lot in an event and clear the selection held on it."""
        try:
            result = await management.delete_event(service, key)
        except EventNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return result.to_dict()

    @app.get("/events/{key:path}", response_model=AuctionEventView)
    async def get_event(key: str, service: AuctionServiceDep) -> AuctionEventView:
        try:
            event = service.get_event(key)
        except EventNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return AuctionEventView.from_domain(event)

    @app.get("/selection", response_model=SelectionView)
    async def get_selection(service: AuctionServiceDep) -> SelectionView:
        return _selection_view(service)

    @app.put("/selection/{key:path}", response_model=SelectionView)
    async def select_event(key: str, service: AuctionServiceDep) -> SelectionView:
        try:
            await service.select(key)
        except EventNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return _selection_view(service)

    @app.delete("/selection", response_model=SelectionView)
    async def clear_selection(service: AuctionServiceDep) -> SelectionView:
        await service.deselect()
        return _selection_view(service)

    @app.post("/lots/import")
    async def import_lots(
        management: LotManagementDep,
        payload: Any = Body(...),
    ) -> dict[str, object]:
        """Import lots exported by the auction-house browser extension."""
        try:
            result = await management.import_payload(payload)
        except PayloadFormatError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return result.to_dict()

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics() -> str:
        return format_prometheus()

    @app.websocket("/ws/events")
    async def event_updates(websocket: WebSocket) -> None:
        event_bus: AuctionEventBus = websocket.app.state.event_bus
        await event_bus.subscribe(websocket)
        try:
            while True:
                try:
                    await websocket.receive_text()
                except WebSocketDisconnect:
                    break
        finally:
            await event_bus.unsubscribe(websocket)


app = create_app()
