from typing import Awaitable, Callable, List, Optional

from structlog import get_logger

from routemap.core.errors import MapError, VALID_ENDPOINTS_MESSAGE
from routemap.schemas.geo import Coordinate, RouteResult
from routemap.schemas.search import (
    Command,
    DeviceLocated,
    DeviceLocationFailed,
    Phase,
    Refresh,
    Resolution,
    Resolved,
    Search,
    SearchState,
    Swap,
)
from routemap.services import resolver, routing

logger = get_logger()

Resolver = Callable[[Optional[str], Optional[Coordinate]], Awaitable[Resolution]]
RouteFetcher = Callable[[Optional[Coordinate], Optional[Coordinate]], Awaitable[RouteResult]]
Subscriber = Callable[[SearchState], None]


class SearchWorkflow:
    """
    Owns a SearchState and moves it through idle -> resolving -> routing -> done.

    Every transition replaces the state with a new immutable value and
    publishes it to subscribers. Each dispatched command bumps a generation
    token; results that come back after a newer command started are dropped.
    """

    def __init__(
        self,
        state: Optional[SearchState] = None,
        resolve: Optional[Resolver] = None,
        fetch_route: Optional[RouteFetcher] = None,
    ):
        self.state = state or SearchState.initial()
        self._resolve = resolve or resolver.resolve
        self._fetch_route = fetch_route or routing.fetch_route
        self._subscribers: List[Subscriber] = []
        self._generation = 0

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def _publish(self, **changes) -> SearchState:
        self.state = self.state.model_copy(update=changes)
        for callback in list(self._subscribers):
            callback(self.state)
        return self.state

    def _superseded(self, token: int) -> bool:
        return token != self._generation

    async def dispatch(self, command: Command) -> SearchState:
        self._generation += 1
        token = self._generation

        if isinstance(command, Search):
            await self._search(command, token)
        elif isinstance(command, Swap):
            current = self.state
            await self._apply(
                token,
                initial_query=current.destination_query,
                destination_query=current.initial_query,
                initial_coords=current.destination_coords,
                destination_coords=current.initial_coords,
                error=None,
            )
        elif isinstance(command, DeviceLocated):
            await self._apply(token, initial_query="", initial_coords=command.coordinate, error=None)
        elif isinstance(command, DeviceLocationFailed):
            # keep whatever initial coordinate we already have
            logger.warning("Device location unavailable", reason=command.reason,
                           initial_coords=str(self.state.initial_coords))
        elif isinstance(command, Refresh):
            await self._apply(token)
        else:
            raise TypeError(f"Unknown workflow command: {type(command).__name__}")
        return self.state

    async def _search(self, command: Search, token: int):
        self._publish(
            initial_query=command.initial_query,
            destination_query=command.destination_query,
            phase=Phase.resolving,
            loading=True,
            error=None,
        )
        start = await self._resolve(command.initial_query, self.state.initial_coords)
        if self._superseded(token):
            logger.info("Search superseded during source resolution", query=command.initial_query)
            return
        end = await self._resolve(command.destination_query, None)
        if self._superseded(token):
            logger.info("Search superseded during destination resolution", query=command.destination_query)
            return

        if not (isinstance(start, Resolved) and isinstance(end, Resolved)):
            logger.info("Search endpoints unresolved", initial=command.initial_query,
                        destination=command.destination_query)
            self._publish(phase=Phase.idle, loading=False, error=VALID_ENDPOINTS_MESSAGE)
            return

        await self._route(start.coordinate, end.coordinate, token)

    async def _apply(self, token: int, **changes):
        """
        Publish ``changes``. When they leave both endpoints known but different
        from the pair the route was computed for, the route is refetched first
        and lands in the same update.
        """
        pending = self.state.model_copy(update=changes)
        endpoints = pending.endpoints
        if endpoints is None or endpoints == pending.routed_between:
            if changes:
                self._publish(**changes)
            return
        await self._route(endpoints[0], endpoints[1], token, pending=changes)

    async def _route(self, start: Coordinate, end: Coordinate, token: int, pending: Optional[dict] = None):
        self._publish(phase=Phase.routing, loading=True)
        try:
            route = await self._fetch_route(start, end)
        except MapError as e:
            if self._superseded(token):
                return
            logger.warning("Route fetch failed", start=str(start), end=str(end), error=e.message)
            if pending:
                # the old route belongs to the old endpoints
                self._publish(**{**pending, "route": RouteResult(), "routed_between": None,
                                 "phase": Phase.failed, "loading": False, "error": e.message})
            else:
                self._publish(phase=Phase.failed, loading=False, error=e.message)
            return
        if self._superseded(token):
            logger.info("Route result superseded", start=str(start), end=str(end))
            return

        # coordinates and route change together so no render sees a mismatched pair
        self._publish(**{
            **(pending or {}),
            "initial_coords": start,
            "destination_coords": end,
            "route": route,
            "routed_between": (start, end),
            "phase": Phase.done,
            "loading": False,
        })
