"""
Route planning service for RouteWise.

``RoutePlanningService`` is the entry point used by applications. It
validates the request, drives the ``AddressResolutionOrchestrator``,
hands the resolved waypoints to a ``TourOptimizer`` and wraps the result
in a ``Tour``. A request ends in exactly one outcome: a ``Tour`` or one
``PlanningError``.

Example usage:

    service = RoutePlanningService(GeopyResolver())
    tour = await service.plan_route("Tokyo Station", ["Tokyo Tower", "Ueno Park"])
    for stop in tour.stops:
        print(stop.label)
"""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .errors import InvalidAddresses, OptimizationFailed, PlanningCancelled, PlanningError
from .geocode import AddressResolver
from .logging_utils import get_logger
from .models import Tour, Waypoint
from .optimisation import TourOptimizer, TwoOptLimits
from .orchestrator import AddressResolutionOrchestrator, PlanningToken, ProgressCallback, TokenState, non_blank
from .settings import RouteWiseSettings, get_settings

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PlanningResult:
    """Outcome passed to ``submit`` callbacks; exactly one field is set."""

    tour: Optional[Tour] = None
    error: Optional[PlanningError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RoutePlanningService:
    """Plan a tour from a start address and destination addresses.

    One service handles one request at a time: starting a new request
    cancels the one still in flight. Use separate instances for
    concurrent requests.

    Args:
        resolver: Address resolution capability.
        optimizer: Object with an ``optimize(start, destinations)``
            method. Defaults to ``TourOptimizer`` configured from settings.
        settings: Configuration; defaults to ``get_settings()``.
        on_progress: Forwarded to the orchestrator.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        optimizer: Optional[TourOptimizer] = None,
        settings: Optional[RouteWiseSettings] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.resolver = resolver
        self.optimizer = optimizer or TourOptimizer(TwoOptLimits.from_settings(self.settings))
        self.on_progress = on_progress
        self.orchestrator: Optional[AddressResolutionOrchestrator] = None
        self._token: Optional[PlanningToken] = None

    async def plan_route(self, start_address: str, destination_addresses: Sequence[str]) -> Tour:
        """Resolve the addresses and return an optimised tour.

        Raises:
            PlanningError: One of ``InvalidAddresses``, ``GeocodingFailed``,
                ``NotEnoughValidLocations``, ``OptimizationFailed``,
                ``Timeout`` or ``PlanningCancelled``.
        """
        return await self._plan(self._new_token(), start_address, destination_addresses)

    def plan_route_sync(self, start_address: str, destination_addresses: Sequence[str]) -> Tour:
        """Blocking variant of ``plan_route`` for callers without a loop."""
        return asyncio.run(self.plan_route(start_address, destination_addresses))

    def submit(
        self,
        start_address: str,
        destination_addresses: Sequence[str],
        on_complete: Callable[[PlanningResult], None],
    ) -> "asyncio.Task[None]":
        """Plan in a background task and report through ``on_complete``.

        ``on_complete`` is called exactly once, unless ``cancel`` is called
        first, in which case it is never called. Must be called from a
        running event loop.
        """
        token = self._new_token()

        async def runner() -> None:
            try:
                tour = await self._plan(token, start_address, destination_addresses)
            except PlanningCancelled:
                LOGGER.info("Planning request cancelled; no result delivered")
                return
            except PlanningError as exc:
                result = PlanningResult(error=exc)
            except Exception as exc:
                LOGGER.exception("Route planning failed unexpectedly")
                token.complete()
                error = PlanningError()
                error.__cause__ = exc
                result = PlanningResult(error=error)
            else:
                result = PlanningResult(tour=tour)
            if token.state is TokenState.CANCELLED:
                return
            on_complete(result)

        return asyncio.get_running_loop().create_task(runner())

    def cancel(self) -> None:
        """Abandon the in‑flight request, if any. A no‑op once it finished."""
        if self._token is not None and self._token.cancel():
            LOGGER.info("Cancellation requested")

    def _new_token(self) -> PlanningToken:
        if self._token is not None and self._token.cancel():
            LOGGER.info("Superseding the previous planning request")
        self._token = PlanningToken()
        return self._token

    async def _plan(self, token: PlanningToken, start_address: str, destination_addresses: Sequence[str]) -> Tour:
        destinations = non_blank(destination_addresses)
        if not non_blank([start_address]) or not destinations:
            LOGGER.error("Missing source or destination addresses")
            token.complete()
            raise InvalidAddresses()

        LOGGER.info("Planning route from %r through %d destinations", start_address, len(destinations))
        orchestrator = AddressResolutionOrchestrator(
            self.resolver,
            token=token,
            request_delay=self.settings.request_delay_seconds,
            deadline=self.settings.deadline_seconds,
            on_progress=self.on_progress,
        )
        self.orchestrator = orchestrator
        waypoints = await orchestrator.run(start_address, destinations)
        return self._build_tour(waypoints[0], waypoints[1:])

    def _build_tour(self, start: Waypoint, destinations: List[Waypoint]) -> Tour:
        LOGGER.info("Optimising route with %d destinations", len(destinations))
        try:
            ordered = list(self.optimizer.optimize(start, destinations))
        except Exception as exc:
            LOGGER.exception("Route optimisation raised an unexpected error")
            raise OptimizationFailed() from exc
        if Counter(ordered) != Counter(destinations):
            LOGGER.error("Optimizer returned an order that is not a permutation of the destinations")
            raise OptimizationFailed()
        tour = Tour(start, tuple(ordered), self.settings.average_speed_mps)
        LOGGER.info(
            "Optimised route: %s (%.2f km)",
            [stop.label for stop in tour.stops],
            tour.total_distance_km,
        )
        return tour
