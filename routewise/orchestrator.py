"""
Sequential address resolution for RouteWise.

``AddressResolutionOrchestrator`` resolves a start address and a list of
destination addresses one at a time against an ``AddressResolver``. It
pauses between successful lookups to respect the resolver's rate limit,
skips destinations that cannot be resolved, aborts when the start cannot
be resolved, and gives up entirely once the request deadline passes.

The deadline and explicit cancellation share one ``PlanningToken``. The
token settles exactly once; whichever of completion, cancellation or the
deadline happens first wins and the others become no‑ops. Every
suspension point (a resolver call or the pause between calls) races
against the token, so a cancelled or timed out request stops at the next
step and discards any late resolver answer.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

from .errors import (
    GeocodingFailed,
    InvalidAddresses,
    NotEnoughValidLocations,
    PlanningCancelled,
    PlanningError,
    ResolverError,
    Timeout,
)
from .geocode import AddressResolver
from .logging_utils import get_logger
from .models import Waypoint
from .settings import get_settings

LOGGER = get_logger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[int, str, int], None]


class TokenState(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


class PlanningToken:
    """Fire‑once cancellation token carrying a request deadline.

    A token belongs to a single planning request. ``arm`` schedules the
    deadline on the running event loop; ``complete`` and ``cancel``
    settle the token and disarm the deadline. Only the first settlement
    takes effect; later calls return ``False``.
    """

    def __init__(self) -> None:
        self.state = TokenState.PENDING
        self._handle: Optional[asyncio.TimerHandle] = None
        self._stopped = asyncio.Event()

    @property
    def settled(self) -> bool:
        return self.state is not TokenState.PENDING

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, deadline_seconds: float) -> None:
        if self.settled:
            return
        self.disarm()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(deadline_seconds, self._expire)

    def disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def complete(self) -> bool:
        return self._settle(TokenState.COMPLETED)

    def cancel(self) -> bool:
        return self._settle(TokenState.CANCELLED)

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    def _expire(self) -> None:
        self._handle = None
        if self._settle(TokenState.TIMED_OUT):
            LOGGER.warning("Route planning deadline elapsed")

    def _settle(self, state: TokenState) -> bool:
        if self.settled:
            return False
        self.state = state
        self.disarm()
        self._stopped.set()
        return True


class ResolutionState(enum.Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    COMPLETED = "completed"
    ABORTED = "aborted"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Resolved:
    waypoint: Waypoint


@dataclass(frozen=True)
class Skipped:
    address: str
    reason: str


@dataclass(frozen=True)
class Fatal:
    error: PlanningError


Outcome = Union[Resolved, Skipped, Fatal]


def non_blank(addresses: Sequence[str]) -> List[str]:
    """Drop empty and whitespace‑only entries, keeping the original text."""
    return [address for address in addresses if address and address.strip()]


def _discard_result(task: "asyncio.Future[object]") -> None:
    # Retrieve the outcome so asyncio does not report it as unhandled.
    if not task.cancelled() and task.exception() is not None:
        LOGGER.debug("Discarded late resolver failure: %s", task.exception())


class AddressResolutionOrchestrator:
    """Resolve ``[start] + destinations`` into waypoints, one at a time.

    An instance handles exactly one request. ``state`` and ``index``
    expose the progress of that request; ``outcomes`` records what
    happened to every address attempted so far.

    Args:
        resolver: The address resolution capability.
        token: Cancellation token for the request. A fresh one is created
            when omitted.
        request_delay: Pause in seconds after each successful lookup.
        deadline: Seconds allowed for the whole resolution sequence.
        on_progress: Called as ``on_progress(index, address, total)``
            before each lookup. Errors it raises are logged and
            ignored.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        token: Optional[PlanningToken] = None,
        request_delay: Optional[float] = None,
        deadline: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        if request_delay is None or deadline is None:
            settings = get_settings()
            if request_delay is None:
                request_delay = settings.request_delay_seconds
            if deadline is None:
                deadline = settings.deadline_seconds
        self.resolver = resolver
        self.token = token or PlanningToken()
        self.request_delay = request_delay
        self.deadline = deadline
        self.on_progress = on_progress
        self.state = ResolutionState.IDLE
        self.index: Optional[int] = None
        self.total = 0
        self.outcomes: List[Outcome] = []

    def cancel(self) -> bool:
        """Stop the request at its next step. Safe to call at any time."""
        return self.token.cancel()

    async def run(self, start_address: str, destination_addresses: Sequence[str]) -> List[Waypoint]:
        """Resolve every address and return the waypoints in processed order.

        The start waypoint is always first. Destinations that fail to
        resolve are skipped.

        Raises:
            InvalidAddresses: Blank start or no non‑blank destination.
            GeocodingFailed: The start address could not be resolved.
            NotEnoughValidLocations: No destination could be resolved.
            Timeout: The deadline elapsed first.
            PlanningCancelled: ``cancel`` was called first.
            PlanningError: Anything else went wrong; the original
                exception is chained as ``__cause__``.
        """
        if self.state is not ResolutionState.IDLE:
            raise RuntimeError("an orchestrator resolves a single request")

        destinations = non_blank(destination_addresses)
        if not non_blank([start_address]) or not destinations:
            self._finish(ResolutionState.ABORTED)
            raise InvalidAddresses()

        addresses = [start_address] + destinations
        self.total = len(addresses)
        self.state = ResolutionState.RESOLVING
        self.token.arm(self.deadline)
        LOGGER.info("Resolving %d addresses (deadline %.1fs)", self.total, self.deadline)

        try:
            waypoints = await self._resolve_all(addresses)
        except asyncio.CancelledError:
            self.token.cancel()
            self.state = ResolutionState.CANCELLED
            raise
        except PlanningError:
            raise
        except Exception as exc:
            LOGGER.exception("Resolution failed unexpectedly at address %s of %d", self.index, self.total)
            self.token.complete()
            self.state = ResolutionState.ABORTED
            raise PlanningError() from exc

        if len(waypoints) < 2:
            LOGGER.error("Not enough valid locations: %d resolved", len(waypoints))
            self._finish(ResolutionState.ABORTED)
            raise NotEnoughValidLocations()

        self._finish(ResolutionState.COMPLETED)
        skipped = sum(1 for outcome in self.outcomes if isinstance(outcome, Skipped))
        LOGGER.info("Resolved %d of %d addresses (%d skipped)", len(waypoints), self.total, skipped)
        return waypoints

    async def _resolve_all(self, addresses: Sequence[str]) -> List[Waypoint]:
        waypoints: List[Waypoint] = []
        last = len(addresses) - 1
        for index, address in enumerate(addresses):
            self.index = index
            self._report_progress(index, address)
            LOGGER.debug("Geocoding address %d: %s", index, address)

            waypoint, reason = await self._resolve_one(address)
            if waypoint is None:
                if index == 0:
                    error = GeocodingFailed(address)
                    self.outcomes.append(Fatal(error))
                    LOGGER.error("Start address could not be resolved: %s (%s)", address, reason)
                    self._finish(ResolutionState.ABORTED)
                    raise error
                self.outcomes.append(Skipped(address, reason))
                LOGGER.warning("Skipping destination %d %r: %s", index, address, reason)
                continue

            waypoints.append(waypoint)
            self.outcomes.append(Resolved(waypoint))
            LOGGER.debug("Address %d geocoded: %.6f, %.6f", index, waypoint.latitude, waypoint.longitude)
            if index < last and self.request_delay > 0:
                await self._race(asyncio.sleep(self.request_delay), abandon=False)
        return waypoints

    def _report_progress(self, index: int, address: str) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(index, address, self.total)
        except Exception:
            LOGGER.exception("Progress callback failed for address %d", index)

    async def _resolve_one(self, address: str):
        """Return ``(waypoint, None)`` or ``(None, reason)`` for one address."""
        try:
            coordinate = await self._race(self.resolver.resolve(address), abandon=True)
        except ResolverError as exc:
            return None, str(exc)
        except (Timeout, PlanningCancelled):
            raise
        except Exception as exc:
            LOGGER.exception("Unexpected resolver error for %r", address)
            return None, repr(exc)
        if coordinate is None:
            return None, "no result"
        try:
            return Waypoint(address, coordinate), None
        except (TypeError, ValueError) as exc:
            return None, str(exc)

    async def _race(self, awaitable: Awaitable[T], abandon: bool) -> T:
        """Await ``awaitable`` unless the token settles first.

        With ``abandon`` set, an unfinished awaitable is left running and
        its eventual result is dropped; otherwise it is cancelled.
        """
        if self.token.settled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise self._stopped()
        task = asyncio.ensure_future(awaitable)
        stopper = asyncio.ensure_future(self.token.wait_stopped())
        try:
            await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopper.cancel()
            if not task.done():
                if abandon:
                    task.add_done_callback(_discard_result)
                else:
                    task.cancel()
        if self.token.settled:
            if task.done():
                _discard_result(task)
            raise self._stopped()
        return task.result()

    def _stopped(self) -> PlanningError:
        if self.token.state is TokenState.TIMED_OUT:
            self.state = ResolutionState.TIMED_OUT
            LOGGER.warning("Timed out while resolving address %s of %d", self.index, self.total)
            return Timeout()
        self.state = ResolutionState.CANCELLED
        LOGGER.info("Resolution cancelled at address %s of %d", self.index, self.total)
        return PlanningCancelled()

    def _finish(self, state: ResolutionState) -> None:
        if not self.token.complete() and self.token.state is not TokenState.COMPLETED:
            raise self._stopped()
        self.state = state
