"""
Exception types raised by the RouteWise planning pipeline.

``PlanningError`` subclasses are the terminal outcomes a caller of
``RoutePlanningService.plan_route`` can observe. ``ResolverError``
subclasses are raised by address resolvers and are handled inside the
orchestrator; they only reach the caller wrapped as ``GeocodingFailed``.
"""

from __future__ import annotations


class PlanningError(Exception):
    """Base class for every terminal planning failure."""

    message = "Route planning failed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidAddresses(PlanningError):
    message = "Missing source or destination addresses."


class GeocodingFailed(PlanningError):
    """The start address could not be resolved."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Couldn't find location for: {address}.")


class NotEnoughValidLocations(PlanningError):
    message = "Need at least a source and one destination to optimize route."


class OptimizationFailed(PlanningError):
    message = "Failed to optimize the route. Please try again."


class Timeout(PlanningError):
    message = (
        "The route optimization process took too long. "
        "Please try again with fewer destinations."
    )


class PlanningCancelled(PlanningError):
    message = "Route planning was cancelled."


class ResolverError(Exception):
    """Base class for address resolver failures."""

    def __init__(self, address: str, detail: str = "") -> None:
        self.address = address
        self.detail = detail
        text = f"{address}: {detail}" if detail else address
        super().__init__(text)


class AddressNotFound(ResolverError):
    """The resolver returned no candidate for the address."""


class ResolverUnavailable(ResolverError):
    """The resolver failed transiently (network error, timeout, quota)."""
