"""
RouteWise package initialization.

This package plans multi-stop routes: it geocodes a start address and a
list of destinations, then orders the destinations into a short tour.

Modules:
    models        – Waypoint and Tour value types.
    routing       – Haversine distance and the average-speed time model.
    optimisation  – Nearest neighbour and bounded 2‑opt heuristics.
    geocode       – Address resolver protocol and the geopy adapter.
    orchestrator  – Sequential, deadline-bound address resolution.
    service       – The route planning entry point.
    settings      – Environment driven configuration.
    cli           – Typer command line interface.

Tours are heuristic: they are usually short but not guaranteed to be the
shortest possible, and time estimates ignore traffic.
"""

from .errors import (
    AddressNotFound,
    GeocodingFailed,
    InvalidAddresses,
    NotEnoughValidLocations,
    OptimizationFailed,
    PlanningCancelled,
    PlanningError,
    ResolverError,
    ResolverUnavailable,
    Timeout,
)
from .models import Coordinate, Tour, Waypoint
from .optimisation import TourOptimizer, TwoOptLimits
from .service import PlanningResult, RoutePlanningService

__all__ = [
    "AddressNotFound",
    "Coordinate",
    "GeocodingFailed",
    "InvalidAddresses",
    "NotEnoughValidLocations",
    "OptimizationFailed",
    "PlanningCancelled",
    "PlanningError",
    "PlanningResult",
    "ResolverError",
    "ResolverUnavailable",
    "RoutePlanningService",
    "Timeout",
    "Tour",
    "TourOptimizer",
    "Waypoint",
]
