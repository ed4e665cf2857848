"""
Route optimisation heuristics for RouteWise.

This module implements simple travelling salesman heuristics for
constructing an approximate shortest tour through a set of points.
It provides two index based functions:

    - ``nearest_neighbor``: build an initial route by repeatedly
      visiting the nearest unvisited location.
    - ``two_opt``: perform a bounded 2‑opt optimisation on a route.

``TourOptimizer`` wraps both for ``Waypoint`` objects: it builds a
haversine distance matrix for the start and destinations, runs the
heuristics and maps the indices back to waypoints.

The algorithms operate on a symmetric distance matrix. Index 0 is the
fixed starting point. 2‑opt is quadratic per pass, so the number of
passes is capped (see ``TwoOptLimits``); large inputs therefore trade
tour quality for a predictable running time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .logging_utils import get_logger
from .models import Waypoint
from .routing import compute_haversine_matrix
from .settings import RouteWiseSettings, get_settings

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class TwoOptLimits:
    """Circuit breaker for the 2‑opt loop.

    Attributes:
        max_passes: Hard cap on full passes over the route.
        soft_pass_limit: Pass count after which longer routes stop early.
        soft_limit_min_stops: Routes with more points than this are
            subject to ``soft_pass_limit``.
    """

    max_passes: int = 100
    soft_pass_limit: int = 20
    soft_limit_min_stops: int = 8

    @classmethod
    def from_settings(cls, settings: Optional[RouteWiseSettings] = None) -> "TwoOptLimits":
        settings = settings or get_settings()
        return cls(
            max_passes=settings.two_opt_max_passes,
            soft_pass_limit=settings.two_opt_soft_pass_limit,
            soft_limit_min_stops=settings.two_opt_soft_limit_min_stops,
        )


def path_length(route: Sequence[int], dist_matrix: Sequence[Sequence[float]]) -> float:
    """Return the open path length of ``route`` (no return to the start)."""
    return sum(dist_matrix[route[i]][route[i + 1]] for i in range(len(route) - 1))


def nearest_neighbor(dist_matrix: Sequence[Sequence[float]], start: int = 0) -> List[int]:
    """Construct an initial route using the nearest neighbor heuristic.

    Ties are broken in favour of the lowest index, i.e. the first
    candidate in input order.

    Args:
        dist_matrix: A square matrix of distances.
        start: Index of the start location in the matrix.

    Returns:
        A list of indices representing the visiting order, starting
        with ``start`` and including all other indices exactly once.
    """
    n = len(dist_matrix)
    if n == 0:
        return []
    unvisited = [i for i in range(n) if i != start]
    route = [start]
    current = start
    while unvisited:
        # min() keeps the first of several equal candidates
        next_city = min(unvisited, key=lambda j: dist_matrix[current][j])
        route.append(next_city)
        unvisited.remove(next_city)
        current = next_city
    return route


def two_opt(
    route: List[int],
    dist_matrix: Sequence[Sequence[float]],
    limits: Optional[TwoOptLimits] = None,
) -> List[int]:
    """Perform 2‑opt optimisation on a given route.

    Each pass compares every pair of non‑adjacent edges ``(i, i+1)`` and
    ``(j, j+1 mod n)``; when reconnecting them as ``(i, j)`` and
    ``(i+1, j+1 mod n)`` is strictly shorter, the segment
    ``route[i+1..j]`` is reversed in place. ``route[0]`` never moves.

    Args:
        route: Initial route as a list of indices. It is not modified.
        dist_matrix: Square matrix of distances corresponding to the
            indices in ``route``.
        limits: Pass caps. Defaults to ``TwoOptLimits()``.

    Returns:
        An optimised route with potentially shorter total length.
    """
    limits = limits or TwoOptLimits()
    best = route.copy()
    n = len(best)
    passes = 0
    improved = True
    while improved:
        if passes >= limits.max_passes:
            LOGGER.debug("2-opt stopped at hard cap after %d passes", passes)
            break
        if passes >= limits.soft_pass_limit and n > limits.soft_limit_min_stops:
            LOGGER.debug("2-opt stopped early after %d passes on %d points", passes, n)
            break
        improved = False
        passes += 1
        for i in range(n - 2):
            for j in range(i + 2, n):
                a, b = best[i], best[i + 1]
                c, d = best[j], best[(j + 1) % n]
                current = dist_matrix[a][b] + dist_matrix[c][d]
                swapped = dist_matrix[a][c] + dist_matrix[b][d]
                if swapped < current:
                    best[i + 1:j + 1] = best[i + 1:j + 1][::-1]
                    improved = True
    return best


class TourOptimizer:
    """Order destinations into a short tour from a fixed start."""

    def __init__(self, limits: Optional[TwoOptLimits] = None) -> None:
        self.limits = limits or TwoOptLimits.from_settings()

    def optimize(self, start: Waypoint, destinations: Iterable[Waypoint]) -> List[Waypoint]:
        """Return ``destinations`` in visiting order.

        The result is a permutation of ``destinations``; the start is not
        included. Waypoints that share a coordinate are kept as separate
        stops.
        """
        destinations = list(destinations)
        if not destinations:
            return []
        points = [start] + destinations
        dist_matrix, _ = compute_haversine_matrix([p.coordinate for p in points])

        constructed = nearest_neighbor(dist_matrix, start=0)
        refined = two_opt(constructed, dist_matrix, self.limits)
        # The closing edge term can accept a move that lengthens the open path.
        if path_length(refined, dist_matrix) > path_length(constructed, dist_matrix):
            refined = constructed
        LOGGER.debug(
            "Optimised %d stops: %.3f km",
            len(destinations),
            path_length(refined, dist_matrix),
        )
        return [points[i] for i in refined[1:]]

    def nearest_neighbor_route(self, start: Waypoint, destinations: Iterable[Waypoint]) -> List[Waypoint]:
        """Return ``[start]`` followed by the greedy nearest neighbour order."""
        points = [start] + list(destinations)
        dist_matrix, _ = compute_haversine_matrix([p.coordinate for p in points])
        return [points[i] for i in nearest_neighbor(dist_matrix, start=0)]

    def two_opt_route(self, route: Sequence[Waypoint]) -> List[Waypoint]:
        """Apply 2‑opt to a full route whose first element is the start."""
        points = list(route)
        dist_matrix, _ = compute_haversine_matrix([p.coordinate for p in points])
        return [points[i] for i in two_opt(list(range(len(points))), dist_matrix, self.limits)]
