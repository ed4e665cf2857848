"""
Data model for RouteWise.

A ``Waypoint`` is an address label paired with the coordinate it was
resolved to. A ``Tour`` is a fixed start waypoint followed by an ordered
sequence of stops. Both are immutable; reordering a tour yields a new
``Tour``. Distance and duration are derived on demand from the current
order rather than stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Sequence, Tuple

from .routing import DEFAULT_AVERAGE_SPEED_MPS, estimated_duration, haversine_distance, route_distance


class Coordinate(NamedTuple):
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Waypoint:
    """A resolved address."""

    label: str
    coordinate: Coordinate

    def __post_init__(self) -> None:
        if not self.label:
            raise ValueError("waypoint label must not be empty")
        lat, lon = self.coordinate
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"latitude out of range: {lat!r}")
        if not -180.0 <= lon <= 180.0:
            raise ValueError(f"longitude out of range: {lon!r}")
        # Normalise plain tuples so equality does not depend on the input type.
        object.__setattr__(self, "coordinate", Coordinate(float(lat), float(lon)))

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude


@dataclass(frozen=True)
class Leg:
    origin: Waypoint
    destination: Waypoint
    distance_km: float


@dataclass(frozen=True)
class Tour:
    """A start point plus an ordered sequence of stops.

    ``stops`` is always a permutation of the destinations the tour was
    planned for; ``start`` never moves. Callers that want a different
    visiting order use ``reordered`` or ``move_stop``.
    """

    start: Waypoint
    stops: Tuple[Waypoint, ...]
    average_speed_mps: float = DEFAULT_AVERAGE_SPEED_MPS

    def __post_init__(self) -> None:
        object.__setattr__(self, "stops", tuple(self.stops))

    @property
    def waypoints(self) -> Tuple[Waypoint, ...]:
        return (self.start,) + self.stops

    @property
    def total_distance_km(self) -> float:
        return route_distance([w.coordinate for w in self.waypoints])

    @property
    def estimated_duration_s(self) -> float:
        return estimated_duration(self.total_distance_km, self.average_speed_mps)

    def legs(self) -> List[Leg]:
        """Return every consecutive hop of the tour with its distance."""
        points = self.waypoints
        return [
            Leg(a, b, haversine_distance(a.coordinate, b.coordinate))
            for a, b in zip(points, points[1:])
        ]

    def reordered(self, order: Sequence[int]) -> "Tour":
        """Return a tour visiting ``stops[i] for i in order``.

        Args:
            order: A permutation of ``range(len(self.stops))``.

        Raises:
            ValueError: If ``order`` is not such a permutation.
        """
        if sorted(order) != list(range(len(self.stops))):
            raise ValueError(f"order must be a permutation of 0..{len(self.stops) - 1}")
        return Tour(self.start, tuple(self.stops[i] for i in order), self.average_speed_mps)

    def move_stop(self, source: int, destination: int) -> "Tour":
        """Return a tour with the stop at ``source`` moved to ``destination``."""
        count = len(self.stops)
        if not (0 <= source < count and 0 <= destination < count):
            raise IndexError(f"stop index out of range for {count} stops")
        order = list(range(count))
        order.insert(destination, order.pop(source))
        return self.reordered(order)
