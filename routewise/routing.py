"""
Distance utilities for RouteWise.

This module provides the great‑circle distance metric used throughout
the planner, along with a simple average‑speed model for converting a
distance into an estimated travel duration. All values are returned as
full precision floats in kilometres and seconds; rounding and unit
conversion for display are left to the caller.

Example usage:

    coords = [(35.6586, 139.7454), (35.6895, 139.6917)]
    dist_mat, dur_mat = compute_haversine_matrix(coords)

The speed model is deliberately crude. It ignores traffic, road
network shape and stops, and should be read as a rough estimate only.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

EARTH_RADIUS_KM = 6371.0

# 35 mph, a mixed urban/suburban driving assumption.
DEFAULT_AVERAGE_SPEED_MPS = 15.6


def haversine_distance(coord1: Tuple[float, float], coord2: Tuple[float, float]) -> float:
    """Compute the great‑circle distance between two coordinates in kilometers."""
    lat1, lon1 = coord1
    lat2, lon2 = coord2
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimated_duration(distance_km: float, average_speed_mps: Optional[float] = None) -> float:
    """Convert a distance into an estimated travel time.

    Args:
        distance_km: Distance to travel in kilometers.
        average_speed_mps: Assumed constant speed in meters per second.
            Defaults to ``DEFAULT_AVERAGE_SPEED_MPS``.

    Returns:
        Estimated duration in seconds.
    """
    speed = DEFAULT_AVERAGE_SPEED_MPS if average_speed_mps is None else average_speed_mps
    if speed <= 0:
        raise ValueError(f"average speed must be positive, got {speed!r}")
    return distance_km * 1000.0 / speed


def route_distance(coords: Sequence[Tuple[float, float]]) -> float:
    """Return the length in kilometers of the open path through ``coords``."""
    return sum(haversine_distance(coords[i], coords[i + 1]) for i in range(len(coords) - 1))


def compute_haversine_matrix(
    coords: Sequence[Tuple[float, float]],
    average_speed_mps: Optional[float] = None,
) -> Tuple[List[List[float]], List[List[float]]]:
    """Compute distance and duration matrices using the Haversine formula.

    Args:
        coords: List of (lat, lon) tuples.
        average_speed_mps: Assumed constant travel speed in m/s.

    Returns:
        Tuple of (distance_matrix_km, duration_matrix_s).
    """
    n = len(coords)
    dist_matrix = [[0.0] * n for _ in range(n)]
    dur_matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            dist = haversine_distance(coords[i], coords[j])
            dur = estimated_duration(dist, average_speed_mps)
            dist_matrix[i][j] = dist_matrix[j][i] = dist
            dur_matrix[i][j] = dur_matrix[j][i] = dur
    return dist_matrix, dur_matrix
