"""
Command line entry point for RouteWise.

    routewise plan "Tokyo Station" "Tokyo Tower" "Ueno Park" "Asakusa"

The first argument is the start address; the rest are destinations.
Addresses are geocoded with Nominatim, so a run takes at least half a
second per address.
"""

from __future__ import annotations

from typing import List, Optional

import typer

from .errors import PlanningError
from .geocode import GeopyResolver
from .logging_utils import configure_root_logger
from .service import RoutePlanningService
from .settings import get_settings

cli = typer.Typer(help="Plan a short multi-stop route between addresses.")


@cli.callback()
def main() -> None:
    """RouteWise route planner."""


@cli.command()
def plan(
    start: str = typer.Argument(..., help="Starting address."),
    destinations: List[str] = typer.Argument(..., help="Destination addresses."),
    deadline: Optional[float] = typer.Option(None, help="Seconds allowed for geocoding."),
    delay: Optional[float] = typer.Option(None, help="Pause between geocoding requests."),
    speed: Optional[float] = typer.Option(None, help="Average speed in m/s for time estimates."),
) -> None:
    """Geocode the addresses and print an optimised visiting order."""

    overrides = {}
    if deadline is not None:
        overrides["deadline_seconds"] = deadline
    if delay is not None:
        overrides["request_delay_seconds"] = delay
    if speed is not None:
        overrides["average_speed_mps"] = speed
    settings = get_settings().model_copy(update=overrides)
    configure_root_logger(settings.log_level)

    service = RoutePlanningService(GeopyResolver(settings=settings), settings=settings)
    try:
        tour = service.plan_route_sync(start, destinations)
    except PlanningError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Start: {tour.start.label}")
    for number, leg in enumerate(tour.legs(), start=1):
        typer.echo(f"{number}. {leg.destination.label} (+{leg.distance_km:.1f} km)")
    typer.echo(f"Total distance: {tour.total_distance_km:.1f} km")
    typer.echo(f"Estimated time: {tour.estimated_duration_s / 60:.0f} min")


if __name__ == "__main__":
    cli()
