"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Dict, List, Optional, Tuple

import pendulum
import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig, load_config
from ..domain.duration_estimator import DurationEstimator
from ..domain.exceptions import GroomPlannerError
from ..domain.models import (
    AppointmentInterval,
    LineItem,
    ReconcileSummary,
    ServiceDurationHistory,
    format_minutes,
    parse_date,
    parse_time_of_day,
)
from ..domain.overlap import find_overlapping, overlaps
from ..domain.slot_allocator import SlotAllocator
from ..adapters.booking_api_client import BookingApiClient
from ..adapters.json_store import JsonFileStore
from ..services.reconciler import AuxiliaryHoursReconciler
from ..services.travel_times import TravelTimeTable

app = typer.Typer(
    name="groomplanner",
    help="Estimate, schedule and reconcile dog-grooming appointments",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)]
    )


def _load(config_file: Optional[Path]) -> AppConfig:
    try:
        return load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _parse_range(value: str) -> Tuple[int, int]:
    """Parse "HH:MM-HH:MM" into minutes from midnight."""
    try:
        start_str, end_str = value.split("-", 1)
        start, end = parse_time_of_day(start_str), parse_time_of_day(end_str)
    except (ValueError, GroomPlannerError) as e:
        raise typer.BadParameter(f"Expected HH:MM-HH:MM, got '{value}' ({e})")

    if end < start:
        raise typer.BadParameter(f"Range '{value}' ends before it starts")
    return start, end


def _load_line_items(
    path: Path
) -> Tuple[List[LineItem], Dict[LineItem, ServiceDurationHistory], Dict[str, int]]:
    """
    Read line items from a YAML file.

    Format:
        standard_durations: {wash: 45, trim: 50}
        line_items:
          - subject: Bella
            service: wash
            durations: [62, 58, 75]  # most recent first
    """
    if not path.exists():
        raise FileNotFoundError(f"Line item file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Line item file must contain a mapping at the root level.")

    standard_durations = {
        str(kind): int(minutes)
        for kind, minutes in (data.get("standard_durations") or {}).items()
    }
    items: List[LineItem] = []
    histories: Dict[LineItem, ServiceDurationHistory] = {}

    for entry in data.get("line_items") or []:
        try:
            item = LineItem(subject=str(entry["subject"]), service_kind=str(entry["service"]))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Line item needs 'subject' and 'service': {entry}") from exc

        items.append(item)
        histories[item] = ServiceDurationHistory.from_durations(
            [float(d) for d in entry.get("durations") or []]
        )

    return items, histories, standard_durations


@app.command()
def estimate(
    line_item_file: Annotated[Path, typer.Argument(help="YAML file with line items and their past durations")],
    config_file: ConfigOption = None,
):
    """
    Estimate the duration of an appointment from past durations.

    Example:

        groomplanner estimate bella.yaml
    """
    config = _load(config_file)

    try:
        items, histories, standard_durations = _load_line_items(line_item_file)
        estimator = DurationEstimator(
            minimum_minutes=config.estimation.minimum_minutes,
            default_service_minutes=config.estimation.default_service_minutes
        )

        table = Table(title="Estimated Duration", show_header=True, header_style="bold cyan")
        table.add_column("Subject", style="bold yellow")
        table.add_column("Service")
        table.add_column("History", style="dim")
        table.add_column("Estimate", justify="right")

        for item in items:
            history = histories.get(item)
            minutes = estimator.estimate_line_item(item, history, standard_durations.get)
            durations = ", ".join(f"{d:g}" for d in history.durations()) if history else ""
            table.add_row(item.subject, item.service_kind, durations or "-", f"{minutes} min")

        total = estimator.estimate(items, histories.get, standard_durations.get)

    except (FileNotFoundError, ValueError, GroomPlannerError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print()
    if items:
        console.print(table)
    console.print(f"[bold green]✓ Estimated duration: {total} minutes[/bold green]\n")


@app.command()
def slot(
    duration: Annotated[int, typer.Option("--duration", "-d", help="Appointment duration in minutes")] = 60,
    busy: Annotated[Optional[List[str]], typer.Option("--busy", "-b", help="Booked range HH:MM-HH:MM (repeatable)")] = None,
    config_file: ConfigOption = None,
):
    """
    Propose a start time for a new appointment on a booked day.

    Example:

        groomplanner slot -d 90 -b 09:00-10:00 -b 11:00-12:00
    """
    config = _load(config_file)
    ranges = [_parse_range(value) for value in busy or []]

    try:
        allocator = SlotAllocator(
            business_hours=config.scheduling.get_business_hours(),
            waste_tolerance_minutes=config.scheduling.waste_tolerance_minutes
        )
        start, end = allocator.propose(ranges, duration)
    except GroomPlannerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    today = pendulum.today().date()
    bookings = [AppointmentInterval(date=today, start=s, end=e) for s, e in ranges]
    conflicts = find_overlapping(bookings, start, end)

    console.print(f"\n[bold green]✓ Proposed slot: {format_minutes(start)} - {format_minutes(end)}[/bold green]")
    for conflict in conflicts:
        console.print(
            f"[yellow]⚠ Overlaps booking {format_minutes(conflict.start)} - "
            f"{format_minutes(conflict.end)}[/yellow]"
        )
    console.print()


@app.command()
def overlap(
    first: Annotated[str, typer.Argument(help="First range HH:MM-HH:MM")],
    second: Annotated[str, typer.Argument(help="Second range HH:MM-HH:MM")],
):
    """
    Check whether two time ranges overlap.
    """
    a_start, a_end = _parse_range(first)
    b_start, b_end = _parse_range(second)

    if overlaps(a_start, a_end, b_start, b_end):
        console.print(f"[yellow]{first} and {second} overlap[/yellow]")
    else:
        console.print(f"[green]{first} and {second} do not overlap[/green]")


def _build_reconciler(config: AppConfig, data_file: Optional[Path], api_url: Optional[str]) -> AuxiliaryHoursReconciler:
    url = api_url or config.api_url

    if url:
        store = BookingApiClient(
            base_url=url,
            travel_code=config.auxiliary.travel_code,
            cleaning_code=config.auxiliary.cleaning_code,
            timeout=config.api_timeout
        )
    else:
        store = JsonFileStore(data_file or config.data_file)

    travel_times = TravelTimeTable(config.travel_time_entries()) if config.travel_times else store

    return AuxiliaryHoursReconciler(
        store=store,
        travel_times=travel_times,
        travel_fallback_minutes=config.auxiliary.travel_fallback_minutes,
        cleaning_minutes=config.auxiliary.cleaning_minutes
    )


def _summary_table(summary: ReconcileSummary) -> Table:
    table = Table(title="Travel & Cleaning Hours", show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="bold yellow")
    table.add_column("Added", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Removed", justify="right")

    for label, attr in (("Travel", "travel"), ("Cleaning", "cleaning")):
        table.add_row(
            label,
            str(getattr(summary.added, attr)),
            str(getattr(summary.updated, attr)),
            str(getattr(summary.removed, attr))
        )
    return table


@app.command()
def reconcile(
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD), defaults to today")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD), defaults to start + 7 days")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data-file", help="JSON data file to reconcile")] = None,
    api_url: Annotated[Optional[str], typer.Option("--api-url", help="Booking backend URL, overrides the data file")] = None,
    config_file: ConfigOption = None,
):
    """
    Sync travel and cleaning hours with the open appointments of a date range.

    Examples:

        groomplanner reconcile --start 2024-11-25 --end 2024-11-30

        groomplanner reconcile --api-url http://localhost:3000/api/v1
    """
    config = _load(config_file)

    try:
        start_date = parse_date(start) if start else pendulum.today().date()
        end_date = parse_date(end) if end else start_date.add(days=7)

        reconciler = _build_reconciler(config, data_file, api_url)
        summary = reconciler.reconcile(start_date, end_date)

    except GroomPlannerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print()
    console.print(_summary_table(summary))
    console.print(
        f"\n[bold]{summary.processed_dates}[/bold] date(s) processed between "
        f"{start_date.format('DD.MM.YYYY')} and {end_date.format('DD.MM.YYYY')}"
    )

    if summary.errors:
        console.print(f"\n[yellow]⚠ {len(summary.errors)} error(s), re-run the same range to retry:[/yellow]")
        for error in summary.errors:
            console.print(f"  [red]•[/red] {error}")
        raise typer.Exit(1)

    console.print("[green]✓ Travel and cleaning hours are in sync.[/green]\n")


@app.command()
def travel_times(
    data_file: Annotated[Optional[Path], typer.Option("--data-file", help="JSON data file with a travel time table")] = None,
    config_file: ConfigOption = None,
):
    """
    List the travel time table (configured entries win over the data file).
    """
    config = _load(config_file)

    try:
        if config.travel_times:
            entries = config.travel_time_entries()
        else:
            entries = JsonFileStore(data_file or config.data_file).travel_times.entries()
    except GroomPlannerError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not entries:
        console.print(
            f"[yellow]No travel times configured; the default of "
            f"{config.auxiliary.travel_fallback_minutes} minutes applies.[/yellow]"
        )
        return

    table = Table(title="Travel Times", show_header=True, header_style="bold cyan")
    table.add_column("Weekday", style="bold yellow")
    table.add_column("Hour")
    table.add_column("Minutes", justify="right")

    for entry in entries:
        table.add_row(WEEKDAY_NAMES[entry.weekday], f"{entry.hour:02d}:00", str(entry.minutes))

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]groomplanner[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
