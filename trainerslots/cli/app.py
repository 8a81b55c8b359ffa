"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..adapters.backend_client import BackendClient
from ..adapters.mock_backend_client import MockBackendClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import TrainerSlotsError
from ..domain.models import SlotOverride, SlotStatus
from ..domain.slot_calculator import SlotCalculator
from ..domain.time_utils import get_day_name
from ..services.booking_slots import BookingSlotService

app = typer.Typer(
    name="trainerslots",
    help="Inspect and manage bookable training slots derived from trainer availability",
    add_completion=False,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
MockOption = Annotated[bool, typer.Option("--mock", help="Use bundled mock data instead of the backend API.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)
    return AppConfig.load_or_default(get_default_config_path())


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_service(config: AppConfig, mock: bool, writable: bool = False) -> BookingSlotService:
    if mock:
        if writable and config.mock_data_file is None:
            raise ValueError(
                "Changes made with --mock are only saved to a mock_data_file set in the config; "
                "the bundled mock data is read-only"
            )
        client = MockBackendClient(data_file=config.mock_data_file, persist=writable)
    else:
        client = BackendClient(base_url=config.api_base_url, api_token=config.api_token)

    calculator = SlotCalculator(allowed_durations=config.allowed_durations)
    return BookingSlotService(backend_client=client, slot_calculator=calculator, timezone=config.timezone)


def _resolve_date(date_option: Optional[str], tz: str) -> str:
    if date_option:
        return date_option
    return pendulum.today(tz).format("YYYY-MM-DD")


def _status_label(status: SlotStatus) -> str:
    if status.is_booked:
        return "[red]booked[/red]"
    if not status.is_active:
        return "[yellow]disabled[/yellow]"
    return "[green]open[/green]"


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def slots(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Session duration in minutes")] = None,
    show_all: Annotated[bool, typer.Option("--all", help="Include disabled and booked slots.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List the bookable slots of a trainer for one date.

    Examples:

        trainerslots slots trainer-anna --date 2024-01-01 --duration 60 --mock
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        date_string = _resolve_date(date, config.timezone)
        session_duration = duration if duration is not None else config.defaults.duration_minutes

        statuses = service.slots_for_date(
            trainer_id=trainer_id,
            date_string=date_string,
            duration=session_duration,
        )
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not show_all:
        statuses = [status for status in statuses if status.is_bookable]

    console.print(f"\n[bold cyan]{get_day_name(date_string)}, {date_string}[/bold cyan] ({session_duration} min)\n")

    if not statuses:
        console.print("[yellow]No bookable slots for this date.[/yellow]\n")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold")
    table.add_column("End")
    table.add_column("24h", style="dim")
    table.add_column("Status")

    for status in statuses:
        table.add_row(
            status.slot.display_start,
            status.slot.display_end,
            status.slot.key(),
            _status_label(status),
        )

    console.print(table)
    console.print()


@app.command()
def week(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    start: Annotated[Optional[str], typer.Option("--start", help="First date (YYYY-MM-DD), defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Session duration in minutes")] = None,
    days: Annotated[Optional[int], typer.Option("--days", help="Number of days to show")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the number of bookable slots per day for the coming days.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        start_date = _resolve_date(start, config.timezone)
        session_duration = duration if duration is not None else config.defaults.duration_minutes

        week_slots = service.slots_for_week(
            trainer_id=trainer_id,
            start_date=start_date,
            duration=session_duration,
            days=days if days is not None else config.defaults.days_ahead,
        )
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    table = Table(title=f"Slots for {trainer_id} ({session_duration} min)", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold")
    table.add_column("Day")
    table.add_column("Open", justify="right")
    table.add_column("First slot")

    for date_string, statuses in week_slots.items():
        bookable = [status for status in statuses if status.is_bookable]
        table.add_row(
            date_string,
            get_day_name(date_string),
            str(len(bookable)),
            bookable[0].slot.display_start if bookable else "-",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def availability(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show a trainer's recurring weekly availability.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        days = service.get_availability(trainer_id=trainer_id)
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not days:
        console.print("[yellow]No availability configured for this trainer.[/yellow]")
        return

    table = Table(title=f"Availability for {trainer_id}", show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Windows")
    table.add_column("Active")

    for day in days:
        table.add_row(
            day.day,
            ", ".join(str(window) for window in day.windows) or "-",
            "[green]yes[/green]" if day.is_active else "[dim]no[/dim]",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def check_date(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Check whether a trainer accepts bookings on a date (day-level check).
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock)
        bookable = service.is_date_bookable(trainer_id=trainer_id, date_string=date)
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if bookable:
        console.print(f"[green]✓ {get_day_name(date)} {date} is available.[/green]")
    else:
        console.print(f"[yellow]✗ {date} is not available.[/yellow]")
        raise typer.Exit(2)


@app.command()
def set_slot(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start_time: Annotated[str, typer.Argument(help="Slot start (HH:MM)")],
    end_time: Annotated[str, typer.Argument(help="Slot end (HH:MM)")],
    disable: Annotated[bool, typer.Option("--disable/--enable", help="Disable or re-enable the slot.")] = True,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Enable or disable a single slot on a date.

    Disabling a slot also disables the overlapping slots of the other duration.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock, writable=True)
        duration = SlotCalculator.duration_between(start_time, end_time)
        saved = service.set_slot_active(
            trainer_id=trainer_id,
            date_string=date,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            is_active=not disable,
        )
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    state = "disabled" if disable else "enabled"
    for override in saved:
        console.print(
            f"[green]✓[/green] {override.date} {override.start_time}-{override.end_time} "
            f"({override.duration} min) {state}"
        )


@app.command()
def set_date(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    disable: Annotated[bool, typer.Option("--disable/--enable", help="Disable or re-enable the slots.")] = True,
    duration: Annotated[
        Optional[int], typer.Option("--duration", help="Only change overrides of this duration")
    ] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Enable or disable every slot override stored for a date.
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock, writable=True)
        updated = service.set_all_slots_for_date(
            trainer_id=trainer_id,
            date_string=date,
            is_active=not disable,
            duration=duration,
        )
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    state = "disabled" if disable else "enabled"
    console.print(f"[green]✓[/green] {updated} slot override(s) on {date} {state}")


def _parse_slot(text: str, date: str, default_active: bool) -> SlotOverride:
    times, _, state = text.partition("=")
    start_time, sep, end_time = times.partition("-")
    if not sep:
        raise ValueError(f"Slot must look like HH:MM-HH:MM, optionally with =on or =off, got {text!r}")
    if state not in ("", "on", "off"):
        raise ValueError(f"Slot state must be 'on' or 'off', got {state!r}")

    return SlotOverride(
        date=date,
        start_time=start_time,
        end_time=end_time,
        duration=SlotCalculator.duration_between(start_time, end_time),
        is_active=default_active if not state else state == "on",
    )


@app.command()
def replace_date(
    trainer_id: Annotated[str, typer.Argument(help="Trainer ID")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    slots: Annotated[
        Optional[List[str]], typer.Argument(help="Slots as HH:MM-HH:MM, optionally suffixed =on or =off")
    ] = None,
    disable: Annotated[
        bool, typer.Option("--disable/--enable", help="State for slots without a suffix.")
    ] = True,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Replace all slot overrides of a date with the given slots.

    Overrides on the date that are not listed are removed.

    Examples:

        trainerslots replace-date trainer-anna 2024-01-03 06:00-07:00 07:00-07:30=on
    """
    _configure_logging(verbose)
    try:
        config = _load_config(config_file)
        service = _build_service(config, mock, writable=True)
        overrides = [_parse_slot(text, date, not disable) for text in slots or []]
        saved = service.replace_slots_for_date(trainer_id=trainer_id, date_string=date, overrides=overrides)
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not saved:
        console.print(f"[green]✓[/green] Cleared slot overrides on {date}")
        return

    for override in saved:
        state = "enabled" if override.is_active else "disabled"
        console.print(
            f"[green]✓[/green] {override.date} {override.start_time}-{override.end_time} "
            f"({override.duration} min) {state}"
        )


@app.command()
def trainers(
    config_file: ConfigOption = None,
):
    """
    List the trainers available in the mock data file.
    """
    try:
        config = _load_config(config_file)
        client = MockBackendClient(data_file=config.mock_data_file)
    except (TrainerSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    trainer_ids: List[str] = client.trainer_ids()
    if not trainer_ids:
        console.print("[yellow]No trainers in the mock data file.[/yellow]")
        return

    for trainer_id in trainer_ids:
        console.print(f"  {trainer_id}")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]trainerslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
