"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.api_client import ScheduleApiClient
from ..adapters.mock_api_client import MockApiClient
from ..config import AppConfig, load_config
from ..domain.exceptions import FreeSlotError, InvalidConstraints, InvalidInterval
from ..domain.models import get_timezone
from ..schemas import FreeSlotResponse, parse_request
from ..services.free_slot_finder import FreeSlotFinderService

app = typer.Typer(
    name="groupslots",
    help="Find the time ranges in which every member of a group is free",
    add_completion=False
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_client(config: AppConfig, mock: bool):
    if mock:
        return MockApiClient(excluded_statuses=config.api.excluded_statuses)
    return ScheduleApiClient(
        base_url=config.api.base_url,
        access_token=config.api.access_token or None,
        timeout=config.api.timeout_seconds,
        excluded_statuses=config.api.excluded_statuses,
    )


def _parse_hours(hours: str) -> List[str]:
    """Split 'HH:mm-HH:mm' into its two halves."""
    parts = [part.strip() for part in hours.split("-")]
    if len(parts) != 2 or not all(parts):
        raise InvalidConstraints(f"Working hours must look like 09:00-22:00, got '{hours}'")
    return parts


def _parse_days(days: str) -> List[int]:
    try:
        return [int(day) for day in days.replace(" ", "").split(",") if day]
    except ValueError as exc:
        raise InvalidConstraints(f"Days must be comma separated numbers 1-7, got '{days}'") from exc


def _build_payload(
    *,
    config: AppConfig,
    request_file: Optional[Path],
    members: List[str],
    group: Optional[str],
    start: Optional[str],
    end: Optional[str],
    duration: Optional[int],
    hours: Optional[str],
    days: Optional[str],
) -> Dict[str, Any]:
    """
    Merge the request file (if any), command line options and configured
    defaults into one request document. Options win over the file, the file
    wins over defaults.
    """
    payload: Dict[str, Any] = {}

    if request_file is not None:
        with open(request_file, "r", encoding="utf-8") as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise InvalidConstraints("Request file must contain a JSON object.")

    defaults = config.defaults
    payload.setdefault("timezone", config.timezone)
    tz = payload["timezone"]

    if group is not None:
        payload["groupId"] = group
    if members:
        payload["userIds"] = config.resolve_members(members)

    if start is not None:
        payload["startDate"] = start
    payload.setdefault("startDate", pendulum.now(get_timezone(tz)).format("YYYY-MM-DD"))

    if end is not None:
        payload["endDate"] = end
    if "endDate" not in payload:
        start_day = pendulum.from_format(str(payload["startDate"]), "YYYY-MM-DD", tz=get_timezone(tz))
        payload["endDate"] = start_day.add(days=defaults.search_days).format("YYYY-MM-DD")

    if duration is not None:
        payload["minDurationMinutes"] = duration
    payload.setdefault("minDurationMinutes", defaults.duration_minutes)

    if hours is not None:
        payload["workingHoursStart"], payload["workingHoursEnd"] = _parse_hours(hours)
    payload.setdefault("workingHoursStart", defaults.working_hours_start.strftime("%H:%M"))
    payload.setdefault("workingHoursEnd", defaults.working_hours_end.strftime("%H:%M"))

    if days is not None:
        payload["daysOfWeek"] = _parse_days(days)
    payload.setdefault("daysOfWeek", list(defaults.days_of_week))

    return payload


def _print_slots(response: FreeSlotResponse) -> None:
    period = response.search_period

    console.print("[bold cyan]Summary:[/bold cyan]")
    if response.group_name:
        console.print(f"   Group: {response.group_name} ({response.group_id})")
    console.print(f"   Participants: {response.participant_count}")
    console.print(f"   Period: {period.start_date} - {period.end_date}")
    console.print(f"   Minimum duration: {period.min_duration_minutes} minutes")
    if response.excluded_participant_ids:
        console.print(
            f"   [yellow]Excluded (schedules unavailable): "
            f"{', '.join(response.excluded_participant_ids)}[/yellow]"
        )
    console.print()

    if not response.free_slots:
        console.print(
            "[yellow]No common free time found.[/yellow]\n"
            "Try a longer period, more weekdays or a shorter minimum duration."
        )
        return

    table = Table(
        title=f"{response.total_free_slots_found} free slot(s)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Duration", justify="right", style="dim")

    for slot in response.free_slots:
        slot_start = pendulum.parse(slot.start_time)
        slot_end = pendulum.parse(slot.end_time)
        table.add_row(
            slot.day_of_week.capitalize(),
            slot_start.format("YYYY-MM-DD"),
            f"{slot_start.format('HH:mm')} - {slot_end.format('HH:mm')}",
            f"{slot.duration_minutes} min",
        )

    console.print(table)


@app.command()
def find(
    members: Annotated[Optional[List[str]], typer.Argument(help="Member names or ids to include. Defaults to the whole group.")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    group: Annotated[Optional[str], typer.Option("--group", "-g", help="Group id whose members are looked up")] = None,
    request_file: Annotated[Optional[Path], typer.Option("--request", "-r", help="Request JSON file (inline participants or groupId)")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD), inclusive")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Minimum slot duration in minutes")] = None,
    hours: Annotated[Optional[str], typer.Option("--hours", help="Working hours, e.g. 09:00-22:00")] = None,
    days: Annotated[Optional[str], typer.Option("--days", help="Allowed weekdays, 1=Monday .. 7=Sunday, e.g. 1,2,3,4,5")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use bundled mock data instead of the backend.")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Print the response document as JSON.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Find free time slots shared by all selected members.

    Examples:

        # Whole group, next two weeks
        groupslots find --group 1

        # Two members only, weekdays, at least 90 minutes
        groupslots find minji junho --group 1 --days 1,2,3,4,5 --duration 90

        # Compute from a request document, no backend needed
        groupslots find --request request.json --json

        # Use mock data
        groupslots find --group 1 --mock --start 2025-12-01 --end 2025-12-07
    """
    _configure_logging(verbose)

    try:
        config = load_config(config_file)

        payload = _build_payload(
            config=config,
            request_file=request_file,
            members=members or [],
            group=group,
            start=start,
            end=end,
            duration=duration,
            hours=hours,
            days=days,
        )
        request = parse_request(payload)

        if not request.participants and request.group_id is None:
            console.print("[bold red]Error:[/bold red] Provide --group or a --request file with participants.")
            raise typer.Exit(1)

        if mock and not json_output:
            console.print("[yellow]MOCK MODE: using bundled sample data[/yellow]\n")

        service = FreeSlotFinderService(
            schedule_client=_build_client(config, mock),
            fetch_failure_policy=config.fetch_failure_policy,
        )
        response = asyncio.run(service.find_free_slots(request))

        if json_output:
            typer.echo(json.dumps(response.to_payload(), indent=2, ensure_ascii=False))
        else:
            _print_slots(response)

    except (InvalidConstraints, InvalidInterval) as e:
        console.print(f"[bold red]Invalid request:[/bold red] {e}")
        raise typer.Exit(1)

    except FreeSlotError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def list_members(
    group: str = typer.Option(
        ...,
        "--group", "-g",
        help="Group id"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    ),
    mock: bool = typer.Option(
        False,
        "--mock",
        help="Use bundled mock data instead of the backend."
    ),
):
    """
    List the members of a group.
    """
    try:
        config = load_config(config_file)
        client = _build_client(config, mock)
        group_info = client.get_group(group)

        if not group_info.members:
            console.print("[yellow]This group has no members.[/yellow]")
            return

        table = Table(
            title=f"Members of {group_info.name or group_info.id}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Name", style="bold yellow")
        table.add_column("User ID", style="dim")

        for member in group_info.members:
            table.add_row(member.display_name(), member.id)

        console.print()
        console.print(table)
        console.print()

    except (FreeSlotError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]groupslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
