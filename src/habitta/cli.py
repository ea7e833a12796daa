"""CLI interface for Habitta Core."""

import json
from datetime import datetime
from pathlib import Path

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .exceptions import HabittaError

app = typer.Typer(
    name="habitta",
    help="Habitta system update authority and lifecycle prediction engine",
    add_completion=False,
)
console = Console()

NEEDS_MORE_INFO = "Could not assess — needs more information"


def get_config():
    """Load configuration from environment."""
    from dotenv import load_dotenv
    import os

    from .logging import configure_logging

    load_dotenv()

    config = {
        "db_path": os.getenv("HABITTA_DB_PATH", "./data/habitta.db"),
        "climate_zone": os.getenv("HABITTA_CLIMATE_ZONE", "high_heat"),
        "climate_profiles": os.getenv("HABITTA_CLIMATE_PROFILES"),
        "log_level": os.getenv("HABITTA_LOG_LEVEL", "WARNING").upper(),
    }
    configure_logging(config["log_level"])
    return config


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def _read_json(path: Path):
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Could not read {path}: {e}")


@app.command()
def survival(
    install_year: int = typer.Option(None, "--install-year", help="Recorded install year"),
    home_year_built: int = typer.Option(None, "--home-year-built", help="Year the home was built"),
    maintained: bool = typer.Option(False, "--maintained", help="Maintenance logged in the last year"),
    kind: str = typer.Option("hvac", "--kind", "-k", help="System kind"),
    zone: str = typer.Option(None, "--zone", "-z", help="Climate zone (default from env)"),
    state: str = typer.Option(None, "--state", help="Home state, used to derive the zone"),
    city: str = typer.Option(None, "--city", help="Home city, used to derive the zone"),
    lat: float = typer.Option(None, "--lat", help="Home latitude, used to derive the zone"),
):
    """Predict remaining life for one system."""
    config = get_config()

    from .lifecycle.config import derive_climate_zone, load_climate_profiles
    from .lifecycle.prediction import get_system_prediction

    if zone is None and (state or city or lat is not None):
        zone = derive_climate_zone(state, city, lat)

    try:
        profiles = load_climate_profiles(config["climate_profiles"])
        prediction = get_system_prediction(
            install_year,
            home_year_built,
            maintained,
            system_kind=kind,
            zone=zone or config["climate_zone"],
            profiles=profiles,
        )
    except (HabittaError, OSError, ValueError) as e:
        _fail(str(e))

    signals = prediction.optimization
    body = [
        f"[bold]{prediction.header.status_label}[/bold]  {prediction.header.installed_line}",
        "",
        f"[bold]{prediction.forecast.headline}:[/bold] {prediction.forecast.summary}",
    ]
    if prediction.forecast.reassurance:
        body.append(prediction.forecast.reassurance)
    body.append(f"[dim]{prediction.forecast.next_review}[/dim]")
    body.append("")
    body.extend(f"• {bullet}" for bullet in prediction.why.bullets)
    body.append(
        f"\nRemaining: {signals.planning_eligibility.remaining_years:.1f} yrs "
        f"(confidence: {signals.confidence_state})"
    )
    console.print(Panel("\n".join(body), title=prediction.header.name))

    if prediction.actions:
        table = Table(title="Recommended Actions")
        table.add_column("Action")
        table.add_column("Details")
        table.add_column("Priority")
        for action in prediction.actions:
            table.add_row(action.title, action.meta_line, action.priority)
        console.print(table)

    if prediction.planning:
        console.print(f"[yellow]{prediction.planning.text}[/yellow]")


@app.command()
def outlook(
    systems_json: Path = typer.Argument(..., help="JSON file with a list of timeline entries"),
    current_year: int = typer.Option(None, "--current-year", help="Override the current year"),
    debug: bool = typer.Option(False, "--debug", help="Show per-system contributions"),
):
    """Compute the Home Outlook for a set of systems."""
    get_config()

    from .lifecycle.outlook import compute_home_outlook
    from .models.timeline import SystemTimelineEntry

    raw = _read_json(systems_json)
    try:
        systems = TypeAdapter(list[SystemTimelineEntry]).validate_python(raw)
    except ValidationError as e:
        _fail(f"Invalid systems file: {e}")

    result = compute_home_outlook(systems, current_year=current_year, debug=debug)
    if result is None:
        console.print(f"[yellow]{NEEDS_MORE_INFO}[/yellow]")
        return

    console.print(
        Panel(
            f"[bold]{result.display_years} years[/bold] of planning time\n"
            f"{result.micro_summary}\n"
            f"[dim]Assessment quality: {result.assessment_quality.value} · "
            f"{result.eligible_count}/{result.total_count} systems assessed[/dim]",
            title="Home Outlook",
        )
    )

    if debug and result.contributions:
        table = Table(title="Contributions")
        table.add_column("System")
        table.add_column("Age")
        table.add_column("Adjusted Remaining")
        table.add_column("Weight")
        table.add_column("Contribution")
        for c in result.contributions:
            table.add_row(
                c.system_type,
                "-" if c.estimated_age is None else str(c.estimated_age),
                f"{c.adjusted_remaining_life:.2f}",
                f"{c.criticality_weight:.2f}",
                f"{c.contribution:.2f}",
            )
        console.print(table)


@app.command()
def alerts(
    tasks_json: Path = typer.Argument(..., help="JSON file with a list of maintenance tasks"),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum alerts"),
    today: datetime = typer.Option(None, "--today", formats=["%Y-%m-%d"], help="Override today"),
):
    """Rank pending maintenance tasks into alerts."""
    get_config()

    from .alerts.priority import calculate_money_savings, generate_alerts_from_tasks
    from .models.task import MaintenanceTask

    raw = _read_json(tasks_json)
    try:
        tasks = TypeAdapter(list[MaintenanceTask]).validate_python(raw)
    except ValidationError as e:
        _fail(f"Invalid tasks file: {e}")

    ranked = generate_alerts_from_tasks(tasks, today=today.date() if today else None)
    if not ranked:
        console.print("[green]Nothing needs attention right now.[/green]")
        return

    table = Table(title="Alerts")
    table.add_column("Score")
    table.add_column("Severity")
    table.add_column("Task")
    table.add_column("System")
    table.add_column("Consequence")
    for alert in ranked[:limit]:
        table.add_row(
            str(alert.score),
            alert.severity.value,
            alert.title,
            alert.system.value,
            alert.consequence,
        )
    console.print(table)

    savings = calculate_money_savings(ranked)
    console.print(
        f"[dim]Showing {min(limit, len(ranked))} of {len(ranked)} alerts · "
        f"~${savings.monthly_savings}/mo savings · "
        f"${savings.avoided_surprise} avoided surprise costs[/dim]"
    )


@app.command("apply-update")
def apply_update(
    update_json: Path = typer.Argument(..., help="JSON file with one system update"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
):
    """Run a system update through the authority gate."""
    config = get_config()

    from .models.system import SystemUpdate
    from .store.sqlite_store import SQLiteSystemStore
    from .updates.apply import apply_system_update

    raw = _read_json(update_json)
    try:
        update = SystemUpdate.model_validate(raw)
    except ValidationError as e:
        _fail(f"Invalid update: {e}")

    store = SQLiteSystemStore(db or config["db_path"])
    try:
        result = apply_system_update(store, update)
    except HabittaError as e:
        _fail(str(e))

    table = Table(title="System Update")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("System", result.system_id or "-")
    table.add_row("Outcome", result.authority_applied.value)
    table.add_row("Updated", ", ".join(f.value for f in result.fields_updated) or "-")
    table.add_row("Held", ", ".join(f.value for f in result.fields_held) or "-")
    table.add_row("Confidence delta", f"{result.confidence_delta:+.2f}")
    table.add_row("Recompute", "yes" if result.should_trigger_mode_recompute else "no")
    if result.canonical_sync is not None:
        table.add_row("Canonical sync", result.canonical_sync.reason.value)
    console.print(table)
    console.print(result.chat_summary)


@app.command()
def decide(
    system_id: str = typer.Argument(..., help="System record id"),
    decision_type: str = typer.Argument(..., help="replace_now, defer_with_date, ..."),
    defer_until: datetime = typer.Option(None, "--defer-until", help="Review date for deferrals"),
    notes: str = typer.Option(None, "--notes", "-n", help="Homeowner notes"),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
):
    """Record a homeowner decision about a system."""
    config = get_config()

    from .lifecycle.state_reset import record_decision
    from .models.decision import DecisionType
    from .store.sqlite_store import SQLiteSystemStore

    try:
        chosen = DecisionType(decision_type.lower())
    except ValueError:
        _fail(f"Invalid decision type. Choose from: {[d.value for d in DecisionType]}")

    store = SQLiteSystemStore(db or config["db_path"])
    try:
        event, record = record_decision(
            store, system_id, chosen, user_notes=notes, defer_until=defer_until
        )
    except (HabittaError, ValidationError) as e:
        _fail(str(e))

    console.print(f"[green]Recorded {event.decision_type.value} for {system_id}[/green]")
    console.print(f"Generation: {record.generation}")
    if record.state.next_review_at:
        console.print(f"Next review: {record.state.next_review_at.date().isoformat()}")


if __name__ == "__main__":
    app()
