"""Main CLI interface."""

import asyncio
from pathlib import Path
from typing import Optional

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ..core import MetricService, UnitConverter, configure_logging, round_display
from ..errors import MetricTrackerError
from ..models import (
    AddMetricRequest,
    ChartRequest,
    DatabaseConfig,
    ListMetricsRequest,
    MetricType,
    ServiceConfig,
    StorageBackend,
)

console = Console()
app = typer.Typer(help="Metric tracking service")
logger = structlog.get_logger()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    db_path: Optional[Path] = typer.Option(None, "--db-path", help="Database file path"),
    memory: bool = typer.Option(False, "--memory", help="Keep metrics in memory only"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level")
):
    """Run the HTTP API."""
    import uvicorn
    from ..api import create_app

    config = _load_config(db_path, log_level)
    if host:
        config.api.host = host
    if port:
        config.api.port = port
    if memory:
        config.storage = StorageBackend.MEMORY

    _setup_logging(config)

    console.print("[green]Starting metric tracking API...[/green]")
    console.print(f"Storage: {config.storage.value}")
    if config.storage == StorageBackend.SQLITE:
        console.print(f"Database: {config.database.path}")
    console.print(f"Listening on http://{config.api.host}:{config.api.port}")

    uvicorn.run(create_app(config), host=config.api.host, port=config.api.port, log_config=None)


@app.command()
def add(
    user_id: str = typer.Argument(..., help="User identifier"),
    metric_type: MetricType = typer.Argument(..., help="Metric type"),
    value: float = typer.Argument(..., help="Measured value"),
    unit: str = typer.Argument(..., help="Unit of the value"),
    date: str = typer.Option(..., "--date", "-d", help="ISO datetime or 'YYYY-MM-DD HH:MM:SS'"),
    timezone: str = typer.Option("UTC", "--timezone", "-z", help="IANA timezone of --date"),
    db_path: Optional[Path] = typer.Option(None, "--db-path", help="Database file path"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level")
):
    """Record a metric."""
    config = _load_config(db_path, log_level)
    _setup_logging(config)

    request = _build_request(
        AddMetricRequest,
        user_id=user_id, type=metric_type, value=value, unit=unit, date=date, timezone=timezone
    )
    result = _run(config, lambda service: service.add_metric(request))

    console.print("[green]✓ Metric recorded[/green]")
    console.print(f"ID: {result.id}")
    console.print(f"Value: {result.value} {result.unit}")
    console.print(f"Local time: {result.date} ({timezone})")
    console.print(f"Timestamp: {result.timestamp}")


@app.command("list")
def list_metrics(
    user_id: str = typer.Argument(..., help="User identifier"),
    metric_type: MetricType = typer.Argument(..., help="Metric type"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u", help="Display unit"),
    timezone: Optional[str] = typer.Option(None, "--timezone", "-z", help="Render dates in this zone"),
    db_path: Optional[Path] = typer.Option(None, "--db-path", help="Database file path"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level")
):
    """List a user's metrics, most recent first."""
    config = _load_config(db_path, log_level)
    _setup_logging(config)

    request = _build_request(ListMetricsRequest, user_id=user_id, type=metric_type, unit=unit, timezone=timezone)
    metrics = _run(config, lambda service: service.list_metrics(request))

    table = Table(title=f"{metric_type.value.title()} metrics for {user_id}")
    table.add_column("Date", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_column("Unit")
    table.add_column("Original Unit", style="dim")
    table.add_column("ID", style="dim")

    for metric in metrics:
        table.add_row(metric.date, f"{metric.value:g}", metric.unit, metric.original_unit, metric.id)

    console.print(table)
    console.print(f"{len(metrics)} metric(s)")


@app.command()
def chart(
    user_id: str = typer.Argument(..., help="User identifier"),
    metric_type: MetricType = typer.Argument(..., help="Metric type"),
    start_date: str = typer.Argument(..., help="First day (YYYY-MM-DD)"),
    end_date: str = typer.Argument(..., help="Last day (YYYY-MM-DD)"),
    timezone: str = typer.Option("UTC", "--timezone", "-z", help="IANA timezone for day boundaries"),
    unit: Optional[str] = typer.Option(None, "--unit", "-u", help="Display unit"),
    db_path: Optional[Path] = typer.Option(None, "--db-path", help="Database file path"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level")
):
    """Show one value per local day, latest reading wins."""
    config = _load_config(db_path, log_level)
    _setup_logging(config)

    request = _build_request(
        ChartRequest,
        user_id=user_id,
        type=metric_type,
        start_date=start_date,
        end_date=end_date,
        timezone=timezone,
        unit=unit,
    )
    result = _run(config, lambda service: service.get_chart_data(request))

    table = Table(title=f"{metric_type.value.title()} for {user_id} ({result.timezone})")
    table.add_column("Date", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_column("Unit")
    table.add_column("Timestamp", style="dim")

    for point in result.data:
        style = "dim" if point.value == 0 else None
        table.add_row(point.date, f"{point.value:g}", point.unit, str(point.timestamp), style=style)

    console.print(table)


@app.command()
def convert(
    metric_type: MetricType = typer.Argument(..., help="Metric type"),
    value: float = typer.Argument(..., help="Value to convert"),
    from_unit: str = typer.Argument(..., help="Unit of the value"),
    to_unit: Optional[str] = typer.Argument(None, help="Target unit, base unit if omitted")
):
    """Convert a value between units of one metric type."""
    converter = UnitConverter()
    target = to_unit or converter.base_unit_of(metric_type)
    try:
        base = converter.to_base(from_unit, metric_type, value)
        converted = round_display(converter.from_base(target, metric_type, base))
    except MetricTrackerError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    console.print(f"{value:g} {from_unit} = [green]{converted:g}[/green] {target}")


def _run(config: ServiceConfig, operation):
    """Run one service operation with the repository opened and closed around it."""
    async def runner():
        service = MetricService(config)
        await service.start()
        try:
            return await operation(service)
        finally:
            await service.stop()

    try:
        return asyncio.run(runner())
    except MetricTrackerError as e:
        logger.debug("Command failed", **e.to_dict())
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(1)


def _build_request(model, **fields):
    """Build a request model, reporting invalid fields instead of a traceback."""
    try:
        return model(**fields)
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error.get("loc", ()))
            console.print(f"[red]✗ {field}: {error.get('msg')}[/red]")
        raise typer.Exit(1)


def _load_config(
    db_path: Optional[Path] = None,
    log_level: Optional[str] = None
) -> ServiceConfig:
    """Load service configuration."""
    config = ServiceConfig.from_env()

    # Override with CLI options
    if db_path:
        config.database = DatabaseConfig(
            path=db_path,
            connection_timeout=config.database.connection_timeout
        )
    if log_level:
        config.log_level = log_level

    return config


def _setup_logging(config: ServiceConfig) -> None:
    """Setup logging configuration."""
    configure_logging(config.log_level, config.json_logs)


def main() -> None:
    """Main entry point."""
    app()
