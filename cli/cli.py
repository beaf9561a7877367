"""Developer CLI for fixed point synchronization.

Runs the same sync code path as the web backend against a plans API
deployment (PLANNER_API_URL), for local debugging of plans.
"""

import asyncio
import json
from pathlib import Path

import httpx
import typer
from loguru import logger
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.text import Text

from app.config.settings import settings
from app.core.logger import setup_logger
from app.plans.fixed_points import (
    FixedPointApiError,
    FixedPointClient,
    FixedPointFormItem,
    FixedPointSyncEngine,
    SyncResult,
)

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="fixed-points-cli",
    help="Plans API CLI - inspect and sync fixed points of a plan",
    add_completion=False,
)

_items_adapter = TypeAdapter(list[FixedPointFormItem])


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    setup_logger(level="DEBUG" if debug else settings.log_level)


def _load_items(items_file: Path) -> list[FixedPointFormItem]:
    """Read a JSON array of fixed point form items.

    Raises:
        typer.Exit: If the file is missing or not a valid item list
    """
    try:
        return _items_adapter.validate_json(items_file.read_bytes())
    except OSError as e:
        console.print(f"[red]Cannot read {items_file}: {e}[/red]")
        raise typer.Exit(1) from e
    except ValidationError as e:
        console.print(f"[red]Invalid fixed points in {items_file}:[/red]\n{e}")
        raise typer.Exit(1) from e


async def _list_async(plan_id: str) -> list[dict]:
    async with FixedPointClient() as client:
        records = await client.list_fixed_points(plan_id)
    return [record.model_dump(mode="json") for record in records]


async def _sync_async(plan_id: str, items: list[FixedPointFormItem]) -> SyncResult:
    async with FixedPointClient() as client:
        return await FixedPointSyncEngine(client).sync(plan_id, items)


@app.command()
def check_api() -> None:
    """Verify the plans API is reachable."""
    url = settings.api_base_url
    try:
        response = httpx.get(url, timeout=2.0)
    except httpx.RequestError as e:
        console.print(
            Panel(
                Text("Plans API is NOT reachable", style="bold red"),
                subtitle=f"{url}: {e}",
                border_style="red",
            )
        )
        console.print("\n[yellow]Set PLANNER_API_URL to the API base URL, e.g.:[/yellow]")
        console.print("  export PLANNER_API_URL=http://localhost:4321/api")
        raise typer.Exit(1) from e

    console.print(
        Panel(
            Text("Plans API is reachable", style="bold green"),
            subtitle=f"{url} (HTTP {response.status_code})",
            border_style="green",
        )
    )


@app.command()
def list_fixed_points(plan_id: str = typer.Argument(..., help="Plan ID")) -> None:
    """Print the fixed points stored for a plan."""
    try:
        records = asyncio.run(_list_async(plan_id))
    except FixedPointApiError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from e

    console.print(JSON(json.dumps(records, ensure_ascii=False)))


@app.command()
def sync_fixed_points(
    plan_id: str = typer.Argument(..., help="Plan ID"),
    items_file: Path = typer.Argument(..., help="JSON file with the desired fixed points"),
) -> None:
    """Make the plan's fixed points match the items in ITEMS_FILE.

    Items without an "id" are created, items with one are updated, and
    stored points missing from the file are deleted.
    """
    items = _load_items(items_file)
    logger.info(f"Syncing {len(items)} fixed point(s) for plan {plan_id}")

    result = asyncio.run(_sync_async(plan_id, items))

    if result.success:
        console.print(Panel(Text("Fixed points synced", style="bold green"), border_style="green"))
        return

    console.print(
        Panel(
            Text("\n".join(result.errors), style="red"),
            title="Fixed points sync failed",
            subtitle="Items without errors were saved",
            border_style="red",
        )
    )
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
