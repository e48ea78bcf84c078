import asyncio
import json
import logging

import typer
from dotenv import load_dotenv
from InquirerPy import inquirer

load_dotenv()

from starosca_indexer.app.config import settings  # noqa: E402
from starosca_indexer.app.interface.tasks import TASKS  # noqa: E402
from starosca_indexer.app.interface.tasks.domain.savings_pools_task import (  # noqa: E402
    index_savings_pools_once_task,
    indexer_status_task,
    init_store_task,
    watch_savings_pools_task,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = typer.Typer()
indexer_app = typer.Typer(help="cli for indexing savings-pool events.")
app.add_typer(indexer_app, name="indexer")


@indexer_app.command("run")
def run() -> None:
    """Pick a task interactively."""
    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()

    result = asyncio.run(TASKS[task_name]())
    if result is not None:
        typer.echo(json.dumps(result, indent=2))


@indexer_app.command("watch")
def watch() -> None:
    """Poll the chain until SIGINT/SIGTERM."""
    asyncio.run(watch_savings_pools_task())


@indexer_app.command("once")
def once() -> None:
    """Run a single poll cycle (cursor -> chain head)."""
    asyncio.run(index_savings_pools_once_task())


@indexer_app.command("status")
def status() -> None:
    """Print the persisted cursor and the number of known pools."""
    typer.echo(json.dumps(asyncio.run(indexer_status_task()), indent=2))


@indexer_app.command("init-db")
def init_db() -> None:
    """Create absent tables and seed the cursor."""
    asyncio.run(init_store_task())


def main() -> None:
    app()


if __name__ == "__main__":
    typer.echo(
        f"--- Starosca Indexer CLI --- factory={settings.factory_address} rpc={settings.rpc_url}"
    )
    main()
