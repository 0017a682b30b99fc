import asyncio

import click
from rich.console import Console
from rich.table import Table

from redis_cache.redis_client import RedisStoreIdStore
from vector_ingest.exception.custom_exception import (
    UploadValidationError,
    VectorStoreGatewayError,
)
from vector_ingest.src.document_ingestion.data_ingestion import DataIngestor
from vector_ingest.src.vector_store.client import VectorStoreClient
from vector_ingest.src.vector_store.models import BatchStatusResult, WaitOutcome
from vector_ingest.src.vector_store.store_id import VectorStoreConfig
from vector_ingest.utils.client_loader import ClientLoader
from vector_ingest.utils.file_io import load_local_files

console = Console()

STATUS_STYLES = {
    "processing": "cyan",
    "uploaded": "yellow",
    "completed": "green",
    "failed": "red",
}


def _build_client() -> VectorStoreClient:
    loader = ClientLoader()
    return VectorStoreClient(
        gateway=loader.load_client(),
        config=VectorStoreConfig.from_config(
            configured_store_id=loader.configured_store_id, config=loader.config
        ),
        store_id_store=RedisStoreIdStore(),
    )


def _print_progress(status: BatchStatusResult) -> None:
    console.print(
        f"[bold cyan]{status.status.value}[/bold cyan] "
        f"completed={status.completed_count} "
        f"in_progress={status.in_progress_count} "
        f"failed={status.failed_count}"
    )


async def _run(paths, wait: bool, poll_interval: float, max_wait: float) -> int:
    client = _build_client()
    ingestor = DataIngestor(client)

    try:
        result = await ingestor.ingest(load_local_files(paths))
    except UploadValidationError as e:
        for err in e.errors:
            console.print(f"[red]{err}[/red]")
        return 2
    except VectorStoreGatewayError as e:
        console.print(f"[red]{e.error_message}:[/red] {e.details}")
        return 1

    table = Table(title=f"Vector store {result.batch.vector_store_id}")
    table.add_column("File")
    table.add_column("File id")
    table.add_column("Status")
    table.add_column("Error")
    for f in result.batch.files:
        style = STATUS_STYLES.get(f.status.value, "white")
        table.add_row(f.filename, f.id, f"[{style}]{f.status.value}[/{style}]", f.error or "")
    console.print(table)
    console.print(result.message)

    if not result.batch.batch_id:
        return 1
    if not wait:
        console.print(f"Batch id: [bold]{result.batch.batch_id}[/bold]")
        return 0

    outcome = await client.wait_for_processing(
        result.batch.batch_id,
        poll_interval=poll_interval,
        max_wait_time=max_wait,
        on_progress=_print_progress,
    )
    if outcome.outcome is WaitOutcome.TIMEOUT:
        console.print(
            f"[yellow]Still processing after {outcome.elapsed:.0f}s; "
            f"poll batch {outcome.batch_id} later.[/yellow]"
        )
        return 0
    color = "green" if outcome.succeeded else "red"
    console.print(f"[{color}]Batch {outcome.outcome.value}[/{color}]")
    return 0 if outcome.succeeded else 1


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--wait/--no-wait", default=False, help="Poll until the batch is indexed.")
@click.option("--poll-interval", default=2.0, show_default=True, help="Seconds between polls.")
@click.option("--max-wait", default=300.0, show_default=True, help="Give up polling after this many seconds.")
def main(paths, wait, poll_interval, max_wait):
    """Upload local files into the vector store."""
    raise SystemExit(asyncio.run(_run(paths, wait, poll_interval, max_wait)))


if __name__ == "__main__":
    main()
