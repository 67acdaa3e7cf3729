"""CLI entry point — Typer app for salesagg commands.

Usage:
    salesagg step
    salesagg run --max-steps 100
    salesagg progress
    salesagg status --top 10
    salesagg reset
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="salesagg",
    help="Invoice sales aggregator — chunked, resumable report builds.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show pipeline logs"),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _fail(exc) -> None:
    console.print(f"[bold red]{exc.kind}:[/] {exc.message}")
    if exc.detail:
        console.print(f"  [dim]{exc.detail}[/]")
    raise typer.Exit(code=1)


def _print_step(result) -> None:
    if result.already_done:
        console.print(f"[green]Already done[/] ({result.documents} documents)")
        return
    console.print(
        f"Chunk {result.chunk_index}/{result.total_chunks} "
        f"| processed {result.processed} | remaining {result.remaining}"
    )
    for w in result.warnings:
        console.print(f"  [yellow]Skipped:[/] {w}")
    if result.built:
        console.print("[bold green]Report built.[/]")


@app.command()
def step() -> None:
    """Process the next chunk (one invocation)."""
    from salesagg.config import load_settings
    from salesagg.errors import SalesAggError
    from salesagg.pipeline.bootstrap import build_scheduler

    try:
        result = build_scheduler(load_settings()).step()
    except SalesAggError as exc:
        _fail(exc)
    _print_step(result)


@app.command()
def run(
    max_steps: int | None = typer.Option(
        None, "--max-steps", "-n", help="Stop after this many chunks",
    ),
) -> None:
    """Process chunks until the report is built."""
    from salesagg.config import load_settings
    from salesagg.errors import SalesAggError
    from salesagg.pipeline.bootstrap import build_scheduler

    try:
        build_scheduler(load_settings()).run(max_steps=max_steps, on_step=_print_step)
    except SalesAggError as exc:
        _fail(exc)


@app.command()
def progress() -> None:
    """Show how far the current job has got."""
    from salesagg.config import load_settings
    from salesagg.errors import SalesAggError
    from salesagg.pipeline.bootstrap import build_store
    from salesagg.pipeline.scheduler import read_progress

    try:
        p = read_progress(build_store(load_settings()))
    except SalesAggError as exc:
        _fail(exc)

    table = Table(title="Job Progress")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in p.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def status(
    top: int = typer.Option(10, "--top", "-t", help="Rows per ranking"),
) -> None:
    """Show the published report, if ready."""
    from salesagg.config import load_settings
    from salesagg.errors import SalesAggError
    from salesagg.pipeline.bootstrap import build_store
    from salesagg.pipeline.scheduler import read_status

    try:
        view = read_status(build_store(load_settings()))
    except SalesAggError as exc:
        _fail(exc)

    if not view["ready"]:
        console.print("[yellow]Report not ready.[/] Run [bold]salesagg run[/] to build it.")
        raise typer.Exit(code=2)

    data = view["data"]
    meta = data.get("meta", {})
    console.print(f"\n[bold]Total sales:[/] {data['total_sales']:,.2f}")
    console.print(
        f"[dim]Generated {data.get('generated_at', '')} "
        f"| {meta.get('processed_documents', 0)}/{meta.get('documents', 0)} documents[/]\n"
    )

    items = Table(title="Top Items")
    items.add_column("Code", style="cyan")
    items.add_column("Qty", justify="right")
    items.add_column("Sales", justify="right")
    for row in data["top_items_overall"][:top]:
        items.add_row(row["code"], f"{row['qty']:g}", f"{row['sales']:,.2f}")
    console.print(items)

    suppliers = Table(title="Top Suppliers")
    suppliers.add_column("Supplier", style="cyan")
    suppliers.add_column("Sales", justify="right")
    for row in data["top_suppliers"][:top]:
        suppliers.add_row(row["supplier"], f"{row['sales']:,.2f}")
    console.print(suppliers)

    clients = Table(title="Top Clients")
    clients.add_column("Client", style="cyan")
    clients.add_column("Sales", justify="right")
    for row in data["top_clients"][:top]:
        clients.add_row(row["client"], f"{row['sales']:,.2f}")
    console.print(clients)


@app.command()
def reset() -> None:
    """Delete all job and report state."""
    from salesagg.config import load_settings
    from salesagg.errors import SalesAggError
    from salesagg.pipeline.bootstrap import build_store
    from salesagg.pipeline.scheduler import reset_state

    try:
        result = reset_state(build_store(load_settings()))
    except SalesAggError as exc:
        _fail(exc)
    console.print(f"[green]Cleared.[/] {result['chunks_deleted']} chunk aggregates removed.")


if __name__ == "__main__":
    app()
