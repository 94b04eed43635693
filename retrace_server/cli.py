"""Retrace server CLI - resolve obfuscated stack trace names."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from retrace_server.config import (
    DEFAULT_CACHE_SIZE,
    DEFAULT_HOST,
    DEFAULT_MAP_TEMPLATE,
    DEFAULT_MAPS_DIR,
    DEFAULT_MAX_LINE_LENGTH,
    DEFAULT_PORT,
    Failure,
    ServerConfig,
)
from retrace_server.errors import RetraceError
from retrace_server.mapping.symbol_table import SymbolTable
from retrace_server.service import ResolutionService


def _setup_logging(verbose: bool) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_stderr_console(), show_path=False)],
        force=True,
    )


def _stderr_console():
    from rich.console import Console

    return Console(stderr=True)


@click.group()
def cli() -> None:
    """Retrace server - map obfuscated class and method names back to their originals."""
    pass


@cli.command("serve")
@click.option("-p", "--port", default=DEFAULT_PORT, type=int, help="Port number")
@click.option("--host", default=DEFAULT_HOST, help="Address to bind")
@click.option("-v", "--verbose", is_flag=True, help="Log every request and response")
@click.option("--maps-dir", default=DEFAULT_MAPS_DIR, help="Directory holding mapping files")
@click.option("--map-template", default=DEFAULT_MAP_TEMPLATE, help="Mapping file name, {version} is substituted")
@click.option("--cache-size", default=DEFAULT_CACHE_SIZE, type=click.IntRange(min=1), help="Mapping tables kept in memory")
@click.option("--max-line-length", default=DEFAULT_MAX_LINE_LENGTH, type=click.IntRange(min=1), help="Longest accepted request line in bytes")
def serve_cmd(
    port: int,
    host: str,
    verbose: bool,
    maps_dir: str,
    map_template: str,
    cache_size: int,
    max_line_length: int,
) -> None:
    """Serve retrace requests over TCP, one request per line."""
    from retrace_server.server import RetraceServer

    _setup_logging(verbose)
    config = ServerConfig(
        host=host,
        port=port,
        verbose=verbose,
        maps_dir=maps_dir,
        map_template=map_template,
        cache_size=cache_size,
        max_line_length=max_line_length,
    )

    with RetraceServer(config) as server:
        host, port = server.address
        logging.getLogger(__name__).info(f"Retrace server listening on {host}:{port}")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass


@cli.command("lookup")
@click.argument("version")
@click.argument("class_name")
@click.argument("method_name", required=False)
@click.argument("line_number", required=False, type=int)
@click.option("--maps-dir", default=DEFAULT_MAPS_DIR, help="Directory holding mapping files")
@click.option("--map-template", default=DEFAULT_MAP_TEMPLATE, help="Mapping file name, {version} is substituted")
def lookup_cmd(
    version: str,
    class_name: str,
    method_name: str | None,
    line_number: int | None,
    maps_dir: str,
    map_template: str,
) -> None:
    """Resolve a single name and print the server's response line."""
    from retrace_server.protocol import format_response

    service = ResolutionService.from_config(
        ServerConfig(maps_dir=maps_dir, map_template=map_template, cache_size=1)
    )
    outcome = service.handle(version, class_name, method_name, line_number)
    click.echo(format_response(outcome))
    if isinstance(outcome, Failure):
        sys.exit(1)


@cli.command("stats")
@click.argument("mapping", type=click.Path(exists=True, dir_okay=False))
def stats_cmd(mapping: str) -> None:
    """Parse a mapping file and summarise its contents."""
    from rich.console import Console
    from rich.table import Table

    try:
        table = SymbolTable.from_file(mapping)
    except RetraceError as e:
        raise click.ClickException(str(e))

    summary = Table(title=f"Mapping: {Path(mapping).name}", show_edge=False)
    summary.add_column("Metric", style="bold")
    summary.add_column("Value", justify="right")
    summary.add_row("Classes", str(table.class_count()))
    summary.add_row("Methods", str(table.method_count()))
    summary.add_row("Candidates", str(table.candidate_count()))

    Console().print(summary)


if __name__ == "__main__":
    cli()
