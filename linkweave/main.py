from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from linkweave.adapters.abstract import AbstractAdapter
from linkweave.adapters.memory import MemoryAdapter
from linkweave.config import get_settings
from linkweave.dispatcher import Dispatcher
from linkweave.domain.errors import DispatchError, SchemaError
from linkweave.domain.models import ChangeEvent, Context, Method, Request
from linkweave.domain.schema import RecordTypes
from linkweave.reporter import print_change_events, print_schema
from linkweave.utils.logging import configure_logging

app = typer.Typer(help="linkweave CLI.")

BACKENDS = ("memory", "postgres")


def _load_schema(schema_path: Optional[Path]) -> RecordTypes:
    configured = get_settings().schema_path
    path = schema_path or (Path(configured) if configured else None)
    if path is None:
        raise typer.BadParameter("No schema given; pass --schema or set SCHEMA_PATH.")
    try:
        return RecordTypes.from_file(path)
    except (OSError, json.JSONDecodeError, SchemaError) as exc:
        raise typer.BadParameter(f"Cannot load schema '{path}': {exc}") from exc


def _load_script(script: Path) -> Dict[str, Any]:
    with script.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, list):
        payload = {"operations": payload}
    return payload


def _to_context(operation: Dict[str, Any]) -> Context:
    return Context(
        Request(
            type=operation["type"],
            method=operation.get("method", Method.CREATE.value),
            ids=list(operation.get("ids", [])),
            payload=operation.get("records"),
            options=dict(operation.get("options", {})),
        )
    )


async def _build_adapter(backend: str, seed: Optional[Dict[str, Any]]) -> AbstractAdapter:
    if backend == "postgres":
        from linkweave.adapters.postgres import PostgresAdapter

        adapter = PostgresAdapter()
        await adapter.ensure_table()
        await adapter.connect()
        return adapter
    return MemoryAdapter(seed=seed)


async def _run_script(
    schema: RecordTypes,
    payload: Dict[str, Any],
    backend: str,
    keep_going: bool,
) -> List[ChangeEvent]:
    adapter = await _build_adapter(backend, payload.get("seed"))
    dispatcher = Dispatcher(adapter=adapter, schema=schema)
    events: List[ChangeEvent] = []
    try:
        for index, operation in enumerate(payload.get("operations", []), start=1):
            try:
                context = await dispatcher.dispatch(_to_context(operation))
            except DispatchError as exc:
                typer.echo(f"Operation {index} failed: {exc}", err=True)
                if not keep_going:
                    raise
                continue
            if context.response.event is not None:
                events.append(context.response.event)
    finally:
        await adapter.close()
    return events


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} "
        f"table={settings.db_table} | link_check_concurrency={settings.link_check_concurrency} "
        f"concurrent_link_updates={settings.concurrent_link_updates}"
    )


@app.command()
def schema(
    schema_path: Optional[Path] = typer.Argument(None, help="JSON schema file."),
) -> None:
    """
    Validate a schema file and show its record types.
    """
    print_schema(_load_schema(schema_path))


@app.command()
def run(
    script: Path = typer.Argument(..., help="JSON list of create/delete operations."),
    schema_path: Optional[Path] = typer.Option(
        None, "--schema", "-s", help="JSON schema file (default from SCHEMA_PATH)."
    ),
    backend: str = typer.Option("memory", "--backend", "-b", help="memory or postgres."),
    keep_going: bool = typer.Option(
        False, "--keep-going", help="Continue with the next operation after a failure."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print change events as JSON."),
) -> None:
    """
    Execute operations in order and print the change event of each one.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    if backend not in BACKENDS:
        raise typer.BadParameter(f"Unknown backend '{backend}'. Available: {', '.join(BACKENDS)}")

    record_types = _load_schema(schema_path)
    payload = _load_script(script)
    try:
        events = asyncio.run(_run_script(record_types, payload, backend, keep_going))
    except DispatchError:
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(events, indent=2, default=str))
    else:
        print_change_events(events)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
