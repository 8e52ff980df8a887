from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple

from rich import box
from rich.console import Console
from rich.table import Table

from linkweave.domain.models import ChangeEvent, Method
from linkweave.domain.schema import RecordTypes

_METHOD_STYLES = {
    Method.CREATE.value: "green",
    Method.UPDATE.value: "yellow",
    Method.DELETE.value: "red",
}


def change_rows(event: ChangeEvent) -> List[Tuple[str, str, str]]:
    """
    Flatten a change event into (operation, type, ids) rows.

    Operations follow create, update, delete order; types keep event order.
    """
    rows: List[Tuple[str, str, str]] = []
    for method in Method:
        for type_name, ids in event.get(method.value, {}).items():  # type: ignore[misc]
            rows.append((method.value, type_name, ", ".join(str(i) for i in ids)))
    return rows


def print_change_events(
    events: Sequence[ChangeEvent], console: Optional[Console] = None
) -> None:
    """
    Render change events as a rich table, one section per request.
    """
    console = console or Console()

    if not events:
        console.print("[yellow]No changes to display.[/yellow]")
        return

    table = Table(title="Change Events", box=box.ROUNDED)
    table.add_column("#", justify="right", style="blue")
    table.add_column("Operation", no_wrap=True)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("IDs", style="magenta")

    for index, event in enumerate(events, start=1):
        for operation, type_name, ids in change_rows(event):
            style = _METHOD_STYLES.get(operation, "white")
            table.add_row(str(index), f"[{style}]{operation}[/{style}]", type_name, ids)
        if index < len(events):
            table.add_section()

    console.print(table)


def _describe(descriptor: Any) -> str:
    if descriptor.link:
        target = descriptor.link + ("[]" if descriptor.is_array else "")
        if descriptor.inverse:
            return f"-> {target} (inverse: {descriptor.inverse})"
        return f"-> {target}"
    kind = descriptor.type or "any"
    return kind + ("[]" if descriptor.is_array else "")


def print_schema(schema: RecordTypes, console: Optional[Console] = None) -> None:
    """Render record types and their fields as a rich table."""
    console = console or Console()

    table = Table(title="Record Types", box=box.ROUNDED)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Field", style="magenta", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Flags", style="dim")

    for type_name in sorted(schema):
        for field, descriptor in schema[type_name].items():
            flags = []
            if descriptor.required:
                flags.append("required")
            if descriptor.denormalized_inverse:
                flags.append("denormalized")
            table.add_row(type_name, field, _describe(descriptor), ", ".join(flags))
        table.add_section()

    console.print(table)
