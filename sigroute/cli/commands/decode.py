"""``sigroute decode EVENT_FILE``: decode the envelope inside a captured event."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from sigroute.models.events import EnvelopeDecodeError, InboundEvent

console = Console()


def decode_cmd(
    event_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON file holding the event as delivered by the transport.",
    ),
) -> None:
    """Print the envelope carried by an event file as JSON."""
    try:
        raw = json.loads(event_file.read_text(encoding="utf-8"))
        event = InboundEvent.model_validate(raw)
        envelope = event.decode_envelope()
    except (json.JSONDecodeError, ValidationError, EnvelopeDecodeError) as exc:
        console.print(f"[bold red]Cannot decode {escape(str(event_file))}:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if event.resource:
        console.print(f"[dim]resource:[/dim] {escape(event.resource)}")
    console.print_json(data=envelope.to_wire())
