"""``sigroute simulate``: run a message through its whole route locally.

The message is delivered on its device channel, where a route stage
assigns the route.  Every following hop is a separate ``Pipeline``
invocation with its own stage name, fed from an in-memory broker, until
the route is exhausted.  The final hop history is shown as a table.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass

import typer
from rich.console import Console
from rich.table import Table

from sigroute.config import ProdConfig
from sigroute.core.pipeline import InvocationOutcome, Pipeline
from sigroute.models.envelopes import Envelope
from sigroute.models.events import InboundEvent
from sigroute.routing.channels import channel_name
from sigroute.routing.sinks.memory import MemorySink
from sigroute.routing.transport import LocalBroker
from sigroute.stages import PassthroughStage, RouteStage
from sigroute.stages.base import BaseStage

console = Console()


@dataclass
class SimulatedHop:
    channel: str
    stage_name: str
    outcome: InvocationOutcome


async def run_simulation(
    device: str,
    body: object,
    route: list[str],
    *,
    project_id: str = "local",
    max_hops: int = 20,
    console: Console | None = None,
    log_sink: MemorySink | None = None,
) -> list[SimulatedHop]:
    """Deliver a message for *device* and follow it through *route*."""
    broker = LocalBroker()
    base_config = ProdConfig(project_id=project_id)
    router = RouteStage(routes={device: route})
    quiet = console or Console(quiet=True)
    sinks = [log_sink] if log_sink is not None else []

    first_channel = channel_name(device=device, prefix=base_config.channel_prefix)
    await broker.publisher().publish(first_channel, Envelope(device=device, body=body).to_wire())

    hops: list[SimulatedHop] = []
    while broker.pending() and len(hops) < max_hops:
        channel = broker.channels()[0]
        for payload in broker.drain(channel):
            stage: BaseStage
            if ".types." in channel:
                stage = PassthroughStage(channel.rsplit(".types.", 1)[-1])
            else:
                stage = router
            pipeline = Pipeline(
                base_config.model_copy(update={"function_name": stage.stage_name}),
                publisher_factory=broker.publisher,
                secondary_sinks=sinks,
                console=quiet,
            )
            event = InboundEvent.encode(
                payload,
                resource=f"projects/{project_id}/topics/{channel}",
                event_id=str(len(hops) + 1),
            )
            outcome = await pipeline.main(event, stage)
            hops.append(SimulatedHop(channel=channel, stage_name=stage.stage_name, outcome=outcome))
    return hops


def _history_table(envelope: Envelope) -> Table:
    table = Table(title=f"Hop history for device {envelope.device}")
    table.add_column("#", justify="right")
    table.add_column("Stage", style="cyan")
    table.add_column("Source")
    table.add_column("Latency (s)", justify="right")
    table.add_column("Duration (s)", justify="right")
    for index, hop in enumerate(envelope.history, start=1):
        table.add_row(
            str(index),
            hop.stage_name or "-",
            hop.source or "-",
            f"{hop.latency:.1f}",
            f"{hop.duration:.1f}",
        )
    return table


def simulate_cmd(
    device: str = typer.Option("D1", "--device", "-d", help="Device id of the message."),
    route: str = typer.Option(
        "decode,store", "--route", "-r", help="Comma separated stage names."
    ),
    body: str = typer.Option("{}", "--body", "-b", help="Message body as JSON."),
    max_hops: int = typer.Option(20, "--max-hops", help="Stop after this many hops."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Echo every structured log record."
    ),
) -> None:
    """Run a message through its route using an in-memory broker."""
    try:
        body_data = json.loads(body)
    except json.JSONDecodeError as exc:
        console.print(f"[bold red]Invalid --body JSON:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    stages = [name.strip() for name in route.split(",") if name.strip()]
    hops = asyncio.run(
        run_simulation(
            device,
            body_data,
            stages,
            max_hops=max_hops,
            console=console if verbose else None,
        )
    )

    for hop in hops:
        status = "[green]ok[/green]" if hop.outcome.ok else f"[red]{hop.outcome.error}[/red]"
        console.print(f"[bold]{hop.stage_name}[/bold] <- {hop.channel}  {status}")

    final = hops[-1].outcome.envelope if hops else None
    if final is None:
        console.print("[bold red]No envelope produced.[/bold red]")
        raise typer.Exit(code=1)
    console.print(_history_table(final))
