"""Unit tests for the CLI: command registration, decode, trace-id and simulate."""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sigroute.cli.app import app
from sigroute.cli.commands.simulate import run_simulation
from sigroute.models.envelopes import Envelope
from sigroute.models.events import InboundEvent
from sigroute.routing.sinks.memory import MemorySink

runner = CliRunner()


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "simulate" in result.output
        assert "decode" in result.output
        assert "trace-id" in result.output

    def test_trace_id_format(self):
        result = runner.invoke(app, ["trace-id"])
        assert result.exit_code == 0
        assert re.fullmatch(r"\d{4}-[0-9a-f]{8}(-[0-9a-f]{4}){3}-[0-9a-f]{12}", result.output.strip())


# ---------------------------------------------------------------------------
# Test: decode
# ---------------------------------------------------------------------------


class TestDecodeCommand:
    def test_decodes_event_file(self, tmp_path: Path):
        event = InboundEvent.encode(
            Envelope(device="2C30EB", route=["decode"]),
            resource="projects/p/topics/sigfox.devices.all",
        )
        event_file = tmp_path / "event.json"
        event_file.write_text(event.model_dump_json(by_alias=True), encoding="utf-8")

        result = runner.invoke(app, ["decode", str(event_file)])

        assert result.exit_code == 0
        assert "projects/p/topics/sigfox.devices.all" in result.output
        assert '"device": "2C30EB"' in result.output

    def test_bad_payload_exits_nonzero(self, tmp_path: Path):
        event_file = tmp_path / "event.json"
        event_file.write_text(json.dumps({"data": {"data": "bm90IGpzb24="}}), encoding="utf-8")

        result = runner.invoke(app, ["decode", str(event_file)])

        assert result.exit_code == 1
        assert "Cannot decode" in result.output


# ---------------------------------------------------------------------------
# Test: simulate
# ---------------------------------------------------------------------------


class TestSimulate:
    @pytest.mark.asyncio
    async def test_follows_route_to_the_end(self):
        sink = MemorySink()
        hops = await run_simulation("D1", {"data": "00"}, ["decode", "store"], log_sink=sink)

        assert [h.stage_name for h in hops] == ["route", "decode", "store"]
        assert [h.channel for h in hops] == [
            "sigfox.devices.D1",
            "sigfox.types.decode",
            "sigfox.types.store",
        ]
        final = hops[-1].outcome.envelope
        assert final.route == []
        assert [hop.stage_name for hop in final.history] == ["route", "decode", "store"]
        assert final.history[1].source == "projects/local/topics/sigfox.types.decode"
        assert "store/dispatchMessage" in sink.actions()

    @pytest.mark.asyncio
    async def test_hop_limit(self):
        hops = await run_simulation("D1", {}, ["a", "b", "c"], max_hops=2)
        assert len(hops) == 2

    def test_command_prints_history(self):
        result = runner.invoke(app, ["simulate", "--device", "D9", "--route", "store"])
        assert result.exit_code == 0
        assert "Hop history for device D9" in result.output

    def test_invalid_body(self):
        result = runner.invoke(app, ["simulate", "--body", "{not json"])
        assert result.exit_code == 1
        assert "Invalid --body JSON" in result.output
