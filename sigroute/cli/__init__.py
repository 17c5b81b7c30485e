"""sigroute CLI: Typer-based command-line interface.

Provides the ``sigroute`` command with subcommands for simulating a
message's trip through a route locally, decoding captured events and
generating trace ids.

All output uses Rich for formatted terminal display.
"""
