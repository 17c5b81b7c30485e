"""Subcommand implementations for the ``sigroute`` CLI."""
