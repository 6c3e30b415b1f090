"""Command-line interface for the option strategy engine."""
