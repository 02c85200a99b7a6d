"""Command-line interface for prsync."""
