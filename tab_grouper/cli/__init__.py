"""Command-line interface for tab-grouper."""
