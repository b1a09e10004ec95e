"""Command-line entry points for ProfMatch."""
