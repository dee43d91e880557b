"""CLI interface for tally."""
