"""Command line interface for nestnet."""
