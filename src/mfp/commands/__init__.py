"""Command handlers for the mfp CLI."""
