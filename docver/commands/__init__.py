"""Command modules for the docver CLI."""
