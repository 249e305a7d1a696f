"""Command-line interface for streamchat."""
