"""Command-line interface for fcdreaper."""
