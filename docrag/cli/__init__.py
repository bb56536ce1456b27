"""Command-line tools for docrag."""
