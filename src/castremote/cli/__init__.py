"""Command-line tools for castremote."""
