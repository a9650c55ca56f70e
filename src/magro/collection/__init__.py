"""Collection registry and commands."""
