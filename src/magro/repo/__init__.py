"""Repository discovery, cache and commands."""
