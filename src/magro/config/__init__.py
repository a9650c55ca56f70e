"""Settings and on-disk persistence."""
