"""magro: manage collections of git repositories."""
