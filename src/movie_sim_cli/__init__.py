"""movie-similarity command line interface."""
