"""movie-similarity infrastructure: vector math, embedding stores, database."""
