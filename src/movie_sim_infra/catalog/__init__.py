"""Movie catalog sources."""

from movie_sim_infra.catalog.csv_source import read_links, read_movies, title_year

__all__ = ["read_links", "read_movies", "title_year"]
