"""Database engine, models, lifecycle and repositories."""
