"""Custom exception hierarchy for movie-similarity."""

from __future__ import annotations


class MovieSimilarityError(Exception):
    """Base exception for all movie-similarity errors."""

    kind: str = "internal_error"
    client_error: bool = False
    retryable: bool = False


class InvalidInputError(MovieSimilarityError):
    """Raised when a request is rejected before any store access."""

    kind = "invalid_input"
    client_error = True


class NoValidSeedsError(MovieSimilarityError):
    """Raised when none of the seed ids resolved to an embedding."""

    kind = "no_valid_seeds"
    client_error = True

    def __init__(self, seed_ids: list[str]) -> None:
        """Initialize with the seed ids that failed to resolve."""
        self.seed_ids = seed_ids
        super().__init__(
            f"No valid embeddings found for the provided movie ids: {', '.join(seed_ids)}"
        )


class DimensionMismatchError(MovieSimilarityError):
    """Raised when vectors of different lengths meet in a vector operation."""

    kind = "dimension_mismatch"

    def __init__(self, expected: int, actual: int) -> None:
        """Initialize with the expected and offending dimensionality."""
        self.expected = expected
        self.actual = actual
        super().__init__(f"Vector dimension mismatch: expected {expected}, got {actual}")


class StoreUnavailableError(MovieSimilarityError):
    """Raised when the embedding store cannot be opened or fails mid-scan."""

    kind = "store_unavailable"
    retryable = True


class SearchCancelledError(MovieSimilarityError):
    """Raised when a similarity request is aborted before the scan completes."""

    kind = "cancelled"
    retryable = True
