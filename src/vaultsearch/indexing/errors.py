"""Exceptions raised by the search index."""


class SearchIndexError(Exception):
    """Base exception for search index errors."""

    pass


class IndexNotInitializedError(SearchIndexError):
    """Raised when an operation needs an index that has not been created."""

    pass


class IndexNotReadyError(SearchIndexError):
    """Raised when saving or querying an index that is not ready yet."""

    pass


class IndexCorruptedError(SearchIndexError):
    """Raised when a persisted index cannot be read back."""

    pass
