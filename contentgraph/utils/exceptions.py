"""
Custom exception hierarchy for contentgraph.

Provides structured error types for the graph-consistency core.
All exceptions inherit from ContentGraphError for easy catching.
"""


class ContentGraphError(Exception):
    """
    Base exception for all contentgraph errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize contentgraph error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(ContentGraphError):
    """
    Base exception for store operations.
    Used for errors related to document storage operations.
    """

    pass


class PersistenceError(StoreError):
    """
    Document store persistence errors.
    Raised when a load, save or remove against the document store fails.
    """

    pass


class BlobStoreError(StoreError):
    """
    Blob store errors.
    Raised when uploading or removing binary files fails.
    """

    pass


class NotFoundError(ContentGraphError):
    """
    Resource not found errors.
    Raised when a referenced Content, Feature or Image doesn't exist.
    """

    pass


class ValidationError(ContentGraphError):
    """
    Validation errors.
    Raised when a requested association would break an ownership invariant.
    """

    pass


class ConfigurationError(ContentGraphError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class FanOutTimeoutError(ContentGraphError):
    """
    Fan-out deadline errors.
    Raised for an item that was still running when its group deadline passed.
    """

    pass


class FanOutError(ContentGraphError):
    """
    Aggregated failures of a fan-out.

    Every dispatched item is allowed to finish, then all failures are
    reported together. ``errors`` is ordered by the time each failure was
    observed, so ``first`` is the first error any item raised.
    Side effects of the items that succeeded are not undone.
    """

    def __init__(
        self,
        message: str,
        errors: list[BaseException],
        succeeded: int = 0,
        context: dict | None = None,
    ):
        super().__init__(message, context)
        self.errors = errors
        self.succeeded = succeeded

    @property
    def first(self) -> BaseException | None:
        """First observed failure."""
        return self.errors[0] if self.errors else None

    @property
    def failed(self) -> int:
        """Number of failed items."""
        return len(self.errors)


class PartialCascadeError(FanOutError):
    """
    Partial cascade failure.

    Raised when some fan-out items already committed their mutation while
    others failed, leaving the graph inconsistent until the operation is
    retried or repaired (see IntegrityChecker).
    """

    pass
