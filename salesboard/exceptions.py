"""
Exception hierarchy for salesboard.

Exception Hierarchy:
    SalesboardError (base)
    ├── DataFetchError   - Raw record feed could not be fetched
    └── FeedSchemaError  - Feed rows are missing required columns

    ValidationError      - Query parameter validation failed
    ConfigurationError   - Required configuration missing or invalid

The aggregation, ratio, delta and ranking functions never raise for
well-typed input. Only the fetch boundary and input validation do.
"""


class SalesboardError(Exception):
    """Base exception for all salesboard errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class DataFetchError(SalesboardError):
    """
    Fetching the raw record feed failed.

    Carries an opaque message for the caller. There is no retry and no
    partial result; whoever asked for the snapshot decides what to do.
    """

    def __init__(
        self,
        message: str,
        details: str = None,
        status_code: int = None,
        source: str = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.source = source


class FeedSchemaError(SalesboardError):
    """
    Feed rows do not have the columns the engine needs.

    Raised by loaders before any aggregation happens.
    """

    def __init__(self, message: str, details: str = None, missing: list = None):
        super().__init__(message, details)
        self.missing = list(missing or [])


class ValidationError(Exception):
    """
    Input validation failed.

    Used for validating query parameters before they reach the engine.
    """

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass
