"""
Exceptions raised by the call processing and summarization services.
"""
from typing import Optional


class CallInsightsError(Exception):
    """Base exception for all service errors."""

    code = "INTERNAL_ERROR"
    status_code = 500


class NotFoundError(CallInsightsError):
    """A call or its transcript could not be found."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"{resource.capitalize()} not found")


class UpstreamError(CallInsightsError):
    """The completion service answered with a non-success status."""

    code = "UPSTREAM_ERROR"
    status_code = 502

    def __init__(self, upstream_status: int, detail: Optional[str] = None) -> None:
        self.upstream_status = upstream_status
        self.detail = detail
        super().__init__(f"Completion API error: {upstream_status}")


class EmptyCompletionError(CallInsightsError):
    """The completion service returned no usable content."""

    code = "EMPTY_COMPLETION"
    status_code = 502

    def __init__(self) -> None:
        super().__init__("No summary generated")


class PersistenceError(CallInsightsError):
    """A write to the record store failed."""

    code = "PERSISTENCE_ERROR"


class RecordNotFoundError(PersistenceError):
    """An update matched no rows."""

    code = "RECORD_NOT_FOUND"


class ConfigurationError(CallInsightsError):
    """A required credential or setting is missing."""

    code = "CONFIGURATION_ERROR"
