"""Custom exception classes for the ingestion pipeline."""

from typing import Optional


class EdiProcessingError(Exception):
    """Base exception for all ingestion errors."""

    pass


class LocationProcessingError(EdiProcessingError):
    """A raw location record could not be turned into a Location.

    Aborts the offending record only; the rest of the batch continues.
    """

    def __init__(self, message: str, line_number: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number


class InvalidBusinessTypeError(EdiProcessingError):
    """Business type and coverage type form a combination that has no product."""

    def __init__(self, business_type: Optional[str], coverage_type: Optional[str]):
        super().__init__(
            f"Invalid business type/coverage type combination: {business_type}/{coverage_type}"
        )
        self.business_type = business_type
        self.coverage_type = coverage_type


class RepositoryError(EdiProcessingError):
    """The persistence collaborator failed a lookup or a write."""

    pass


class ConfigurationError(EdiProcessingError):
    """Configuration is invalid or a referenced file cannot be read."""

    pass
