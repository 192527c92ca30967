# psi_report/core/errors.py
from typing import Any, Optional

class ReportError(Exception):
    """Base class for every failure surfaced by the proxy or the report client."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

class ValidationError(ReportError):
    """Bad or empty input URL. Raised before any network call."""
    status_code = 400

class ConfigurationError(ReportError):
    """Missing server API key, or live mode without an endpoint."""
    status_code = 500

class TransportError(ReportError):
    """Connection-level failure talking to the upstream API or the proxy."""
    status_code = 500

class ParseError(TransportError):
    """Response body was not valid JSON."""

class UpstreamError(ReportError):
    """Non-success HTTP status; carries the status and the response body."""
