"""Error taxonomy for the Cost Explorer pipeline."""

from __future__ import annotations


class CostExplorerError(Exception):
    """Base class for classified pipeline failures."""

    kind = "Error"
    retryable = False

    def __init__(self, message: str, remediation: str | None = None) -> None:
        super().__init__(message)
        self.remediation = remediation


class SigningError(CostExplorerError):
    """Malformed signing inputs (empty credentials, bad timestamp)."""

    kind = "SigningError"


class PermissionDenied(CostExplorerError):
    kind = "PermissionDenied"

    def __init__(self, message: str, remediation: str | None = None) -> None:
        super().__init__(
            message,
            remediation or "grant ce:GetCostAndUsage to the calling identity",
        )


class BadRequest(CostExplorerError):
    kind = "BadRequest"


class TransientFailure(CostExplorerError):
    """Network or 5xx failure; the caller may retry."""

    kind = "TransientFailure"
    retryable = True


class DecodeError(CostExplorerError):
    """Response body did not match the expected Cost Explorer shape."""

    kind = "DecodeError"


class ConfigurationError(CostExplorerError):
    kind = "ConfigurationError"


class FetchCancelled(Exception):
    """Trend fetch abandoned between two monthly requests."""


def format_error(exc: CostExplorerError) -> str:
    """Render a one-line classified message for the user."""
    message = " ".join(str(exc).split())
    line = f"{exc.kind}: {message}"
    if exc.remediation:
        line += f" (hint: {exc.remediation})"
    return line
