"""Health data error taxonomy.

Source adapters raise these; the daily aggregator absorbs them per metric.
Each error carries a user-facing description and a recovery suggestion so a
presentation layer can show it without inspecting the type.
"""

from __future__ import annotations

from datetime import date

from healthtracker.domains.health.connectors import Capability


class HealthDataError(Exception):
    """Base class for every error in the health data taxonomy."""

    recovery_suggestion = "Please try again or restart the app"

    @property
    def description(self) -> str:
        return str(self)


class PermissionDenied(HealthDataError):
    """Read access to a capability was denied, or health data is unavailable."""

    recovery_suggestion = "Go to Settings → Privacy & Security → Health to enable access"

    def __init__(self, capability: Capability | str, reason: str = "") -> None:
        self.capability = capability
        label = capability.label if isinstance(capability, Capability) else capability
        super().__init__(reason or f"Please enable {label} access in Settings")


class DataUnavailable(HealthDataError):
    """No data can be produced for a date or a capability."""

    recovery_suggestion = "Try adding data manually or check your Health app"

    def __init__(self, subject: date | Capability) -> None:
        self.subject = subject
        if isinstance(subject, Capability):
            what = f"{subject.label} data"
            super().__init__(f"{what} is not available on this device")
        else:
            super().__init__(f"No data available for {subject.isoformat()}")


class ValidationFailed(HealthDataError):
    """A metrics value failed validation. Reserved for a strict mode."""

    recovery_suggestion = "Please check your input and try again"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Data validation failed: {reason}")


class NetworkError(HealthDataError):
    """A remote source could not be reached. Reserved for remote sources."""

    recovery_suggestion = "Check your internet connection and try again"

    def __init__(self, message: str) -> None:
        super().__init__(f"Network error: {message}")


class UnknownError(HealthDataError):
    """Any failure that is neither a denial nor an absence of data."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Unexpected error: {cause}")
