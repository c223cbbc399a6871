"""Exception types shared across the engine."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised before scoring when thresholds, weights or tables are invalid."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        if not self.errors:
            return self.args[0]
        return f"{self.args[0]}: {'; '.join(self.errors)}"


class MalformedEvidenceError(ValueError):
    """Raised internally when an evidence record cannot be parsed."""


class AugmentationError(RuntimeError):
    """Raised when the optional external scorer fails after retrying."""
