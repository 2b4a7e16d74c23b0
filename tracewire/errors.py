"""Tracewire error hierarchy and exceptions."""

from __future__ import annotations


class TracewireError(Exception):
    """Base exception for all tracewire errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(TracewireError):
    """Raised when configuration is invalid or conflicting."""
    pass


class ValidationError(TracewireError):
    """Raised when a value handed to a span or context is rejected."""
    pass


class InvalidBaggageKey(ValidationError):
    """Raised when a baggage key does not match ``[a-z0-9][-a-z0-9]*``."""
    pass


class UnsupportedValue(ValidationError):
    """Raised when a tag, baggage value or log payload cannot be represented."""
    pass


class UseAfterFinish(ValidationError):
    """Raised when a finished span is mutated."""
    pass


class PropagationError(TracewireError):
    """Base for errors raised while injecting or extracting a carrier."""
    pass


class MalformedCarrier(PropagationError):
    """Raised when a carrier is truncated, overflowing or otherwise corrupt."""
    pass


class UnsupportedFormat(PropagationError):
    """Raised when no propagator is registered for a format token."""
    pass


class ExportError(TracewireError):
    """Raised when span export fails."""
    pass
