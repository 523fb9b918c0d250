from __future__ import annotations


class NFeError(ValueError):
    """Base error for NF-e assembly, carrying the offending wire field when known."""

    def __init__(self, message: str, field: str | None = None, value: object = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class MissingFieldError(NFeError):
    """A section or one of its mandatory attributes was absent or empty."""


class FormatError(NFeError):
    """A field failed a fixed-width, numeric, or enumerated-value constraint."""


class BusinessRuleError(NFeError):
    """A regulatory rule was violated (recipient required, GTIN checksum, etc.)."""


class DerivationError(NFeError):
    """Access-key inputs could not be coerced to their fixed widths."""


class SerializationError(NFeError):
    """The built document could not be encoded to its wire format."""
