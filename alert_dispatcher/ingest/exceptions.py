"""Exception hierarchy for alert ingestion."""

from __future__ import annotations


class IngestError(Exception):
    """Base exception for all ingestion errors."""


class MalformedEnvelopeError(IngestError):
    """The raw body is neither a transport envelope nor a parseable payload."""


class UnrecognizedFormatError(IngestError):
    """The payload does not have the shape of any supported source."""


class AdaptationError(IngestError):
    """A required field is missing from an otherwise recognized payload."""
