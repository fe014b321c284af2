"""Exceptions for interactive callback handling."""

from __future__ import annotations


class CallbackError(Exception):
    """Base exception for interactive callback errors."""


class SignatureInvalidError(CallbackError):
    """Signature headers are missing or the signature does not match."""


class StaleRequestError(CallbackError):
    """Request timestamp is outside the accepted replay window."""


class InvalidCallbackError(CallbackError):
    """The form-encoded interactive payload cannot be decoded."""


class InvalidTransitionError(CallbackError):
    """An action session was moved along a transition it does not allow."""
