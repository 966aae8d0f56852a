"""
Error kinds raised while relaying a turn to the provider.

Every error is terminal for the call that raised it; the HTTP layer renders
it as ``{"error": message}`` with ``status_code``.
"""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    status_code = 500
    log_event = "relay_error"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(RelayError):
    """The provider credential is not configured on the server."""

    log_event = "relay_configuration_error"


class ValidationError(RelayError):
    status_code = 400
    log_event = "relay_validation_error"


class ProviderTransportError(RelayError):
    """The provider answered with a non-2xx status."""

    log_event = "provider_transport_error"


class ProviderContentError(RelayError):
    """The provider answered 2xx but produced no usable text (e.g. safety block)."""

    log_event = "provider_content_error"


class UnexpectedError(RelayError):
    log_event = "relay_unexpected_error"
