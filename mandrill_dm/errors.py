"""Exception hierarchy for mandrill_dm.

Errors fall into three groups:

* :class:`ConfigurationError` – missing or invalid settings (for example an
  empty API key), raised when the API client is built.
* :class:`MessageTranslationError` – the composed message cannot be turned
  into a Mandrill payload.
* :class:`MandrillAPIError` and its subclasses – the Mandrill API rejected
  the call.  Subclasses are selected from the ``name`` field of the error
  body returned by the API.

Network failures are not wrapped; they surface as ``requests`` exceptions.
"""

from __future__ import annotations

from typing import Dict, Optional, Type


class MandrillDmError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(MandrillDmError, ValueError):
    """Raised when delivery settings are missing or invalid."""


class MessageTranslationError(MandrillDmError, ValueError):
    """Raised when a composed message cannot be translated."""


class MandrillAPIError(MandrillDmError):
    """Error reported by the Mandrill API.

    Attributes:
        status_code: HTTP status of the response.
        code: Numeric Mandrill error code, when the body carried one.
        name: Mandrill error name (e.g. ``Invalid_Key``).
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.name = name


class InvalidKeyError(MandrillAPIError):
    """The provided API key is not a valid Mandrill API key."""


class MandrillValidationError(MandrillAPIError):
    """The parameters passed to the API call are invalid or not provided."""


class UnknownTemplateError(MandrillAPIError):
    """The requested template does not exist."""


class UnknownSubaccountError(MandrillAPIError):
    """The provided subaccount id does not exist."""


class UnknownPoolError(MandrillAPIError):
    """The provided dedicated IP pool does not exist."""


class PaymentRequiredError(MandrillAPIError):
    """The requested feature requires payment."""


class ServiceUnavailableError(MandrillAPIError):
    """The subsystem providing this API call is down for maintenance."""


ERROR_MAP: Dict[str, Type[MandrillAPIError]] = {
    "Invalid_Key": InvalidKeyError,
    "ValidationError": MandrillValidationError,
    "Unknown_Template": UnknownTemplateError,
    "Unknown_Subaccount": UnknownSubaccountError,
    "Unknown_Pool": UnknownPoolError,
    "PaymentRequired": PaymentRequiredError,
    "ServiceUnavailable": ServiceUnavailableError,
}


def error_for(name: Optional[str]) -> Type[MandrillAPIError]:
    """Return the exception class registered for a Mandrill error name."""
    return ERROR_MAP.get(name or "", MandrillAPIError)


__all__ = [
    "ConfigurationError",
    "ERROR_MAP",
    "InvalidKeyError",
    "MandrillAPIError",
    "MandrillDmError",
    "MessageTranslationError",
    "PaymentRequiredError",
    "ServiceUnavailableError",
    "UnknownPoolError",
    "UnknownSubaccountError",
    "UnknownTemplateError",
    "MandrillValidationError",
    "error_for",
]
