"""Top‑level package for mandrill_dm.

This package delivers composed email messages through the Mandrill
transactional email API instead of SMTP.  A :class:`DeliveryMethod` takes an
``email.message.EmailMessage``, translates it into the payload Mandrill
expects and calls either the plain send or the template send endpoint.

Typical use from a composition root::

    from mandrill_dm import DeliveryMethod, MandrillConfiguration

    delivery = DeliveryMethod(configuration=MandrillConfiguration.from_env())
    delivery.deliver(message)
    print(delivery.response)
"""

from __future__ import annotations

from mandrill_dm.config import DeliverySettings, MandrillConfiguration
from mandrill_dm.errors import (
    ConfigurationError,
    MandrillAPIError,
    MandrillDmError,
    MessageTranslationError,
)
from mandrill_dm.gateway import MandrillAPI, MessagingGateway
from mandrill_dm.mailer import EmailSender
from mandrill_dm.mailer.mandrill_sender import DeliveryMethod
from mandrill_dm.message import MandrillMessage

__all__ = [
    "ConfigurationError",
    "DeliveryMethod",
    "DeliverySettings",
    "EmailSender",
    "MandrillAPI",
    "MandrillAPIError",
    "MandrillConfiguration",
    "MandrillDmError",
    "MandrillMessage",
    "MessageTranslationError",
    "MessagingGateway",
]

# SemVer version of the package
__version__: str = "0.1.0"
