"""Mandrill-based email sender implementation.

This module defines ``DeliveryMethod``, which sends composed email messages
via the Mandrill HTTP API.  Messages carrying an ``X-MC-Template`` header go
through ``messages/send-template``; all others go through ``messages/send``.
The raw API response is returned and also kept on the instance as
``response`` until the next successful delivery.

A ``DeliveryMethod`` instance keeps that single ``response`` field as mutable
state, so concurrent ``deliver`` calls on one instance must be serialized by
the caller.  The value returned by ``deliver`` does not depend on it.
"""

from __future__ import annotations

import logging
from email.message import Message
from typing import Any, Callable, Mapping, Optional

from mandrill_dm.config import DeliverySettings, MandrillConfiguration
from mandrill_dm.gateway import MandrillAPI, MessagingGateway
from mandrill_dm.mailer import EmailSender
from mandrill_dm.message import MandrillMessage

LOGGER = logging.getLogger(__name__)


class DeliveryMethod(EmailSender):
    """Mandrill implementation of the ``EmailSender`` interface.

    Args:
        options: Per-instance overrides for ``api_key``, ``ip_pool`` and
            ``async``.  Keys left out (or set to ``None``) use the value
            from ``configuration``.
        configuration: Process defaults.  An empty configuration is used
            when omitted.
        gateway_factory: Builds the API client from the resolved API key.
            Called once per delivery.
        translator: Turns the composed message into a Mandrill message.
    """

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        *,
        configuration: Optional[MandrillConfiguration] = None,
        gateway_factory: Callable[[Optional[str]], MessagingGateway] = MandrillAPI,
        translator: Callable[[Message], MandrillMessage] = MandrillMessage,
    ) -> None:
        configuration = configuration or MandrillConfiguration()
        self.settings: DeliverySettings = configuration.resolve(options)
        self.response: Any = None
        self._gateway_factory = gateway_factory
        self._translator = translator

    def deliver(self, message: Message) -> Any:
        """Send ``message`` through Mandrill and return the API response.

        Errors from building the client, translating the message or calling
        the API propagate unchanged and leave ``response`` as it was.
        """
        gateway = self._gateway_factory(self.settings.api_key)
        mandrill_message = self._translator(message)

        ip_pool = mandrill_message.ip_pool or self.settings.ip_pool
        send_at = mandrill_message.send_at
        payload = mandrill_message.to_dict()

        if mandrill_message.template:
            LOGGER.debug(
                "Sending template %s (ip_pool=%s, send_at=%s)",
                mandrill_message.template, ip_pool, send_at,
            )
            response = gateway.send_template(
                mandrill_message.template,
                mandrill_message.template_content,
                payload,
                self.settings.async_,
                ip_pool,
                send_at,
            )
        else:
            LOGGER.debug("Sending message (ip_pool=%s, send_at=%s)", ip_pool, send_at)
            response = gateway.send(
                payload,
                self.settings.async_,
                ip_pool,
                send_at,
            )

        self.response = response
        LOGGER.info("Mandrill delivery completed")
        return response


__all__ = ["DeliveryMethod"]
