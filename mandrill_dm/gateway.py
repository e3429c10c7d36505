"""Mandrill HTTP API client.

:class:`MessagingGateway` is the contract the delivery method relies on;
:class:`MandrillAPI` implements it with ``requests`` against the Mandrill
JSON API.  Only the two message sending calls are covered.  See the Mandrill
API documentation for the parameters accepted by ``messages/send`` and
``messages/send-template``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

import requests

from mandrill_dm.errors import ConfigurationError, MandrillAPIError, error_for

DEFAULT_BASE_URL = "https://mandrillapp.com/api/1.0"

LOGGER = logging.getLogger(__name__)


class MessagingGateway(Protocol):
    """Operations a delivery method needs from the remote API."""

    def send(
        self,
        message: Any,
        async_: bool = False,
        ip_pool: Optional[str] = None,
        send_at: Optional[str] = None,
    ) -> Any:
        ...

    def send_template(
        self,
        template_name: str,
        template_content: List[Dict[str, str]],
        message: Any,
        async_: bool = False,
        ip_pool: Optional[str] = None,
        send_at: Optional[str] = None,
    ) -> Any:
        ...


class MandrillAPI:
    """``requests`` implementation of :class:`MessagingGateway`."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("A Mandrill API key must be provided")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session

    def send(
        self,
        message: Any,
        async_: bool = False,
        ip_pool: Optional[str] = None,
        send_at: Optional[str] = None,
    ) -> Any:
        """Send a fully rendered message.

        Returns:
            The decoded response, one result dict per recipient.
        """
        params = {
            "message": message,
            "async": async_,
            "ip_pool": ip_pool,
            "send_at": send_at,
        }
        return self.call("messages/send", params)

    def send_template(
        self,
        template_name: str,
        template_content: List[Dict[str, str]],
        message: Any,
        async_: bool = False,
        ip_pool: Optional[str] = None,
        send_at: Optional[str] = None,
    ) -> Any:
        """Send a message rendered server side from a stored template."""
        params = {
            "template_name": template_name,
            "template_content": template_content,
            "message": message,
            "async": async_,
            "ip_pool": ip_pool,
            "send_at": send_at,
        }
        return self.call("messages/send-template", params)

    def call(self, path: str, params: Dict[str, Any]) -> Any:
        """POST ``params`` to an API method and return the decoded body.

        Raises:
            MandrillAPIError: If the API answers with a non-200 status.
            requests.RequestException: If the request itself fails.
        """
        url = f"{self._base_url}/{path}.json"
        body = dict(params, key=self._api_key)
        LOGGER.debug("POST %s", url)
        # Without an injected session each call uses a one-off connection.
        post = self._session.post if self._session is not None else requests.post
        response = post(url, json=body, timeout=self._timeout)
        if response.status_code == 200:
            return response.json()
        raise self._error_from(response)

    @staticmethod
    def _error_from(response: requests.Response) -> MandrillAPIError:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict) or payload.get("status") != "error":
            return MandrillAPIError(
                f"We received an unexpected error: {response.text}",
                status_code=response.status_code,
            )
        name = payload.get("name")
        return error_for(name)(
            payload.get("message") or "",
            status_code=response.status_code,
            code=payload.get("code"),
            name=name,
        )


__all__ = ["DEFAULT_BASE_URL", "MandrillAPI", "MessagingGateway"]
