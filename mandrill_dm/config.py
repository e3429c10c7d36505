"""Delivery configuration.

:class:`MandrillConfiguration` holds the process defaults (API key, default
dedicated IP pool, async flag).  It is built once by the caller, usually with
:meth:`MandrillConfiguration.from_env`, and handed to the delivery method.
:class:`DeliverySettings` is the immutable result of laying per-instance
options on top of that configuration.

Environment variables used by :meth:`MandrillConfiguration.from_env`:

* ``MANDRILL_API_KEY`` / ``MANDRILL_APIKEY`` – API key for Mandrill
* ``MANDRILL_IP_POOL`` – Optional dedicated IP pool name
* ``MANDRILL_ASYNC`` – when "true"/"1"/"yes", messages are queued by
  Mandrill and the call returns before sending completes
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from mandrill_dm.errors import ConfigurationError

# Option names accepted by ``resolve``, mapped to model field names.
_OPTION_FIELDS = {
    "api_key": "api_key",
    "ip_pool": "ip_pool",
    "async": "async_",
    "async_": "async_",
}


class DeliverySettings(BaseModel):
    """Resolved settings of a single delivery method instance."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    api_key: Optional[str] = None
    ip_pool: Optional[str] = None
    async_: bool = Field(default=False, alias="async")


class MandrillConfiguration(BaseModel):
    """Default delivery settings shared by every delivery method."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    api_key: Optional[str] = None
    ip_pool: Optional[str] = None
    async_: bool = Field(default=False, alias="async")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MandrillConfiguration":
        """Build a configuration from environment variables."""
        env = os.environ if environ is None else environ
        api_key = env.get("MANDRILL_API_KEY") or env.get("MANDRILL_APIKEY")
        ip_pool = env.get("MANDRILL_IP_POOL") or None
        async_ = env.get("MANDRILL_ASYNC", "false").strip().lower() in {
            "1", "true", "yes"
        }
        return cls(api_key=api_key, ip_pool=ip_pool, async_=async_)

    def resolve(self, options: Optional[Mapping[str, Any]] = None) -> DeliverySettings:
        """Merge ``options`` over this configuration, key by key.

        An option given with a value other than ``None`` wins; every other
        key falls back to the configured default.

        Raises:
            ConfigurationError: If an option name is unknown or a value has
                the wrong type.
        """
        values: dict[str, Any] = {
            "api_key": self.api_key,
            "ip_pool": self.ip_pool,
            "async_": self.async_,
        }
        for key, value in (options or {}).items():
            field = _OPTION_FIELDS.get(key)
            if field is None:
                raise ConfigurationError(f"Unknown delivery option: {key!r}")
            if value is not None:
                values[field] = value
        try:
            return DeliverySettings(**values)
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Invalid delivery options: {exc}") from exc


__all__ = ["DeliverySettings", "MandrillConfiguration"]
