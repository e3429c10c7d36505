"""Translation of composed email messages into Mandrill payloads.

:class:`MandrillMessage` reads an :class:`email.message.Message` (normally an
``EmailMessage`` built by the caller) and exposes the ``message`` struct the
Mandrill API expects, plus the values the delivery method needs to choose
between a plain send and a template send.

Mandrill specific options travel as ``X-MC-*`` headers on the composed
message, following the header names Mandrill uses for its SMTP
integration.  For example::

    msg["X-MC-Template"] = "welcome|body"
    msg["X-MC-Tags"] = "onboarding, welcome"
    msg["X-MC-Metadata"] = '{"user_id": 42}'
    msg["X-MC-SendAt"] = "2016-08-08 18:36:25"

``X-MC-Template`` names the stored template and, after the ``|``, the
editable block that receives the HTML body of the message.
"""

from __future__ import annotations

import base64
import json
from email.message import Message
from email.utils import getaddresses, parseaddr
from typing import Any, Dict, Iterator, List, Optional, Tuple

from mandrill_dm.errors import MessageTranslationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_STRING_OPTIONS = {
    "X-MC-MergeLanguage": "merge_language",
    "X-MC-BccAddress": "bcc_address",
    "X-MC-TrackingDomain": "tracking_domain",
    "X-MC-SigningDomain": "signing_domain",
    "X-MC-ReturnPathDomain": "return_path_domain",
    "X-MC-Subaccount": "subaccount",
    "X-MC-GoogleAnalyticsCampaign": "google_analytics_campaign",
}

_BOOLEAN_OPTIONS = {
    "X-MC-Important": "important",
    "X-MC-Autotext": "auto_text",
    "X-MC-AutoHtml": "auto_html",
    "X-MC-InlineCSS": "inline_css",
    "X-MC-URLStripQS": "url_strip_qs",
    "X-MC-PreserveRecipients": "preserve_recipients",
    "X-MC-ViewContentLink": "view_content_link",
}

_LIST_OPTIONS = {
    "X-MC-Tags": "tags",
    "X-MC-GoogleAnalytics": "google_analytics_domains",
}

_RECIPIENT_FIELDS = (("To", "to"), ("Cc", "cc"), ("Bcc", "bcc"))


def _decode_text(part: Message) -> str:
    payload = part.get_payload(decode=True) or b""
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


def _is_container_attachment(part: Message) -> bool:
    """Parts sent whole as one attachment instead of being walked."""
    if part.get_content_maintype() == "message":
        return True
    return part.is_multipart() and part.get_content_disposition() == "attachment"


def _leaf_parts(part: Message) -> Iterator[Message]:
    if not part.is_multipart():
        yield part
        return
    for sub in part.get_payload():
        if _is_container_attachment(sub):
            yield sub
        else:
            yield from _leaf_parts(sub)


def _part_bytes(part: Message) -> bytes:
    if part.get_content_maintype() == "message":
        inner = part.get_payload()
        if isinstance(inner, list):
            inner = inner[0] if len(inner) == 1 else None
        if isinstance(inner, Message):
            return inner.as_bytes()
    if part.is_multipart():
        return part.as_bytes()
    return part.get_payload(decode=True) or b""


def _encode_part(part: Message) -> str:
    return base64.b64encode(_part_bytes(part)).decode("ascii")


class MandrillMessage:
    """Mandrill view of a composed email message.

    The composed message is read once, at construction, and never modified.

    Raises:
        MessageTranslationError: If ``mail`` is not an email message or one
            of its ``X-MC-*`` headers cannot be parsed.
    """

    def __init__(self, mail: Message) -> None:
        if not isinstance(mail, Message):
            raise MessageTranslationError(
                f"Expected an email.message.Message, got {type(mail).__name__}"
            )
        self._mail = mail
        self._text: Optional[str] = None
        self._html: Optional[str] = None
        self._attachments: List[Dict[str, str]] = []
        self._images: List[Dict[str, str]] = []
        self._split_parts()

        self.template, block = self._parse_template()
        self.template_content: List[Dict[str, str]] = (
            [{"name": block, "content": self._html or ""}] if block else []
        )
        self.send_at = self._header("X-MC-SendAt")
        self.ip_pool = self._header("X-MC-IpPool")
        self._payload = self._build_payload()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Return the ``message`` struct sent to the API.

        Keys without a value are left out.
        """
        return dict(self._payload)

    @property
    def html(self) -> Optional[str]:
        return self._html

    @property
    def text(self) -> Optional[str]:
        return self._text

    # ------------------------------------------------------------------
    # Header helpers
    # ------------------------------------------------------------------
    def _header(self, name: str) -> Optional[str]:
        value = self._mail.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def _flag(self, name: str) -> Optional[bool]:
        value = self._header(name)
        if value is None:
            return None
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise MessageTranslationError(f"{name} must be a boolean, got {value!r}")

    def _json(self, name: str) -> Optional[Dict[str, Any]]:
        value = self._header(name)
        if value is None:
            return None
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as exc:
            raise MessageTranslationError(f"{name} is not valid JSON: {exc}") from exc
        if not isinstance(decoded, dict):
            raise MessageTranslationError(f"{name} must be a JSON object")
        return decoded

    def _list(self, name: str) -> Optional[List[str]]:
        value = self._header(name)
        if value is None:
            return None
        return [item.strip() for item in value.split(",") if item.strip()]

    def _parse_template(self) -> Tuple[Optional[str], Optional[str]]:
        value = self._header("X-MC-Template")
        if value is None:
            return None, None
        slug, _, block = value.partition("|")
        return slug.strip() or None, block.strip() or None

    # ------------------------------------------------------------------
    # Body and recipients
    # ------------------------------------------------------------------
    def _split_parts(self) -> None:
        for part in _leaf_parts(self._mail):
            content_type = part.get_content_type()
            disposition = part.get_content_disposition()
            content_id = part.get("Content-ID")
            if _is_container_attachment(part):
                self._attachments.append(
                    {
                        "type": content_type,
                        "name": part.get_filename()
                        or ("message.eml" if content_type == "message/rfc822" else "attachment"),
                        "content": _encode_part(part),
                    }
                )
            elif (
                content_id
                and part.get_content_maintype() == "image"
                and disposition != "attachment"
            ):
                self._images.append(
                    {
                        "type": content_type,
                        "name": str(content_id).strip().strip("<>"),
                        "content": _encode_part(part),
                    }
                )
            elif disposition == "attachment" or part.get_filename():
                self._attachments.append(
                    {
                        "type": content_type,
                        "name": part.get_filename() or "attachment",
                        "content": _encode_part(part),
                    }
                )
            elif content_type == "text/plain" and self._text is None:
                self._text = _decode_text(part)
            elif content_type == "text/html" and self._html is None:
                self._html = _decode_text(part)

    def _recipients(self) -> List[Dict[str, str]]:
        recipients: List[Dict[str, str]] = []
        for field, kind in _RECIPIENT_FIELDS:
            values = [str(v) for v in self._mail.get_all(field) or []]
            for name, address in getaddresses(values):
                if not address:
                    continue
                entry = {"email": address, "type": kind}
                if name:
                    entry["name"] = name
                recipients.append(entry)
        return recipients

    def _passthrough_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for key, value in self._mail.items():
            lowered = key.lower()
            if lowered == "reply-to" or (
                lowered.startswith("x-") and not lowered.startswith("x-mc-")
            ):
                headers[key] = str(value)
        return headers

    def _tracking(self) -> Tuple[Optional[bool], Optional[bool]]:
        values = self._list("X-MC-Track")
        if values is None:
            return None, None
        lowered = [v.lower() for v in values]
        track_opens = "opens" in lowered
        track_clicks = any(v.startswith("clicks") for v in lowered)
        return track_opens, track_clicks

    def _build_payload(self) -> Dict[str, Any]:
        from_name, from_email = parseaddr(str(self._mail.get("From", "")))
        track_opens, track_clicks = self._tracking()

        merge_vars = self._json("X-MC-MergeVars")
        global_merge_vars = (
            [{"name": k, "content": v} for k, v in merge_vars.items()]
            if merge_vars
            else None
        )

        payload: Dict[str, Any] = {
            "from_email": from_email or None,
            "from_name": from_name or None,
            "to": self._recipients() or None,
            "subject": self._header("Subject"),
            "text": self._text,
            "html": self._html,
            "headers": self._passthrough_headers() or None,
            "attachments": self._attachments or None,
            "images": self._images or None,
            "track_opens": track_opens,
            "track_clicks": track_clicks,
            "metadata": self._json("X-MC-Metadata"),
            "global_merge_vars": global_merge_vars,
        }
        for header, key in _STRING_OPTIONS.items():
            payload[key] = self._header(header)
        for header, key in _BOOLEAN_OPTIONS.items():
            payload[key] = self._flag(header)
        for header, key in _LIST_OPTIONS.items():
            payload[key] = self._list(header)

        return {k: v for k, v in payload.items() if v is not None}


__all__ = ["MandrillMessage"]
