import base64
from email.message import EmailMessage
from typing import Optional

import pytest

from mandrill_dm.errors import MessageTranslationError
from mandrill_dm.message import MandrillMessage


def _mail(html: str = "<p>Hello</p>", text: Optional[str] = None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = "Sender Name <sender@example.com>"
    msg["To"] = "Ann <ann@example.com>, bob@example.com"
    msg["Cc"] = "carol@example.com"
    msg["Bcc"] = "dave@example.com"
    msg["Subject"] = "Greetings"
    if text:
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")
    else:
        msg.set_content(html, subtype="html")
    return msg


def test_reads_sender_subject_and_recipients() -> None:
    payload = MandrillMessage(_mail()).to_dict()

    assert payload["from_email"] == "sender@example.com"
    assert payload["from_name"] == "Sender Name"
    assert payload["subject"] == "Greetings"
    assert payload["to"] == [
        {"email": "ann@example.com", "type": "to", "name": "Ann"},
        {"email": "bob@example.com", "type": "to"},
        {"email": "carol@example.com", "type": "cc"},
        {"email": "dave@example.com", "type": "bcc"},
    ]


def test_reads_text_and_html_alternatives() -> None:
    payload = MandrillMessage(_mail(html="<p>Hi</p>", text="Hi")).to_dict()
    assert payload["text"].strip() == "Hi"
    assert payload["html"].strip() == "<p>Hi</p>"


def test_message_without_template() -> None:
    message = MandrillMessage(_mail())
    assert message.template is None
    assert message.template_content == []
    assert message.send_at is None
    assert message.ip_pool is None


def test_template_header_with_block_uses_html_as_content() -> None:
    msg = EmailMessage()
    msg["X-MC-Template"] = "some-template-slug|body"
    msg.set_content("<some>html</some>", subtype="html")

    message = MandrillMessage(msg)

    assert message.template == "some-template-slug"
    assert [c["name"] for c in message.template_content] == ["body"]
    assert message.template_content[0]["content"].strip() == "<some>html</some>"
    payload = message.to_dict()
    assert list(payload) == ["html"]
    assert payload["html"].strip() == "<some>html</some>"


def test_template_header_without_block_has_no_content() -> None:
    msg = _mail()
    msg["X-MC-Template"] = "welcome"
    message = MandrillMessage(msg)
    assert message.template == "welcome"
    assert message.template_content == []


def test_send_at_and_ip_pool_are_read_verbatim() -> None:
    msg = _mail()
    msg["X-MC-SendAt"] = "2016-08-08 18:36:25"
    msg["X-MC-IpPool"] = "Main Pool"
    message = MandrillMessage(msg)
    assert message.send_at == "2016-08-08 18:36:25"
    assert message.ip_pool == "Main Pool"
    assert "send_at" not in message.to_dict()


def test_control_headers_map_to_options() -> None:
    msg = _mail()
    msg["X-MC-Tags"] = "welcome, onboarding"
    msg["X-MC-Metadata"] = '{"user_id": 42}'
    msg["X-MC-MergeVars"] = '{"FNAME": "Ann"}'
    msg["X-MC-Track"] = "opens,clicks_htmlonly"
    msg["X-MC-Important"] = "true"
    msg["X-MC-PreserveRecipients"] = "no"
    msg["X-MC-Subaccount"] = "customer-1"
    msg["X-MC-GoogleAnalytics"] = "example.com"

    payload = MandrillMessage(msg).to_dict()

    assert payload["tags"] == ["welcome", "onboarding"]
    assert payload["metadata"] == {"user_id": 42}
    assert payload["global_merge_vars"] == [{"name": "FNAME", "content": "Ann"}]
    assert payload["track_opens"] is True
    assert payload["track_clicks"] is True
    assert payload["important"] is True
    assert payload["preserve_recipients"] is False
    assert payload["subaccount"] == "customer-1"
    assert payload["google_analytics_domains"] == ["example.com"]


def test_forwards_reply_to_and_custom_headers_only() -> None:
    msg = _mail()
    msg["Reply-To"] = "replies@example.com"
    msg["X-Campaign"] = "spring"
    msg["X-MC-Tags"] = "ignored-as-header"

    headers = MandrillMessage(msg).to_dict()["headers"]

    assert headers == {"Reply-To": "replies@example.com", "X-Campaign": "spring"}


def test_attachments_and_inline_images() -> None:
    msg = _mail(text="Hi")
    msg.add_attachment(b"%PDF-1.4", maintype="application", subtype="pdf", filename="report.pdf")
    html_part = msg.get_payload()[0].get_payload()[1]
    html_part.add_related(b"\x89PNG", maintype="image", subtype="png", cid="<logo>")

    payload = MandrillMessage(msg).to_dict()

    assert payload["attachments"] == [
        {
            "type": "application/pdf",
            "name": "report.pdf",
            "content": base64.b64encode(b"%PDF-1.4").decode("ascii"),
        }
    ]
    assert payload["images"] == [
        {
            "type": "image/png",
            "name": "logo",
            "content": base64.b64encode(b"\x89PNG").decode("ascii"),
        }
    ]


def test_does_not_modify_the_composed_message() -> None:
    msg = _mail()
    before = msg.as_string()
    MandrillMessage(msg).to_dict()
    assert msg.as_string() == before


def test_invalid_boolean_header_raises() -> None:
    msg = _mail()
    msg["X-MC-Important"] = "maybe"
    with pytest.raises(MessageTranslationError):
        MandrillMessage(msg)


def test_invalid_json_header_raises() -> None:
    msg = _mail()
    msg["X-MC-Metadata"] = "{not json"
    with pytest.raises(MessageTranslationError):
        MandrillMessage(msg)


def test_non_message_input_raises() -> None:
    with pytest.raises(MessageTranslationError):
        MandrillMessage("not a message")  # type: ignore[arg-type]


def test_forwarded_message_is_attached_whole() -> None:
    inner = EmailMessage()
    inner["Subject"] = "Original"
    inner.set_content("INNER TEXT BODY")
    inner.add_attachment(b"%PDF-1.4", maintype="application", subtype="pdf", filename="inner.pdf")
    outer = _mail(html="<p>outer</p>")
    outer.add_attachment(inner)

    payload = MandrillMessage(outer).to_dict()

    assert "text" not in payload
    assert payload["html"].strip() == "<p>outer</p>"
    (attachment,) = payload["attachments"]
    assert attachment["type"] == "message/rfc822"
    assert attachment["name"] == "message.eml"
    forwarded = base64.b64decode(attachment["content"])
    assert b"INNER TEXT BODY" in forwarded
    assert b"inner.pdf" in forwarded
