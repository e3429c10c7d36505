"""Abstract interface for delivering email messages.

This subpackage defines the common ``EmailSender`` interface and the
Mandrill implementation of it.  Senders deliver an already composed
``email.message.EmailMessage``; ``send_email`` is a shortcut that composes a
simple HTML message first.  Client code can swap implementations without
changing the calling semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from email.message import EmailMessage, Message
from typing import Any, Optional


class EmailSender(ABC):
    """Abstract base class for email senders.

    Implementations must provide a ``deliver`` method.
    """

    @abstractmethod
    def deliver(self, message: Message) -> Any:
        """Deliver a composed message.

        Args:
            message: The message to send.  It is read, never modified.

        Returns:
            Whatever the underlying transport reports for the delivery.

        Raises:
            Any implementation specific exceptions on failure.
        """
        raise NotImplementedError

    def send_email(
        self,
        recipient: str,
        msg_id: str,
        html: str,
        subject: str = "",
        text: Optional[str] = None,
        from_email: Optional[str] = None,
    ) -> Any:
        """Compose a single HTML email and deliver it.

        Args:
            recipient: The target email address.
            msg_id: A unique identifier for this message, sent as Message-ID.
            html: The HTML content of the message.
            subject: The email subject line.
            text: Optional plain‑text version.
            from_email: Optional sender address.
        """
        msg = EmailMessage()
        msg["Subject"] = subject
        if from_email:
            msg["From"] = from_email
        msg["To"] = recipient
        msg["Message-ID"] = msg_id
        if text:
            msg.set_content(text)
            msg.add_alternative(html, subtype="html")
        else:
            msg.set_content(html, subtype="html")
        return self.deliver(msg)


__all__ = ["EmailSender"]
