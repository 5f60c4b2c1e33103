import logging
import smtplib
from decimal import Decimal
from email.message import EmailMessage
from typing import Iterable, Tuple

from . import config
from .models import OrderItem

logger = logging.getLogger(__name__)


def _money(value) -> str:
    return f"$ {Decimal(value):.2f}"


def compose_receipt(customer_name: str, items: Iterable[OrderItem]) -> Tuple[str, str]:
    """Builds the subject and plain-text body of the receipt for an order."""
    lines = [
        f"Hello, {customer_name}!",
        "",
        "Here is the receipt for the items you bought in our store.",
    ]
    total = Decimal("0")
    for item in items:
        subtotal = Decimal(item.price) * item.quantity
        total += subtotal
        lines += [
            "",
            f"Product: {item.product.name}",
            f"Quantity: {item.quantity}",
            f"Price: {_money(item.price)}",
            f"Subtotal: {_money(subtotal)}",
        ]
    lines += ["", f"Total: {_money(total)}", "", "Come back soon!"]

    subject = f"Receipt for the purchase made by {customer_name}!"
    return subject, "\n".join(lines)


class MailSender:
    """Sends plain-text emails over SMTP."""

    def __init__(self, host=None, port=None, user=None, password=None, starttls=None, sender=None):
        self.host = host or config.SMTP_HOST
        self.port = port or config.SMTP_PORT
        self.user = user or config.SMTP_USER
        self.password = password or config.SMTP_PASSWORD
        self.starttls = config.SMTP_STARTTLS if starttls is None else starttls
        self.sender = sender or config.MAIL_FROM

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)


def send_receipt(mailer, to: str, customer_name: str, items) -> bool:
    """
    Sends the receipt without ever failing the caller.
    Returns True when the mail was handed to the transport.
    """
    if mailer is None or not getattr(mailer, "configured", True):
        logger.warning("SMTP not configured, receipt for %s not sent", to)
        return False

    try:
        subject, body = compose_receipt(customer_name, items)
        mailer.send(to, subject, body)
    except Exception:
        # The order is already committed; a receipt problem must not surface.
        logger.exception("Failed to send receipt to %s", to)
        return False

    logger.info("Receipt sent to %s", to)
    return True
