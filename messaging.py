import logging
import uuid

from twilio.rest import Client

import config

logger = logging.getLogger(__name__)


class TwilioGateway:
    """Sends alert messages through Twilio (WhatsApp or plain SMS)."""

    def __init__(self, account_sid, auth_token, from_number, channel="whatsapp", client=None):
        self.client = client or Client(account_sid, auth_token)
        self.from_number = from_number
        self.channel = channel

    def _address(self, number):
        if self.channel == "whatsapp" and not number.startswith("whatsapp:"):
            return f"whatsapp:{number}"
        return number

    def send(self, to, body):
        """Returns the Twilio message SID. Twilio errors propagate to the caller."""
        message = self.client.messages.create(
            from_=self._address(self.from_number),
            to=self._address(to),
            body=body,
        )
        return message.sid


class ConsoleGateway:
    """Local development gateway: logs the message instead of sending it."""

    def send(self, to, body):
        sid = f"console-{uuid.uuid4().hex[:16]}"
        logger.info("[console gateway] to=%s sid=%s\n%s", to, sid, body)
        return sid


def build_gateway():
    """Twilio when credentials are configured, the console gateway otherwise."""
    if config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN:
        return TwilioGateway(
            config.TWILIO_ACCOUNT_SID,
            config.TWILIO_AUTH_TOKEN,
            config.TWILIO_FROM,
            channel=config.TWILIO_CHANNEL,
        )
    logger.warning("Twilio credentials not set - alerts will only be logged to the console")
    return ConsoleGateway()
