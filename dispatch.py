"""
Alert dispatch: validate an SOS payload, relay the alert to every contact
and record the attempt.

Contacts are notified best-effort. A failure for one contact is recorded in
its result and never stops the others, and a request whose every delivery
failed is still reported as processed.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone

from models import AlertRequest, DispatchResult, LogEntry, STATUS_FAILED, STATUS_SENT

logger = logging.getLogger(__name__)

MAPS_URL = "https://maps.google.com/?q={coordinates}"
SUCCESS_MESSAGE = "SOS sent successfully"


class ValidationError(ValueError):
    """The alert payload is malformed; nothing has been sent or logged."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class DispatchPolicy:
    """
    How many contacts are notified at the same time.
    The default of 1 sends strictly one after another, which keeps the
    gateway's rate limits happy at the cost of latency.
    """
    max_concurrency: int = 1

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")


SEQUENTIAL = DispatchPolicy(max_concurrency=1)


# --------------------------
# VALIDATION
# --------------------------


def _is_text(value):
    return isinstance(value, str) and value.strip() != ""


def validate_alert(payload):
    """Checks the payload field by field; the first failure wins."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    name = payload.get("name")
    surname = payload.get("surname")
    if not _is_text(name) or not _is_text(surname):
        raise ValidationError("Name and surname are required")

    contacts = payload.get("contacts")
    if not isinstance(contacts, list) or len(contacts) == 0:
        raise ValidationError("Contacts array is required")
    if not all(_is_text(c) for c in contacts):
        raise ValidationError("Contacts must be a list of phone number strings")

    coordinates = payload.get("coordinates")
    if not _is_text(coordinates):
        raise ValidationError("Coordinates string is required")

    call_me_at = payload.get("callMeAt")
    if not _is_text(call_me_at):
        raise ValidationError("callMeAt is required as a string")

    emergency_type = payload.get("emergencyType")
    if not _is_text(emergency_type):
        raise ValidationError("emergencyType is required as a string")

    return AlertRequest(
        name=name,
        surname=surname,
        coordinates=coordinates,
        call_me_at=call_me_at,
        emergency_type=emergency_type,
        contacts=list(contacts),
    )


def format_alert_message(alert):
    return (
        "🚨 SOS ALERT 🚨\n"
        f"Name: {alert.name} {alert.surname}\n"
        f"Emergency: {alert.emergency_type}\n"
        f"Location: {MAPS_URL.format(coordinates=alert.coordinates)}\n"
        f"📞 Call me at: {alert.call_me_at}"
    )


# --------------------------
# FAN-OUT
# --------------------------


def _notify_contact(gateway, number, body):
    try:
        sid = gateway.send(number, body)
    except Exception as e:
        logger.warning("Alert to %s failed: %s", number, e)
        return DispatchResult(number=number, status=STATUS_FAILED, error=str(e) or type(e).__name__)
    logger.info("Alert sent to %s (sid=%s)", number, sid)
    return DispatchResult(number=number, status=STATUS_SENT, sid=sid)


def dispatch_alert(alert, gateway, policy=SEQUENTIAL):
    """Notifies every contact; results line up with alert.contacts."""
    body = format_alert_message(alert)

    if policy.max_concurrency == 1 or len(alert.contacts) == 1:
        return [_notify_contact(gateway, number, body) for number in alert.contacts]

    workers = min(policy.max_concurrency, len(alert.contacts))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sos-dispatch") as pool:
        return list(pool.map(lambda number: _notify_contact(gateway, number, body), alert.contacts))


def submit_alert(payload, gateway, alert_log, policy=SEQUENTIAL):
    """
    Full /sos handling: validate, notify, log.
    Raises ValidationError before any side effect if the payload is malformed.
    """
    alert = validate_alert(payload)
    logger.info("SOS from %s %s at %s for %d contact(s)", alert.name, alert.surname, alert.coordinates, len(alert.contacts))

    results = dispatch_alert(alert, gateway, policy)

    entry = LogEntry(
        timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        name=alert.name,
        surname=alert.surname,
        coordinates=alert.coordinates,
        contacts=alert.contacts,
        results=results,
    )
    if not alert_log.append(entry.to_dict()):
        logger.warning("SOS from %s %s was dispatched but not logged", alert.name, alert.surname)

    sent = sum(1 for r in results if r.sent)
    logger.info("SOS processed: %d/%d contact(s) notified", sent, len(results))
    return {"message": SUCCESS_MESSAGE, "results": [r.to_dict() for r in results]}
