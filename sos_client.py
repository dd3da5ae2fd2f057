"""
Device side of the SOS flow.

Once the countdown confirms, the client reads the stored profile, asks the
location provider for coordinates and posts the alert to the backend. The
work runs on a background worker and is handed back as a Future; every
outcome is also reported through `notify` (the on-screen toast).
"""
import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional

import requests

import config
from countdown import CountdownController, SosState
from models import AlertRequest, Contact, ProfileError
from profile_store import ProfileStore

logger = logging.getLogger(__name__)

MSG_SENT = "Help is on the way!"
MSG_FAILED = "Failed to send alert"
MSG_NO_PROFILE = "User data not found"
MSG_NO_PERMISSION = "Location permission not granted"
MSG_NO_LOCATION = "Unable to get location"
MSG_CANCELLED = "Alert cancelled"


# --------------------------
# LOCATION
# --------------------------


class LocationError(Exception):
    pass


class LocationPermissionDenied(LocationError):
    pass


class LocationUnavailable(LocationError):
    pass


class FixedLocation:
    """Location provider returning preset coordinates (CLI, tests)."""

    def __init__(self, latitude=None, longitude=None):
        self.latitude = latitude
        self.longitude = longitude

    def __call__(self):
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable("No coordinates available")
        return self.latitude, self.longitude


# --------------------------
# ALERT CLIENT
# --------------------------


@dataclass
class AlertOutcome:
    ok: bool
    message: str
    response: Optional[Any] = None


class SosClient:
    def __init__(
        self,
        store,
        location_provider,
        api_url=None,
        notify=None,
        emergency_type=None,
        timeout=None,
        session=None,
    ):
        self.store = store
        self.location_provider = location_provider
        self.api_url = api_url or config.SOS_API_URL
        self.notify = notify or (lambda message: logger.info("%s", message))
        self.emergency_type = emergency_type or config.SOS_EMERGENCY_TYPE
        self.timeout = timeout if timeout is not None else config.SOS_REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sos-client")

    def build_request(self, profile, latitude, longitude):
        return AlertRequest(
            name=profile.first_name,
            surname=profile.last_name,
            coordinates=f"{latitude},{longitude}",
            call_me_at=profile.callback_number,
            emergency_type=self.emergency_type,
            contacts=profile.contact_numbers(),
        )

    def send_alert(self, cancel=None, on_done=None):
        """
        Starts sending an alert in the background and returns a Future of AlertOutcome.
        `cancel` is a threading.Event checked right before the network call;
        `on_done(outcome)` runs on the worker before the Future resolves.
        """
        return self._executor.submit(self._send, cancel, on_done)

    def close(self):
        self._executor.shutdown(wait=True)
        self.session.close()

    def _send(self, cancel, on_done):
        try:
            outcome = self._attempt(cancel)
        except Exception as e:
            logger.exception("Unexpected error while sending SOS alert")
            outcome = AlertOutcome(False, f"Error: {e}")
        self.notify(outcome.message)
        if on_done is not None:
            on_done(outcome)
        return outcome

    def _attempt(self, cancel):
        profile = self.store.load()
        if profile is None:
            return AlertOutcome(False, MSG_NO_PROFILE)

        try:
            latitude, longitude = self.location_provider()
        except LocationPermissionDenied as e:
            logger.warning("Location permission denied: %s", e)
            return AlertOutcome(False, MSG_NO_PERMISSION)
        except LocationUnavailable as e:
            logger.warning("Location unavailable: %s", e)
            return AlertOutcome(False, MSG_NO_LOCATION)

        if cancel is not None and cancel.is_set():
            return AlertOutcome(False, MSG_CANCELLED)

        payload = self.build_request(profile, latitude, longitude).to_payload()
        try:
            response = self.session.post(self.api_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("SOS request to %s failed: %s", self.api_url, e)
            return AlertOutcome(False, f"Error: {e}")

        if response.ok:
            return AlertOutcome(True, MSG_SENT, response)
        logger.warning("SOS request rejected with HTTP %s: %s", response.status_code, response.text)
        return AlertOutcome(False, MSG_FAILED, response)


class SosButton:
    """
    Countdown wired to the client. A confirmed countdown sends the alert;
    if sending fails the button goes back to Idle so the user can retry.
    """

    def __init__(self, client, seconds=None, interval=1.0, on_tick=None):
        self.client = client
        self.last_alert = None
        self.controller = CountdownController(
            self._on_confirmed,
            seconds=seconds or config.SOS_COUNTDOWN_SECONDS,
            interval=interval,
            on_tick=on_tick,
        )

    @property
    def state(self):
        return self.controller.state

    def press(self):
        return self.controller.press()

    def _on_confirmed(self):
        self.last_alert = self.client.send_alert(on_done=self._on_alert_done)

    def _on_alert_done(self, outcome):
        if not outcome.ok:
            self.controller.reset()


# --------------------------
# COMMAND LINE
# --------------------------


def _parse_contact(value):
    name, sep, mobile = value.rpartition(":")
    if not sep:
        raise argparse.ArgumentTypeError("contacts look like NAME:MOBILE")
    return Contact(name=name, mobile=mobile)


def _build_parser():
    parser = argparse.ArgumentParser(description="SOS device client")
    parser.add_argument("--profile", default=config.SOS_PROFILE_PATH, help="profile file")
    sub = parser.add_subparsers(dest="command", required=True)

    register = sub.add_parser("register", help="save personal details and emergency contacts")
    register.add_argument("first_name")
    register.add_argument("last_name")
    register.add_argument("callback_number")
    register.add_argument("--contact", action="append", type=_parse_contact, default=[], metavar="NAME:MOBILE")

    trigger = sub.add_parser("trigger", help="run the SOS countdown and send the alert")
    trigger.add_argument("--lat", type=float)
    trigger.add_argument("--lon", type=float)
    trigger.add_argument("--url", default=config.SOS_API_URL)
    trigger.add_argument("--seconds", type=int, default=config.SOS_COUNTDOWN_SECONDS, help="countdown length")
    return parser


def _trigger(store, args):
    if not store.is_registered():
        print(MSG_NO_PROFILE)
        return 1

    client = SosClient(store, FixedLocation(args.lat, args.lon), api_url=args.url, notify=print)
    button = SosButton(client, seconds=args.seconds, on_tick=lambda remaining: print(f"  {remaining}..."))
    print(f"SOS in {button.controller.seconds}s - press Ctrl-C to cancel")
    button.press()
    try:
        button.controller.wait()
    except KeyboardInterrupt:
        if button.state is SosState.COUNTING and button.press() is SosState.IDLE:
            print(MSG_CANCELLED)
            client.close()
            return 1
        # Too late to cancel: the alert is already on its way
        button.controller.wait()

    outcome = button.last_alert.result() if button.last_alert is not None else None
    client.close()
    return 0 if outcome is not None and outcome.ok else 1


def main(argv=None):
    config.configure_logging()
    args = _build_parser().parse_args(argv)
    store = ProfileStore(args.profile)

    if args.command == "register":
        try:
            store.register(args.first_name, args.last_name, args.callback_number, args.contact)
        except ProfileError as e:
            print(e)
            return 1
        print("Profile saved")
        return 0

    return _trigger(store, args)


if __name__ == "__main__":
    sys.exit(main())
