"""
SOS countdown: Idle -> Counting -> Confirmed.

Pressing while idle starts a countdown, pressing again while counting
cancels it, and letting it run out confirms the alert. Each countdown owns
its own cancellation token, so a timer from a cancelled countdown can never
confirm a later one.
"""
import enum
import logging
import threading

logger = logging.getLogger(__name__)


class SosState(enum.Enum):
    IDLE = "idle"
    COUNTING = "counting"
    CONFIRMED = "confirmed"


class CountdownController:
    def __init__(self, on_confirmed, seconds=5, interval=1.0, on_tick=None):
        if seconds < 1:
            raise ValueError("seconds must be at least 1")
        self.on_confirmed = on_confirmed
        self.on_tick = on_tick
        self.seconds = seconds
        self.interval = interval
        self._lock = threading.Lock()
        self._state = SosState.IDLE
        self._remaining = seconds
        self._token = None
        self._thread = None

    @property
    def state(self):
        with self._lock:
            return self._state

    @property
    def remaining(self):
        with self._lock:
            return self._remaining

    def press(self):
        """Feeds one button press into the state machine and returns the new state."""
        with self._lock:
            if self._state is SosState.IDLE:
                self._start_episode()
            elif self._state is SosState.COUNTING:
                self._cancel_episode()
                self._state = SosState.IDLE
                logger.info("SOS countdown cancelled")
            return self._state

    def reset(self):
        """Returns to Idle from any state, cancelling a running countdown."""
        with self._lock:
            self._cancel_episode()
            self._state = SosState.IDLE
            self._remaining = self.seconds

    def wait(self, timeout=None):
        """Blocks until the current countdown thread ends. True if it has."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # Both helpers expect self._lock to be held.

    def _start_episode(self):
        token = threading.Event()
        self._token = token
        self._remaining = self.seconds
        self._state = SosState.COUNTING
        self._thread = threading.Thread(target=self._run, args=(token,), name="sos-countdown", daemon=True)
        self._thread.start()
        logger.info("SOS countdown started (%ds)", self.seconds)

    def _cancel_episode(self):
        if self._token is not None:
            self._token.set()
            self._token = None

    def _run(self, token):
        while True:
            if token.wait(self.interval):
                return

            with self._lock:
                if token is not self._token:
                    return
                self._remaining -= 1
                remaining = self._remaining
                confirmed = remaining <= 0
                if confirmed:
                    self._state = SosState.CONFIRMED
                    self._token = None

            if self.on_tick is not None:
                try:
                    self.on_tick(remaining)
                except Exception:
                    logger.exception("Countdown tick handler failed")

            if confirmed:
                logger.info("SOS countdown finished, alert confirmed")
                try:
                    self.on_confirmed()
                except Exception:
                    logger.exception("SOS confirmation handler failed")
                return
