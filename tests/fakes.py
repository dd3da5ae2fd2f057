"""
Test doubles shared across the test modules.
"""


class FakeGateway:
    """Messaging gateway double that records every send."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def send(self, to, body):
        self.sent.append((to, body))
        if to in self.failing:
            raise RuntimeError(f"Unable to deliver to {to}")
        return f"SM{len(self.sent):04d}"


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400
