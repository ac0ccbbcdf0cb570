"""
tests/conftest.py — Shared fixtures: isolated storage directory, a clock the
test controls, and growth timers that only fire when the test says so.
"""

import shutil
import tempfile

import pytest


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        """Run the callback as threading.Timer would, unless cancelled."""
        if not self.cancelled:
            self.callback()


class FakeTimers:
    """Timer factory that records every timer it starts."""

    def __init__(self):
        self.created = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.created.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.created if not t.cancelled]


@pytest.fixture
def data_dir():
    """Temporary storage directory, removed after the test."""
    path = tempfile.mkdtemp()
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return FakeTimers()
