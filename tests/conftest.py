"""Shared fixtures for the watch/rebuild tests."""

from __future__ import annotations

import threading
import time

import pytest


class RecordingBuild:
    """Rebuild stub that records calls and fails the test on re-entrancy."""

    def __init__(self, duration=0.0, result=True):
        self.duration = duration
        self.result = result
        self.calls: list[float] = []
        self.options: list = []
        self.reentered = False
        self._active = 0
        self._lock = threading.Lock()
        self.called = threading.Event()

    def __call__(self, options):
        with self._lock:
            self._active += 1
            if self._active > 1:
                self.reentered = True
            self.calls.append(time.monotonic())
            self.options.append(options)
        try:
            if self.duration:
                time.sleep(self.duration)
            if isinstance(self.result, BaseException):
                raise self.result
            return self.result
        finally:
            with self._lock:
                self._active -= 1
            self.called.set()

    @property
    def count(self) -> int:
        with self._lock:
            return len(self.calls)

    @property
    def active(self) -> int:
        with self._lock:
            return self._active


class RecordingObserver:
    """Collects observer notifications instead of logging them."""

    def __init__(self):
        self.events: list[tuple] = []

    def on_change(self, path, kind, label="Source"):
        self.events.append(("change", path, kind, label))

    def on_build_start(self):
        self.events.append(("start",))

    def on_build_success(self, completed_at):
        self.events.append(("success", completed_at))

    def on_build_failure(self, error=None):
        self.events.append(("failure", error))

    def on_build_queued(self):
        self.events.append(("queued",))

    def names(self) -> list[str]:
        return [e[0] for e in self.events]


def wait_for(predicate, timeout=5.0, interval=0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def build():
    return RecordingBuild()


@pytest.fixture
def observer():
    return RecordingObserver()
