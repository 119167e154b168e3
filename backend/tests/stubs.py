"""Test doubles shared across the suite."""
import threading

from domain.models import GeocodeHit, PostalAddress


class StubGateway:
    """Records every call; answers from dicts, raising stored exceptions.

    ``gates`` maps a forward query to a threading.Event the call waits on,
    which lets a test decide the order responses come back in.
    """

    def __init__(self, forward=None, reverse=None, postal=None, gates=None):
        self.forward = forward or {}
        self.reverse = reverse or {}
        self.postal = postal or {}
        self.gates = gates or {}
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def _answer(self, table, key, default):
        value = table.get(key, default)
        if isinstance(value, Exception):
            raise value
        return value

    def forward_geocode(self, text):
        self._record("forward", text)
        gate = self.gates.get(text)
        if gate is not None:
            assert gate.wait(timeout=5), f"gate for {text!r} never opened"
        return self._answer(self.forward, text, [])

    def reverse_geocode(self, lat, lon):
        self._record("reverse", lat, lon)
        gate = self.gates.get((lat, lon))
        if gate is not None:
            assert gate.wait(timeout=5), f"gate for {(lat, lon)!r} never opened"
        return self._answer(self.reverse, (lat, lon), None)

    def resolve_postal_code(self, code):
        self._record("postal", code)
        return self._answer(self.postal, code, PostalAddress())

    def methods_called(self):
        return [c[0] for c in self.calls]


def hit(lat, lon, name):
    return GeocodeHit(lat=lat, lon=lon, display_name=name)
