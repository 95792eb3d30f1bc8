"""Shared test helpers for ratemirror tests."""

from __future__ import annotations

from ratemirror.connectivity.monitor import ProbeMode


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeProbeTransport:
    """Probe transport returning scripted outcomes and counting attempts.

    Each outcome is either a bool verdict or an exception to raise. The last
    outcome repeats once the script runs out.
    """

    def __init__(self, *outcomes: bool | BaseException) -> None:
        self._outcomes = list(outcomes) or [True]
        self.calls: list[tuple[str, ProbeMode]] = []

    @property
    def attempts(self) -> int:
        return len(self.calls)

    async def attempt_probe(self, url: str, mode: ProbeMode) -> bool:
        self.calls.append((url, mode))
        index = min(len(self.calls) - 1, len(self._outcomes) - 1)
        outcome = self._outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
