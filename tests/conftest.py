"""Pytest configuration and fixtures for Strudel MCP tests."""

import pytest

from strudelmcp.resilience import ErrorHistoryTracker, ErrorRecovery, ManualClock


# Arbitrary wall-clock start so failure timestamps look like real ones
START_MS = 1_700_000_000_000.0


@pytest.fixture(autouse=True)
def use_test_environment(monkeypatch):
    """Ensure tests never pick up a developer's environment overrides."""
    for name in (
        "ERROR_WINDOW_MS",
        "FREQUENT_FAILURE_THRESHOLD",
        "CIRCUIT_BREAKER_THRESHOLD",
        "LOG_LEVEL",
        "DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    """Deterministic clock driven with advance()."""
    return ManualClock(start=START_MS)


@pytest.fixture
def tracker(clock):
    """Failure history on the manual clock."""
    return ErrorHistoryTracker(clock)


@pytest.fixture
def recovery(clock):
    """ErrorRecovery on the manual clock with a 60s window."""
    return ErrorRecovery(clock=clock, window_ms=60000)


@pytest.fixture
def sample_patterns():
    """Strudel patterns with chained calls to simplify."""
    return {
        "effects": 's("bd*4").delay(0.5).reverb(0.3).room(0.8)',
        "filters": 'note("c e g").lpf(800).hpf(200).bpf(1000)',
        "transforms": 's("hh*8").jux(rev).iter(4).chop(8).striate(4).scramble(8)',
        "conditionals": (
            's("bd").sometimes(x => x.fast(2)).often(x => x.slow(2))'
            ".rarely(x => x.rev()).every(4, x => x.fast(2))"
        ),
    }
