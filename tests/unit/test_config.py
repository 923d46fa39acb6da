"""Unit tests for configuration loading."""

import pytest
from pydantic import ValidationError

from forcebuffer.config import ForceBufferConfig


def test_defaults():
    config = ForceBufferConfig(_env_file=None)
    assert config.tick_interval_ms == 1000
    assert config.min_step_seconds == 5.0
    assert config.max_step_seconds == 60.0
    assert config.short_form_step_seconds == 5.0
    assert config.max_attempts == 500
    assert config.throughput_sample_window == 5
    assert config.quality_change_settle_ms == 500
    assert config.settle_delay_ms == 150
    assert config.fault_ceiling == 10


def test_environment_override(monkeypatch):
    monkeypatch.setenv("FORCEBUFFER_TICK_INTERVAL_MS", "250")
    monkeypatch.setenv("FORCEBUFFER_MAX_ATTEMPTS", "42")
    config = ForceBufferConfig(_env_file=None)
    assert config.tick_interval_ms == 250
    assert config.max_attempts == 42


def test_inverted_step_bounds_rejected():
    with pytest.raises(ValidationError):
        ForceBufferConfig(_env_file=None, min_step_seconds=30.0, max_step_seconds=10.0)


def test_zero_window_rejected():
    with pytest.raises(ValidationError):
        ForceBufferConfig(_env_file=None, throughput_sample_window=0)
