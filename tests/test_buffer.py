"""Tests for the sample buffer."""

from __future__ import annotations

import pytest

from keystroke_flow.analysis.buffer import SampleBuffer
from keystroke_flow.analysis.models import StateSnapshot
from keystroke_flow.config import Settings
from keystroke_flow.models import FlowState, KeystrokeEvent


def _ev(ts: int, text: str = "a", dt: int = 100) -> KeystrokeEvent:
    return KeystrokeEvent(timestamp=ts, delta_time=dt, text=text, source_id="buf.py")


@pytest.fixture
def buffer(settings) -> SampleBuffer:
    return SampleBuffer(settings.model_copy(update={"eviction_recompute_every": 1}))


# ── Context switch ───────────────────────────────────────────


class TestContextSwitch:
    def test_gap_archives_sample(self, buffer):
        for ts, ch in ((1000, "a"), (1100, "b"), (1200, "c")):
            buffer.push(_ev(ts, ch))
        buffer.push(_ev(11_200, "d", dt=10_000))

        assert buffer.closed_samples == 1
        samples = buffer.get_all_samples()
        assert "".join(e.text for e in samples[0]) == "abc"
        assert buffer.get_buffer_as_string() == "d"
        assert buffer.size() == 1
        assert buffer.get_state().features.events == 3

    def test_gap_just_below_window_does_not_switch(self, episode_settings):
        buf = SampleBuffer(episode_settings)
        buf.push(_ev(0))
        buf.push(_ev(9_999))
        assert buf.closed_samples == 0
        assert buf.size() == 2

    def test_first_event_at_time_zero(self, buffer):
        buffer.push(_ev(0, "a"))
        buffer.push(_ev(10_000, "b"))
        assert buffer.closed_samples == 1
        assert buffer.get_buffer_as_string() == "b"

    def test_new_sample_is_not_immediately_rebaselined(self, buffer):
        buffer.push(_ev(1_000))
        buffer.push(_ev(20_000))
        assert buffer.size() == 1
        assert buffer.get_buffer()[0].timestamp == 20_000


# ── Re-baseline ──────────────────────────────────────────────


class TestRebaseline:
    def test_long_sample_is_classified_then_dropped(self, buffer):
        for ts in (1_000, 1_500, 2_000):
            buffer.push(_ev(ts))
        assert buffer.size() == 0
        assert buffer.closed_samples == 0
        assert buffer.get_state().features.events == 3
        assert buffer.get_all_samples() == []

    def test_short_sample_is_kept(self, buffer):
        for ts in (1_000, 1_500, 1_999):
            buffer.push(_ev(ts))
        assert buffer.size() == 3


# ── Eviction ─────────────────────────────────────────────────


class TestEviction:
    @pytest.mark.parametrize("count", [1, 50, 100, 101, 250])
    def test_size_never_exceeds_window(self, count):
        settings = Settings(_env_file=None, max_length_for_analysis_ms=10**9, max_window_size=100)
        buf = SampleBuffer(settings)
        for i in range(count):
            buf.push(_ev(i * 10))
            assert buf.size() <= 100
        assert buf.size() == min(count, 100)

    def test_oldest_event_is_evicted(self):
        settings = Settings(_env_file=None, max_length_for_analysis_ms=10**9, max_window_size=3)
        buf = SampleBuffer(settings)
        for i, ch in enumerate("abcde"):
            buf.push(_ev(i * 10, ch))
        assert buf.get_buffer_as_string() == "cde"

    def test_recompute_is_throttled(self):
        settings = Settings(
            _env_file=None,
            max_length_for_analysis_ms=10**9,
            max_window_size=5,
            eviction_recompute_every=10,
        )
        buf = SampleBuffer(settings)
        initial = buf.get_state()
        for i in range(5):
            buf.push(_ev(i * 10))
        assert buf.get_state() is initial

        buf.push(_ev(50))  # first overflow
        first = buf.get_state()
        assert first is not initial
        assert first.features.events == 5

        for i in range(6, 15):
            buf.push(_ev(i * 10))
            assert buf.get_state() is first

        buf.push(_ev(150))  # eleventh overflow
        assert buf.get_state() is not first

    def test_every_overflow_recomputes_when_unthrottled(self, episode_settings):
        buf = SampleBuffer(episode_settings.model_copy(update={"max_window_size": 2}))
        buf.push(_ev(0))
        buf.push(_ev(10))
        states = [buf.get_state()]
        for i in range(2, 6):
            buf.push(_ev(i * 10))
            assert buf.get_state() is not states[-1]
            states.append(buf.get_state())


# ── Readers ──────────────────────────────────────────────────


class TestReaders:
    def test_empty_buffer(self, buffer):
        assert buffer.peek() is None
        assert buffer.size() == 0
        assert buffer.get_buffer() == []
        assert buffer.get_buffer_as_string() == ""
        assert buffer.get_all_samples() == []
        assert buffer.get_state().state is FlowState.FOCUSED

    def test_reads_return_copies(self, buffer):
        buffer.push(_ev(0, "a"))
        buffer.push(_ev(10_000, "b"))
        events = buffer.get_buffer()
        samples = buffer.get_all_samples()
        events.clear()
        samples[0].clear()
        samples.clear()
        assert buffer.size() == 1
        assert buffer.get_all_samples()[0][0].text == "a"

    def test_open_sample_is_listed_last(self, buffer):
        buffer.push(_ev(0, "a"))
        buffer.push(_ev(10_000, "b"))
        assert [s[0].text for s in buffer.get_all_samples()] == ["a", "b"]

    def test_peek_returns_latest(self, buffer):
        buffer.push(_ev(0, "a"))
        buffer.push(_ev(100, "b"))
        assert buffer.peek().text == "b"

    def test_deletions_render_as_nothing(self, buffer):
        buffer.push(_ev(0, "a"))
        buffer.push(KeystrokeEvent(timestamp=100, delta_time=100, text="", deleted_chars=1))
        assert buffer.get_buffer_as_string() == "a"

    def test_initial_state_is_used(self, settings):
        start = StateSnapshot(state=FlowState.IDLE)
        assert SampleBuffer(settings, initial_state=start).get_state() is start

    def test_clear_keeps_archive_and_state(self, buffer):
        buffer.push(_ev(0, "a"))
        buffer.push(_ev(10_000, "b"))
        state = buffer.get_state()
        buffer.clear()
        assert buffer.size() == 0
        assert buffer.closed_samples == 1
        assert buffer.get_state() is state
