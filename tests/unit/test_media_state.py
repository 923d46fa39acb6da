"""Unit tests for read-only media state queries."""

import math

import pytest

from forcebuffer.media_state import MediaStateReader, classify_height
from forcebuffer.simulated_source import SimulatedMediaSource


class BrokenSource(SimulatedMediaSource):
    """Source whose every read raises."""

    def get_buffered_ranges(self):
        raise RuntimeError("player gone")

    def get_duration(self):
        raise RuntimeError("player gone")

    def get_quality_label(self):
        raise RuntimeError("player gone")


class TestMediaStateReader:
    """Fully-buffered detection, extent and quality labels."""

    def setup_method(self):
        self.reader = MediaStateReader(fully_buffered_epsilon=0.5)

    def test_furthest_end_without_ranges(self):
        source = SimulatedMediaSource(duration=100.0, initial_buffer=0.0)
        assert self.reader.furthest_buffered_end(source) == 0.0

    def test_furthest_end_across_disjoint_ranges(self):
        source = SimulatedMediaSource(duration=100.0, initial_buffer=0.0)
        source.ranges = [(0.0, 10.0), (40.0, 55.0), (20.0, 30.0)]
        assert self.reader.furthest_buffered_end(source) == 55.0

    def test_fully_buffered_within_epsilon(self):
        source = SimulatedMediaSource(duration=100.0, initial_buffer=0.0, position=5.0)
        source.ranges = [(0.0, 99.6)]
        assert self.reader.is_fully_buffered(source)

    def test_not_fully_buffered_outside_epsilon(self):
        source = SimulatedMediaSource(duration=100.0, initial_buffer=0.0, position=5.0)
        source.ranges = [(0.0, 99.0)]
        assert not self.reader.is_fully_buffered(source)

    def test_range_must_cover_playhead(self):
        source = SimulatedMediaSource(duration=100.0, initial_buffer=0.0, position=5.0)
        source.ranges = [(0.0, 4.0), (10.0, 100.0)]
        assert not self.reader.is_fully_buffered(source)

    @pytest.mark.parametrize("duration", [math.nan, math.inf])
    def test_unknown_duration_is_never_fully_buffered(self, duration):
        source = SimulatedMediaSource(duration=duration, initial_buffer=0.0)
        source.ranges = [(0.0, 1000.0)]
        assert self.reader.duration(source) is None
        assert not self.reader.is_fully_buffered(source)

    def test_read_errors_mean_no_information(self):
        source = BrokenSource(duration=100.0)
        assert self.reader.furthest_buffered_end(source) == 0.0
        assert not self.reader.is_fully_buffered(source)
        assert self.reader.duration(source) is None
        assert self.reader.quality(source) is None

    def test_torn_down_source(self):
        source = SimulatedMediaSource(duration=100.0)
        source.torn_down = True
        assert self.reader.position(source) is None
        assert self.reader.buffered_percentage(source) == 0

    def test_buffered_percentage(self):
        source = SimulatedMediaSource(duration=200.0, initial_buffer=50.0)
        assert self.reader.buffered_percentage(source) == 25

    def test_quality_prefers_player_label(self):
        source = SimulatedMediaSource(duration=10.0, quality="hd720", video_height=1080)
        assert self.reader.quality(source) == "hd720"

    def test_quality_falls_back_to_selector(self):
        class SelectorSource(SimulatedMediaSource):
            def get_selected_quality(self):
                return "1440p60"

        source = SelectorSource(duration=10.0, video_height=720)
        assert self.reader.quality(source) == "1440p60"

    def test_quality_from_height(self):
        source = SimulatedMediaSource(duration=10.0, video_height=1080)
        assert self.reader.quality(source) == "1080p"

    def test_quality_unknown(self):
        assert self.reader.quality(SimulatedMediaSource(duration=10.0)) is None
        assert self.reader.quality(None) is None


@pytest.mark.parametrize(
    "height,label",
    [
        (2160, "4K"),
        (1440, "1440p"),
        (1080, "1080p"),
        (1079, "720p"),
        (720, "720p"),
        (480, "480p"),
        (360, "360p"),
        (240, "240p"),
        (144, "144p"),
    ],
)
def test_classify_height(height, label):
    assert classify_height(height) == label
