"""Tests for orientation snapping, result formatting and the demo sink."""
import numpy as np
import pytest

from serialtag.data_types import NOTHING_RECOGNIZED
from serialtag.main_demo import LatestResult
from serialtag.orientation import OrientationTracker
from serialtag.overlay import draw_result, format_result


class TestOrientationTracker:
    @pytest.mark.parametrize("raw, expected", [
        (0, 0),
        (29, 0),
        (330, 0),
        (359.5, 0),
        (60, 90),
        (119, 90),
        (150, 180),
        (209, 180),
        (240, 270),
        (299, 270),
        (-90, 270),
    ])
    def test_buckets(self, raw, expected):
        assert OrientationTracker().update(raw) == expected

    def test_dead_zone_keeps_previous(self):
        tracker = OrientationTracker()
        assert tracker.update(90) == 90
        assert tracker.update(135) == 90
        assert tracker.update(180) == 180
        assert tracker.update(225) == 180
        assert tracker.update(315) == 180
        assert tracker.update(45) == 180


class TestOverlay:
    def test_format_result(self):
        assert format_result("127893456") == "Recognized: 127893456"
        assert format_result(NOTHING_RECOGNIZED) == "Recognized: Nothing"

    def test_draw_result_draws_in_place(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        out = draw_result(frame, "127893456", status="busy")
        assert out is frame
        assert frame.any()

    def test_draw_before_first_result(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        draw_result(frame, None)
        assert frame.any()


class TestLatestResult:
    def test_keeps_last_published(self):
        sink = LatestResult()
        assert sink.value is None
        sink.publish(NOTHING_RECOGNIZED)
        sink.publish("127893456")
        assert sink.value == "127893456"
