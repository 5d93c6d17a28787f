"""Unit tests for the core value types."""
from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from serialtag.data_types import Detection, Frame, Rect, ReconstructedSequence


class TestRect:
    def test_derived_values(self):
        r = Rect(10, 20, 50, 80)
        assert r.width == 40
        assert r.height == 60
        assert r.center_x == 30
        assert r.center_y == 50

    def test_swapped_edges_are_normalized(self):
        r = Rect(50, 80, 10, 20)
        assert (r.left, r.top, r.right, r.bottom) == (10, 20, 50, 80)

    def test_immutable(self):
        r = Rect(0, 0, 1, 1)
        with pytest.raises(FrozenInstanceError):
            r.left = 5

    def test_degenerate(self):
        assert Rect(5, 5, 5, 10).is_degenerate()
        assert not Rect(0, 0, 1, 1).is_degenerate()

    def test_clipped(self):
        r = Rect(-10, -5, 700, 300).clipped(640, 480)
        assert (r.left, r.top, r.right, r.bottom) == (0, 0, 640, 300)

    def test_contains(self):
        outer = Rect(0, 0, 100, 100)
        assert outer.contains(Rect(10, 10, 100, 50))
        assert not outer.contains(Rect(10, 10, 101, 50))


class TestDetection:
    def test_with_box_returns_new_detection(self):
        det = Detection(box=Rect(0, 0, 10, 10), score=0.8, label="3")
        moved = det.with_box(Rect(5, 5, 15, 15))

        assert moved is not det
        assert det.box == Rect(0, 0, 10, 10)
        assert moved.box == Rect(5, 5, 15, 15)
        assert (moved.score, moved.label) == (0.8, "3")


class TestFrame:
    def test_from_array(self):
        frame = Frame.from_array(np.zeros((480, 640, 3), dtype=np.uint8))
        assert (frame.width, frame.height) == (640, 480)


class TestReconstructedSequence:
    def test_text_joins_small_then_main(self):
        seq = ReconstructedSequence(small=("1", "-"), main=tuple("7893456"))
        assert seq.text == "1-7893456"
        assert str(seq) == seq.text
        assert len(seq.slots) == 9
