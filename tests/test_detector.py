"""Tests for the detector implementations that run without model weights."""
import numpy as np
import pytest

from conftest import glyph
from serialtag.config import DetectorConfig
from serialtag.detector import StaticDetector, YoloDetector, load_labels
from serialtag.exceptions import InitializationError


class TestStaticDetector:
    def test_returns_detections_by_descending_score(self):
        detector = StaticDetector([
            glyph(10, 10, 10, "a", score=0.5),
            glyph(20, 10, 10, "b", score=0.9),
            glyph(30, 10, 10, "c", score=0.7),
        ])
        out = detector.detect(np.zeros((10, 10, 3), dtype=np.uint8))

        assert [d.label for d in out] == ["b", "c", "a"]
        assert detector.calls == 1

    def test_returns_fresh_list(self):
        detector = StaticDetector([glyph(10, 10, 10, "a")])
        out = detector.detect(None)
        out.clear()
        assert len(detector.detect(None)) == 1


class TestLoadLabels:
    def test_one_label_per_line(self, tmp_path):
        path = tmp_path / "labels.txt"
        path.write_text("0\n1\n\n2\nA\n", encoding="utf-8")
        assert load_labels(path) == {0: "0", 1: "1", 2: "2", 3: "A"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(InitializationError):
            load_labels(tmp_path / "missing.txt")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "labels.txt"
        path.write_text("\n\n", encoding="utf-8")
        with pytest.raises(InitializationError):
            load_labels(path)


class TestYoloDetector:
    def test_missing_weights_raise_initialization_error(self, tmp_path):
        config = DetectorConfig(model_path=tmp_path / "missing.pt", device="cpu")
        with pytest.raises(InitializationError, match="not found"):
            YoloDetector(config)
