"""Pytest configuration and shared fixtures for the serial tag reader."""
import sys
import logging
import threading
from pathlib import Path
from typing import List

import numpy as np
import pytest

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from serialtag.data_types import Detection, Frame, Rect
from serialtag.detector import BaseDetector


logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)


def glyph(cx, cy, h, label, w=None, score=0.9) -> Detection:
    """Detection centred at (cx, cy) with height h (width defaults to 2/3 h)."""
    if w is None:
        w = h * 2.0 / 3.0
    return Detection(
        box=Rect(cx - w / 2.0, cy - h / 2.0, cx + w / 2.0, cy + h / 2.0),
        score=score,
        label=label,
    )


MAIN_X = [10, 50, 90, 130, 170, 210, 250]
MAIN_LABELS = ["7", "8", "9", "3", "4", "5", "6"]


def main_row(cy=300, h=30) -> List[Detection]:
    return [glyph(cx, cy, h, label) for cx, label in zip(MAIN_X, MAIN_LABELS)]


def two_small() -> List[Detection]:
    return [glyph(100, 50, 10, "1", w=6), glyph(108, 50, 10, "2", w=6)]


class RecordingSink:
    """Display sink that remembers every published string."""

    def __init__(self):
        self.published: List[str] = []
        self.event = threading.Event()

    def __call__(self, result: str) -> None:
        self.published.append(result)
        self.event.set()


class BlockingDetector(BaseDetector):
    """Wraps a detector and blocks inside detect() until released."""

    def __init__(self, inner: BaseDetector):
        self.inner = inner
        self.started = threading.Event()
        self.release = threading.Event()

    def detect(self, image):
        self.started.set()
        self.release.wait(timeout=5)
        return self.inner.detect(image)


class FailingDetector(BaseDetector):
    def detect(self, image):
        raise RuntimeError("inference failed")


@pytest.fixture
def blank_frame():
    """640x480 black BGR frame."""
    return Frame.from_array(np.zeros((480, 640, 3), dtype=np.uint8))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def full_tag_glyphs():
    """Two small glyphs plus a full main row; reads as 127893456."""
    return two_small() + main_row()
