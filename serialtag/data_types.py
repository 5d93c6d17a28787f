# Core data structures (rects, detections, frames, sequences)

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

# published when no tag / not enough glyphs were found in a frame
NOTHING_RECOGNIZED = "nothing recognized"


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle in pixel coordinates.
    (left, top) = top-left, (right, bottom) = bottom-right.
    Swapped edges are normalized on construction.
    """
    left: float
    top: float
    right: float
    bottom: float

    def __post_init__(self):
        left, right = sorted((float(self.left), float(self.right)))
        top, bottom = sorted((float(self.top), float(self.bottom)))
        object.__setattr__(self, "left", left)
        object.__setattr__(self, "top", top)
        object.__setattr__(self, "right", right)
        object.__setattr__(self, "bottom", bottom)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2.0

    @property
    def center_y(self) -> float:
        return (self.top + self.bottom) / 2.0

    def is_degenerate(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0

    def contains(self, other: "Rect") -> bool:
        return (
            other.left >= self.left
            and other.top >= self.top
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def clipped(self, width: float, height: float) -> "Rect":
        """
        Clamp all edges into [0, width] x [0, height].
        """
        return Rect(
            left=min(max(self.left, 0.0), width),
            top=min(max(self.top, 0.0), height),
            right=min(max(self.right, 0.0), width),
            bottom=min(max(self.bottom, 0.0), height),
        )


@dataclass(frozen=True)
class Detection:
    """
    Single detection output by a classifier for one object.
    """
    box: Rect
    score: float
    label: str

    def with_box(self, box: Rect) -> "Detection":
        return Detection(box=box, score=self.score, label=self.label)


@dataclass(frozen=True, eq=False)
class Frame:
    """
    One camera frame. Owned by a single processing cycle.
    """
    pixels: np.ndarray
    width: int
    height: int

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "Frame":
        h, w = pixels.shape[:2]
        return cls(pixels=pixels, width=int(w), height=int(h))


@dataclass(frozen=True)
class ReconstructedSequence:
    """
    The reconstructed serial: small leading slots followed by the main slots.
    Each slot is a recognized label or the placeholder.
    """
    small: Tuple[str, ...]
    main: Tuple[str, ...]

    @property
    def slots(self) -> Tuple[str, ...]:
        return self.small + self.main

    @property
    def text(self) -> str:
        return "".join(self.slots)

    def __str__(self) -> str:
        return self.text


class CycleState(Enum):
    IDLE = "idle"
    BUSY = "busy"
