# Preparing the second-stage input: square crop around the detected tag

import logging
from typing import Tuple

import cv2
import numpy as np

from serialtag.data_types import Rect
from serialtag.exceptions import GeometryError
from serialtag.geometry import AffineTransform, build_transform, normalize_rotation

logger = logging.getLogger(__name__)


def _grow(low: int, high: int, delta: int, upper_bound: int) -> Tuple[int, int]:
    """
    Grow the span [low, high] by delta: forward from high if it fits,
    otherwise up to upper_bound and the rest backward from low (not below 0).
    """
    if high + delta < upper_bound:
        return low, high + delta

    delta -= upper_bound - high
    return max(low - delta, 0), upper_bound


def expand_to_square(rect: Rect, frame_width: int, frame_height: int) -> Tuple[Rect, int]:
    """
    Grow the shorter side of rect so that width == height, staying inside
    the frame.

    The rect is first clipped to the frame and truncated to whole pixels.
    Returns the expanded rect and a rotation hint: 90 when the height was
    the shorter side (a landscape tag, grown vertically), 0 otherwise.
    The result is square whenever the longer side fits in the other frame
    dimension; otherwise the grown side is clamped to the full frame.

    Raises GeometryError for rects with no area inside the frame.
    """
    clipped = rect.clipped(frame_width, frame_height)
    left, top = int(clipped.left), int(clipped.top)
    right, bottom = int(clipped.right), int(clipped.bottom)

    if right <= left or bottom <= top:
        raise GeometryError(f"Degenerate rect inside {frame_width}x{frame_height} frame: {rect}")

    delta = (bottom - top) - (right - left)

    if delta >= 0:
        left, right = _grow(left, right, delta, frame_width)
        rotation_hint = 0
    else:
        top, bottom = _grow(top, bottom, -delta, frame_height)
        rotation_hint = 90

    return Rect(left, top, right, bottom), rotation_hint


def extract_sub_image(image: np.ndarray, rect: Rect) -> np.ndarray:
    """
    Copy the pixels of image inside rect into a new buffer of
    rect.width x rect.height. rect must lie fully inside the image.
    """
    h, w = image.shape[:2]
    x1, y1, x2, y2 = map(int, [rect.left, rect.top, rect.right, rect.bottom])
    pixel_rect = Rect(x1, y1, x2, y2)

    if pixel_rect.is_degenerate():
        raise GeometryError(f"Cannot crop degenerate rect {rect}")
    if not Rect(0, 0, w, h).contains(pixel_rect):
        raise GeometryError(f"Crop rect {rect} is outside the {w}x{h} image")

    return image[y1:y2, x1:x2].copy()


def compose_crop_transform(
    sub_width: int,
    sub_height: int,
    model_width: int,
    model_height: int,
    rotation_hint: int,
    extra_rotation: int,
    maintain_aspect: bool = False,
) -> AffineTransform:
    """
    Transform feeding the extracted region into the second-stage detector.
    The square-expansion hint and the live device rotation are added up.
    """
    rotation = normalize_rotation(rotation_hint + extra_rotation)
    return build_transform(
        sub_width,
        sub_height,
        model_width,
        model_height,
        rotation=rotation,
        maintain_aspect=maintain_aspect,
    )


def render_input(
    image: np.ndarray,
    transform: AffineTransform,
    width: int,
    height: int,
) -> np.ndarray:
    """
    Warp image through transform into a fresh width x height buffer
    (the detector's fixed input size). Uncovered pixels are black.
    """
    return cv2.warpAffine(
        image,
        transform.as_cv2(),
        (int(width), int(height)),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )
