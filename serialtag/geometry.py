# Affine transforms between frame space and detector input space

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from serialtag.data_types import Rect
from serialtag.exceptions import GeometryError

logger = logging.getLogger(__name__)

# exact (cos, sin) for the supported rotations, avoids float noise from np.cos
_ROTATIONS: Dict[int, Tuple[float, float]] = {
    0: (1.0, 0.0),
    90: (0.0, 1.0),
    180: (-1.0, 0.0),
    270: (0.0, -1.0),
}

_SINGULAR_EPS = 1e-12


def normalize_rotation(degrees: int) -> int:
    """
    Wrap a rotation into [0, 360). Raises ValueError for non multiples of 90.
    """
    degrees = int(degrees) % 360
    if degrees not in _ROTATIONS:
        raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}")
    return degrees


@dataclass(frozen=True, eq=False)
class AffineTransform:
    """
    2D affine transform stored as a 3x3 homogeneous matrix.
    Points are column vectors (x, y, 1); image y axis points down,
    so positive rotations are clockwise on screen.
    """
    matrix: np.ndarray

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls(np.eye(3))

    @classmethod
    def translation(cls, tx: float, ty: float) -> "AffineTransform":
        m = np.eye(3)
        m[0, 2] = tx
        m[1, 2] = ty
        return cls(m)

    @classmethod
    def scaling(cls, sx: float, sy: float) -> "AffineTransform":
        return cls(np.diag([sx, sy, 1.0]))

    @classmethod
    def rotation(cls, degrees: int) -> "AffineTransform":
        cos, sin = _ROTATIONS[normalize_rotation(degrees)]
        return cls(np.array([
            [cos, -sin, 0.0],
            [sin, cos, 0.0],
            [0.0, 0.0, 1.0],
        ]))

    @property
    def determinant(self) -> float:
        m = self.matrix
        return float(m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0])

    def then(self, other: "AffineTransform") -> "AffineTransform":
        """
        Composition: apply self first, then other.
        """
        return AffineTransform(other.matrix @ self.matrix)

    def invert(self) -> "AffineTransform":
        if abs(self.determinant) < _SINGULAR_EPS:
            raise GeometryError(f"Transform is not invertible (det={self.determinant})")
        return AffineTransform(np.linalg.inv(self.matrix))

    def map_point(self, x: float, y: float) -> Tuple[float, float]:
        px, py, _ = self.matrix @ np.array([x, y, 1.0])
        return float(px), float(py)

    def map_rect(self, rect: Rect) -> Rect:
        """
        Map all four corners and return their axis-aligned bounding rect.
        90/270 degree rotations swap the axis extents, so mapping only
        (left, top) and (right, bottom) is not enough.
        """
        corners = np.array([
            [rect.left, rect.top, 1.0],
            [rect.right, rect.top, 1.0],
            [rect.right, rect.bottom, 1.0],
            [rect.left, rect.bottom, 1.0],
        ])
        mapped = corners @ self.matrix.T
        xs, ys = mapped[:, 0], mapped[:, 1]
        return Rect(
            left=float(xs.min()),
            top=float(ys.min()),
            right=float(xs.max()),
            bottom=float(ys.max()),
        )

    def as_cv2(self) -> np.ndarray:
        """
        2x3 matrix as expected by cv2.warpAffine.
        """
        return self.matrix[:2].copy()


def build_transform(
    src_width: float,
    src_height: float,
    dst_width: float,
    dst_height: float,
    rotation: int = 0,
    maintain_aspect: bool = False,
) -> AffineTransform:
    """
    Transform from source (frame) coordinates into destination (detector
    input) coordinates.

    The source is rotated about its centre first; 90/270 degrees swap the
    effective width and height. It is then scaled to fill the destination:
    with independent x/y factors, or, when maintain_aspect is set, with one
    uniform factor, centred and letterboxed.
    """
    if min(src_width, src_height, dst_width, dst_height) <= 0:
        raise GeometryError(
            f"Cannot build transform for {src_width}x{src_height} -> {dst_width}x{dst_height}"
        )
    rotation = normalize_rotation(rotation)

    transpose = rotation in (90, 270)
    in_width, in_height = (src_height, src_width) if transpose else (src_width, src_height)

    scale_x = dst_width / in_width
    scale_y = dst_height / in_height
    if maintain_aspect:
        scale_x = scale_y = min(scale_x, scale_y)

    return (
        AffineTransform.translation(-src_width / 2.0, -src_height / 2.0)
        .then(AffineTransform.rotation(rotation))
        .then(AffineTransform.scaling(scale_x, scale_y))
        .then(AffineTransform.translation(dst_width / 2.0, dst_height / 2.0))
    )


class TransformCache:
    """
    Holds one forward/inverse transform pair keyed by
    (width, height, rotation). The pair is rebuilt only when the key changes.
    """

    def __init__(self, name: str):
        self.name = name
        self._key: Optional[Tuple[int, int, int]] = None
        self._forward: Optional[AffineTransform] = None
        self._inverse: Optional[AffineTransform] = None
        self.rebuilds = 0

    @property
    def key(self) -> Optional[Tuple[int, int, int]]:
        return self._key

    def get(
        self,
        width: int,
        height: int,
        rotation: int,
        build: Callable[[], AffineTransform],
    ) -> Tuple[AffineTransform, AffineTransform]:
        key = (int(width), int(height), normalize_rotation(rotation))
        if key != self._key:
            logger.debug("Rebuilding %s transform for key %s", self.name, key)
            forward = build()
            # invert before storing so a singular transform leaves the cache untouched
            inverse = forward.invert()
            self._key, self._forward, self._inverse = key, forward, inverse
            self.rebuilds += 1
        return self._forward, self._inverse
