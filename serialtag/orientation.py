# Snapping raw orientation sensor readings to display rotations

from typing import Tuple

# (start, end, rotation); ranges are half-open, the gaps between them are dead zones
_BUCKETS: Tuple[Tuple[int, int, int], ...] = (
    (60, 120, 90),
    (150, 210, 180),
    (240, 300, 270),
)


class OrientationTracker:
    """
    Converts raw device orientation readings (0-359 degrees) into one of
    0/90/180/270. Readings inside the dead zones between buckets keep the
    last snapped value so the rotation does not flicker near a boundary.
    """

    def __init__(self, initial: int = 0):
        self.current = initial

    def update(self, raw_degrees: float) -> int:
        raw = float(raw_degrees) % 360.0

        if raw >= 330 or raw < 30:
            self.current = 0
        else:
            for start, end, rotation in _BUCKETS:
                if start <= raw < end:
                    self.current = rotation
                    break

        return self.current
