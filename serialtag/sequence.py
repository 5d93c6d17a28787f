# Ordering glyph detections into the fixed serial layout

import logging
from typing import List, Optional, Sequence

from serialtag.config import ReconstructionConfig
from serialtag.data_types import Detection, ReconstructedSequence

logger = logging.getLogger(__name__)


def _row_key(det: Detection):
    # taller and lower glyphs sort later, so the small leading pair comes first
    return (det.box.center_y + 2.0 * det.box.height, det.box.center_x, det.box.center_y, det.label, det.score)


def _column_key(det: Detection):
    return (det.box.center_x, det.box.center_y, det.box.height, det.label, det.score)


class SequenceReconstructor:
    """
    Rebuilds the serial from unordered glyph detections using the known
    tag layout: two small leading glyphs above seven main glyphs.

    Steps:
      - fewer than min_detections glyphs -> nothing recognized (None)
      - sort by center_y + 2 * height; the first elements are candidates
        for the small leading glyphs
      - decide how many leading glyphs are present (0, 1 or 2) from the
        "position" center_y + center_x of the first three candidates
      - read the rest left to right into the main slots, leaving a
        placeholder wherever a glyph is much shorter than the first main one

    Overlapping or duplicate boxes are not merged.
    """

    def __init__(self, config: Optional[ReconstructionConfig] = None):
        self.config = config or ReconstructionConfig()

        # the leading-slot check compares the first three glyphs and takes at most two
        if self.config.min_detections < 3:
            raise ValueError(f"min_detections must be at least 3, got {self.config.min_detections}")
        if self.config.small_slots != 2:
            raise ValueError(f"small_slots must be 2, got {self.config.small_slots}")

    def reconstruct(self, detections: Sequence[Detection]) -> Optional[ReconstructedSequence]:
        cfg = self.config

        if len(detections) < cfg.min_detections:
            logger.info("Only %d glyphs detected, need %d", len(detections), cfg.min_detections)
            return None

        remaining: List[Detection] = sorted(detections, key=_row_key)

        small = self._take_small(remaining)
        remaining.sort(key=_column_key)
        main = self._fill_main(remaining)

        sequence = ReconstructedSequence(small=tuple(small), main=tuple(main))
        logger.debug("Reconstructed %s from %d glyphs", sequence.text, len(detections))
        return sequence

    def _take_small(self, remaining: List[Detection]) -> List[str]:
        """
        Pop the leading small glyphs off remaining (already row-sorted)
        and return their labels, padded with placeholders.
        """
        cfg = self.config
        num_height = remaining[0].box.height
        pos = [d.box.center_y + d.box.center_x for d in remaining[:3]]

        if abs(pos[0] - pos[1]) > num_height:
            # one small glyph, the second one was not detected
            taken = [remaining.pop(0)]
        elif abs(pos[0] - pos[2]) > num_height:
            taken = sorted([remaining.pop(0), remaining.pop(0)], key=_column_key)
        else:
            taken = []

        labels = [d.label for d in taken]
        return labels + [cfg.placeholder] * (cfg.small_slots - len(labels))

    def _fill_main(self, remaining: List[Detection]) -> List[str]:
        cfg = self.config
        reference_height: Optional[float] = None
        filled = 0
        slots: List[str] = []

        for _ in range(cfg.main_slots):
            if not remaining:
                slots.append(cfg.placeholder)
                continue

            candidate = remaining[0]
            if (
                reference_height is not None
                and candidate.box.height < cfg.small_height_ratio * reference_height
                and filled < cfg.max_deferral_fill
            ):
                # small glyph in the main row: leave this slot empty, keep the glyph
                slots.append(cfg.placeholder)
                continue

            if reference_height is None:
                reference_height = candidate.box.height
            slots.append(remaining.pop(0).label)
            filled += 1

        return slots
