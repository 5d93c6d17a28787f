# Single-flight, per-frame two-stage recognition cycle

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

from serialtag.config import PipelineConfig
from serialtag.data_types import NOTHING_RECOGNIZED, CycleState, Frame
from serialtag.detector import BaseDetector
from serialtag.exceptions import GeometryError
from serialtag.filtering import filter_detections
from serialtag.geometry import TransformCache, build_transform, normalize_rotation
from serialtag.region import compose_crop_transform, expand_to_square, extract_sub_image, render_input
from serialtag.sequence import SequenceReconstructor

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Runs one recognition cycle per accepted frame on a single background
    worker:

      frame -> box detector -> best tag box -> square crop
            -> glyph detector -> filter -> reconstruct -> publish

    A frame submitted while a cycle is running is dropped. The publish
    callback is called exactly once per completed cycle, with either the
    reconstructed serial or NOTHING_RECOGNIZED.
    """

    def __init__(
        self,
        box_detector: BaseDetector,
        glyph_detector: BaseDetector,
        publish: Callable[[str], None],
        config: Optional[PipelineConfig] = None,
        executor: Optional[Executor] = None,
    ):
        self.box_detector = box_detector
        self.glyph_detector = glyph_detector
        self.publish = publish
        self.config = config or PipelineConfig()

        self._reconstructor = SequenceReconstructor(self.config.reconstruction)
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="inference")

        self._state = CycleState.IDLE
        self._state_lock = threading.Lock()

        self._frame_transforms = TransformCache("frame")
        self._crop_transforms = TransformCache("crop")

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def frame_transforms(self) -> TransformCache:
        return self._frame_transforms

    @property
    def crop_transforms(self) -> TransformCache:
        return self._crop_transforms

    def submit(self, frame: Frame, live_rotation: int = 0) -> Optional["Future[str]"]:
        """
        Start a cycle for frame unless one is already running.
        Returns the cycle's future, or None when the frame was dropped.
        """
        live_rotation = normalize_rotation(live_rotation)

        with self._state_lock:
            if self._state is CycleState.BUSY:
                logger.debug("Cycle in progress, dropping frame")
                return None
            self._state = CycleState.BUSY

        try:
            return self._executor.submit(self._run_cycle, frame, live_rotation)
        except RuntimeError:
            # executor already shut down
            self._set_idle()
            raise

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "PipelineOrchestrator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _set_idle(self) -> None:
        with self._state_lock:
            self._state = CycleState.IDLE

    def _run_cycle(self, frame: Frame, live_rotation: int) -> str:
        try:
            result = self._process(frame, live_rotation)
            self.publish(result)
            return result
        except Exception:
            logger.exception("Recognition cycle failed")
            raise
        finally:
            self._set_idle()

    def _process(self, frame: Frame, live_rotation: int) -> str:
        cfg = self.config

        # 1) Tag box detection on the whole frame
        box_cfg = cfg.box_detector
        box_rotation = normalize_rotation(cfg.box_rotation_degrees)
        frame_to_input, input_to_frame = self._frame_transforms.get(
            frame.width,
            frame.height,
            box_rotation,
            lambda: build_transform(
                frame.width,
                frame.height,
                box_cfg.input_width,
                box_cfg.input_height,
                rotation=box_rotation,
                maintain_aspect=cfg.maintain_aspect,
            ),
        )
        box_input = render_input(frame.pixels, frame_to_input, box_cfg.input_width, box_cfg.input_height)
        boxes = filter_detections(self.box_detector.detect(box_input), cfg.min_confidence)

        if not boxes:
            logger.info("No tag found")
            return NOTHING_RECOGNIZED

        best = boxes[0]
        tag = best.with_box(input_to_frame.map_rect(best.box))
        logger.debug("Tag %s (%.2f) at %s", tag.label, tag.score, tag.box)

        # 2) Square crop around the tag
        try:
            square, rotation_hint = expand_to_square(tag.box, frame.width, frame.height)
        except GeometryError as e:
            logger.warning("Rejected tag box: %s", e)
            return NOTHING_RECOGNIZED

        tag_image = extract_sub_image(frame.pixels, square)
        sub_height, sub_width = tag_image.shape[:2]

        # 3) Glyph detection on the crop
        glyph_cfg = cfg.glyph_detector
        extra_rotation = live_rotation + cfg.sensor_rotation_offset
        crop_rotation = normalize_rotation(rotation_hint + extra_rotation)
        crop_to_input, _ = self._crop_transforms.get(
            sub_width,
            sub_height,
            crop_rotation,
            lambda: compose_crop_transform(
                sub_width,
                sub_height,
                glyph_cfg.input_width,
                glyph_cfg.input_height,
                rotation_hint,
                extra_rotation,
                maintain_aspect=cfg.maintain_aspect,
            ),
        )
        glyph_input = render_input(tag_image, crop_to_input, glyph_cfg.input_width, glyph_cfg.input_height)
        glyphs = filter_detections(self.glyph_detector.detect(glyph_input), cfg.min_confidence)

        # 4) Glyphs -> serial
        sequence = self._reconstructor.reconstruct(glyphs)
        if sequence is None:
            return NOTHING_RECOGNIZED

        logger.info("Recognized %s", sequence.text)
        return sequence.text
