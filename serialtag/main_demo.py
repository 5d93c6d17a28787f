# End-to-end serial tag reading demo script

import argparse
import logging
import threading
from pathlib import Path
from typing import Optional

import cv2

from serialtag.config import LoggingConfig, PipelineConfig
from serialtag.data_types import Frame
from serialtag.detector import YoloDetector
from serialtag.exceptions import InitializationError
from serialtag.orientation import OrientationTracker
from serialtag.overlay import draw_result
from serialtag.pipeline import PipelineOrchestrator

logger = logging.getLogger(__name__)


class LatestResult:
    """
    Display sink: keeps the most recently published result for the UI loop.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    def publish(self, result: str) -> None:
        with self._lock:
            self._value = result

    @property
    def value(self) -> Optional[str]:
        with self._lock:
            return self._value


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(level=config.level.upper(), format=config.format)


def run_demo(config: PipelineConfig, video_source=None, orientation: float = 0.0) -> None:
    """
    End-to-end demo:
      frame -> orchestrator (box detector -> crop -> glyph detector -> serial) -> display
    Frames arriving while a cycle runs are dropped.
    """

    if video_source is None:
        video_source = config.video.source

    try:
        box_detector = YoloDetector(config.box_detector)
        glyph_detector = YoloDetector(config.glyph_detector)
    except InitializationError as e:
        logger.error("Classifier could not be initialized: %s", e)
        raise

    cap = cv2.VideoCapture(video_source)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open video source: {video_source}")

    rotation = OrientationTracker().update(orientation)
    sink = LatestResult()

    with PipelineOrchestrator(box_detector, glyph_detector, sink.publish, config) as orchestrator:
        try:
            while True:
                ret, frame = cap.read()
                if not ret:
                    break

                # the worker gets its own copy, the displayed frame is drawn on
                accepted = orchestrator.submit(Frame.from_array(frame.copy()), rotation)

                status = "busy" if accepted is None else "submitted"
                draw_result(frame, sink.value, status=status)

                cv2.imshow(config.video.window_name, frame)
                key = cv2.waitKey(1) & 0xFF
                if key == 27 or key == ord("q"):  # ESC or q
                    break
        finally:
            cap.release()
            cv2.destroyAllWindows()

    if sink.value is not None:
        logger.info("Last result: %s", sink.value)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Serial tag reader demo")
    parser.add_argument(
        "--video",
        type=str,
        default=None,
        help="Video file path or camera index (e.g. 0 for default webcam)",
    )
    parser.add_argument("--box-model", type=Path, default=None, help="Weights of the tag box detector")
    parser.add_argument("--glyph-model", type=Path, default=None, help="Weights of the glyph detector")
    parser.add_argument("--glyph-labels", type=Path, default=None, help="Labels file for the glyph detector")
    parser.add_argument(
        "--orientation",
        type=float,
        default=0.0,
        help="Device orientation in degrees, snapped to 0/90/180/270",
    )
    parser.add_argument("--min-confidence", type=float, default=None)
    parser.add_argument("--log-level", type=str, default=None)
    args = parser.parse_args(argv)

    cfg = PipelineConfig()
    if args.box_model is not None:
        cfg.box_detector.model_path = args.box_model
    if args.glyph_model is not None:
        cfg.glyph_detector.model_path = args.glyph_model
    if args.glyph_labels is not None:
        cfg.glyph_detector.labels_path = args.glyph_labels
    if args.min_confidence is not None:
        cfg.min_confidence = args.min_confidence
    if args.log_level is not None:
        cfg.logging.level = args.log_level

    configure_logging(cfg.logging)

    if args.video is None:
        video_source = cfg.video.source
    else:
        # If argument is a digit, treat it as camera index; else as path
        if args.video.isdigit():
            video_source = int(args.video)
        else:
            video_source = args.video

    try:
        run_demo(cfg, video_source=video_source, orientation=args.orientation)
    except InitializationError:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
