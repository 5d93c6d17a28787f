import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Union

import numpy as np
import torch

from ultralytics import YOLO

from serialtag.data_types import Detection, Rect
from serialtag.config import DetectorConfig
from serialtag.exceptions import InitializationError

logger = logging.getLogger(__name__)


class BaseDetector(ABC):
    """
    Abstract interface for both detector stages (tag box and glyphs).
    """

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[Detection]:
        """
        Run detection on a single image already rendered at the
        detector's input size.
        Must return detections ordered by descending score.
        """
        raise NotImplementedError


class StaticDetector(BaseDetector):
    """
    Returns the same detections for every image.
    Lets you build and test the pipeline without model weights.
    """

    def __init__(self, detections: Iterable[Detection] = ()):
        self.detections = sorted(detections, key=lambda d: d.score, reverse=True)
        self.calls = 0

    def detect(self, image: np.ndarray) -> List[Detection]:
        self.calls += 1
        return list(self.detections)


def load_labels(labels_path: Path) -> Dict[int, str]:
    """
    Read a labels file with one label per line; line number = class id.
    """
    try:
        lines = Path(labels_path).read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise InitializationError(f"Could not read labels file {labels_path}: {e}") from e

    labels = [line.strip() for line in lines if line.strip()]
    if not labels:
        raise InitializationError(f"Labels file {labels_path} is empty")
    return dict(enumerate(labels))


class YoloDetector(BaseDetector):
    """
    YOLOv8-based detector using the ultralytics package.

    Behavior:
      - Loads trained weights from DetectorConfig.model_path. There is no
        pretrained fallback: a COCO model cannot find tags or glyphs, so
        missing or unreadable weights raise InitializationError.
      - Class names come from the model, or from DetectorConfig.labels_path
        when given.
    """

    def __init__(self, config: DetectorConfig):
        self.config = config
        self.device = config.device or ("cuda" if torch.cuda.is_available() else "cpu")

        weights_path = Path(self.config.model_path)
        if not weights_path.is_file():
            raise InitializationError(f"Model weights not found: {weights_path}")

        try:
            self.model = YOLO(str(weights_path))
        except Exception as e:
            raise InitializationError(f"Could not load model {weights_path}: {e}") from e

        # model.names is usually dict[int, str]
        if self.config.labels_path is not None:
            self.class_names: Union[Dict[int, str], List[str]] = load_labels(self.config.labels_path)
        else:
            self.class_names = self.model.names

        logger.info(
            "Loaded %s on %s (%d classes, input %dx%d)",
            weights_path.name,
            self.device,
            len(self.class_names),
            self.config.input_width,
            self.config.input_height,
        )

    def detect(self, image: np.ndarray) -> List[Detection]:
        """
        Run YOLO detection on a single BGR image.
        Box coordinates are in the image's pixel space.
        """
        results = self.model(
            image,
            conf=self.config.confidence_threshold,
            iou=self.config.iou_threshold,
            imgsz=(self.config.input_height, self.config.input_width),
            max_det=self.config.max_detections,
            device=self.device,
            verbose=False,
        )[0]

        detections: List[Detection] = []

        if results.boxes is None:
            return detections

        # Each box in results.boxes has xyxy, conf, cls
        for box in results.boxes:
            score = float(box.conf[0].item())
            class_id = int(box.cls[0].item())
            x1, y1, x2, y2 = box.xyxy[0].tolist()

            detections.append(
                Detection(
                    box=Rect(left=x1, top=y1, right=x2, bottom=y2),
                    score=score,
                    label=str(self.class_names[class_id]),
                )
            )

        detections.sort(key=lambda d: d.score, reverse=True)
        return detections
