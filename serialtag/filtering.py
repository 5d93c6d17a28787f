from typing import Iterable, List

from serialtag.data_types import Detection


def filter_detections(detections: Iterable[Detection], min_confidence: float) -> List[Detection]:
    """
    Keep detections with score >= min_confidence, preserving input order.
    """
    return [det for det in detections if det.score >= min_confidence]
