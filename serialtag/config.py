# all configurations in one place

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
MODELS_DIR = PROJECT_ROOT / "models"


@dataclass
class VideoConfig:
    source: Union[int, str] = 0  # 0 for webcam, or path to video file
    window_name: str = "Serial Tag Reader"


@dataclass
class DetectorConfig:
    model_path: Path = MODELS_DIR / "box.pt"
    labels_path: Optional[Path] = None  # one label per line, overrides the model's names
    input_width: int = 360
    input_height: int = 640
    confidence_threshold: float = 0.01  # raw cut inside the model, the pipeline filters again
    iou_threshold: float = 0.7
    max_detections: int = 10
    device: Optional[str] = None  # None -> "cuda" if available, else "cpu"


def _glyph_detector_config() -> DetectorConfig:
    return DetectorConfig(
        model_path=MODELS_DIR / "numbers.pt",
        input_width=600,
        input_height=600,
        max_detections=20,
    )


@dataclass
class ReconstructionConfig:
    # a glyph shorter than this fraction of the first main glyph counts as a small one
    small_height_ratio: float = 0.75
    # small glyphs in the main row are only deferred while fewer main slots are filled
    max_deferral_fill: int = 6
    min_detections: int = 3  # at least 3
    small_slots: int = 2  # fixed by the tag layout
    main_slots: int = 7
    placeholder: str = "-"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class PipelineConfig:
    box_detector: DetectorConfig = field(default_factory=DetectorConfig)
    glyph_detector: DetectorConfig = field(default_factory=_glyph_detector_config)
    reconstruction: ReconstructionConfig = field(default_factory=ReconstructionConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    min_confidence: float = 0.4
    maintain_aspect: bool = False
    box_rotation_degrees: int = 0
    sensor_rotation_offset: int = 90  # portrait camera sensor
