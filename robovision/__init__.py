"""
Real-time person/dog detection on a networked camera stream.

The core (`decode`, `filtering`, `nms`, `postprocess`) turns raw darknet-style
detector output into labeled boxes and depends only on NumPy. Network
execution, capture and drawing live in `backends`, `runtime`, `ingest` and
`visualize` and need OpenCV.
"""

from .types import BoundingBox, Candidate, Detection
from .errors import (
    ClassFileNotFound,
    ClassNotFound,
    ConfigError,
    InferenceError,
    MalformedClassFile,
    ModelLoadError,
    RoboVisionError,
    StreamError,
)
from .metadata import ClassCatalog, load_class_names, resolve_class_id, resolve_whitelist
from .decode import DecodedOutput, DecodedRow, decode_output, decode_row
from .filtering import accept, candidate_mask
from .nms import NMSConfig, box_iou, nms, suppress, suppress_per_class
from .postprocess import DetectionPostprocessor, PostprocessConfig, detect_frame
from .config import DetectorConfig, load_detector_config
from .runtime import FrameDetector, load_detector, find_project_root, resolve_path
from .visualize import draw_detections

__all__ = [
    "BoundingBox",
    "Candidate",
    "Detection",
    "ClassFileNotFound",
    "ClassNotFound",
    "ConfigError",
    "InferenceError",
    "MalformedClassFile",
    "ModelLoadError",
    "RoboVisionError",
    "StreamError",
    "ClassCatalog",
    "load_class_names",
    "resolve_class_id",
    "resolve_whitelist",
    "DecodedOutput",
    "DecodedRow",
    "decode_output",
    "decode_row",
    "accept",
    "candidate_mask",
    "NMSConfig",
    "box_iou",
    "nms",
    "suppress",
    "suppress_per_class",
    "DetectionPostprocessor",
    "PostprocessConfig",
    "detect_frame",
    "DetectorConfig",
    "load_detector_config",
    "FrameDetector",
    "load_detector",
    "find_project_root",
    "resolve_path",
    "draw_detections",
]
