from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .types import Detection

# OpenCV expects BGR
PERSON_COLOR: Tuple[int, int, int] = (0, 255, 0)
OTHER_COLOR: Tuple[int, int, int] = (255, 0, 0)


def color_for_label(label: str) -> Tuple[int, int, int]:
    """Green for people, blue for everything else (dogs)."""

    return PERSON_COLOR if label == "person" else OTHER_COLOR


def format_label(det: Detection) -> str:
    return f"{det.label} {det.confidence * 100.0:.0f}%"


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    box_thickness: int = 2,
    font_scale: float = 0.6,
    font_thickness: int = 2,
    text_offset: int = 10,
) -> np.ndarray:
    """
    Draw bounding boxes + "{label} {confidence%}" text on an OpenCV BGR image and return a copy.

    The text baseline sits `text_offset` pixels above the top-left corner of the box.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()

    for det in detections:
        x1, y1, x2, y2 = det.bbox.as_xyxy()
        color = color_for_label(det.label)
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness, lineType=cv2.LINE_8)
        cv2.putText(
            out,
            format_label(det),
            (x1, y1 - text_offset),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
