from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import cv2

from .errors import StreamError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureInfo:
    fps: Optional[float]
    width: Optional[int]
    height: Optional[int]


def open_capture(source: Union[str, int]) -> cv2.VideoCapture:
    """
    Open a stream URL (e.g. an MJPEG camera endpoint), a video file, or a webcam index.

    Strings made only of digits are treated as webcam indices.
    """

    if isinstance(source, str) and source.strip().isdigit():
        source = int(source.strip())
    if isinstance(source, str) and not source.strip():
        raise ValueError("Video source must not be empty.")

    LOGGER.info("Connecting to stream: %s", source)
    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        raise StreamError(f"Failed to open video source: {source}")
    return cap


def get_capture_info(cap: cv2.VideoCapture) -> CaptureInfo:
    fps = cap.get(cv2.CAP_PROP_FPS)
    if fps is None or fps <= 0:
        fps_val = None
    else:
        fps_val = float(fps)

    w = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
    h = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
    w_val = int(w) if w and w > 0 else None
    h_val = int(h) if h and h > 0 else None

    return CaptureInfo(fps=fps_val, width=w_val, height=h_val)
