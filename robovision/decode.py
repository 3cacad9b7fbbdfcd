from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from .types import BoundingBox

LOGGER = logging.getLogger(__name__)

# Layout of one detection-grid row: [cx, cy, w, h, objectness, score_1 ... score_K]
OBJECTNESS_INDEX = 4
FIRST_CLASS_INDEX = 5

_PIXEL_MIN = float(np.iinfo(np.int32).min)
_PIXEL_MAX = float(np.iinfo(np.int32).max)


@dataclass(frozen=True)
class DecodedRow:
    bbox: BoundingBox
    objectness: float
    class_id: int
    class_score: float


@dataclass(frozen=True)
class DecodedOutput:
    """
    Column-wise decode of every row of one output tensor.

    boxes: (N, 4) int64 as x, y, width, height in original-frame pixels
    objectness, class_scores: (N,) float64
    class_ids: (N,) int64, -1 when no class scored above zero
    """

    boxes: np.ndarray
    objectness: np.ndarray
    class_ids: np.ndarray
    class_scores: np.ndarray

    def __len__(self) -> int:
        return int(self.boxes.shape[0])

    def row(self, i: int) -> DecodedRow:
        x, y, w, h = (int(v) for v in self.boxes[i])
        return DecodedRow(
            bbox=BoundingBox(x=x, y=y, width=w, height=h),
            objectness=float(self.objectness[i]),
            class_id=int(self.class_ids[i]),
            class_score=float(self.class_scores[i]),
        )

    @classmethod
    def empty(cls) -> "DecodedOutput":
        return cls(
            boxes=np.zeros((0, 4), dtype=np.int64),
            objectness=np.zeros((0,), dtype=np.float64),
            class_ids=np.zeros((0,), dtype=np.int64),
            class_scores=np.zeros((0,), dtype=np.float64),
        )


def _as_rows(tensor: Any) -> Optional[np.ndarray]:
    try:
        p = np.asarray(tensor, dtype=np.float64)
    except (TypeError, ValueError):
        return None

    if p.ndim == 3 and p.shape[0] == 1:
        p = p[0]
    if p.ndim == 1:
        p = p[None, :]
    if p.ndim != 2:
        return None
    return p


def decode_output(tensor: Any, frame_width: int, frame_height: int) -> DecodedOutput:
    """
    Decode a (N, 5 + K) detection-grid tensor into pixel boxes and best-class scores.

    Box geometry is given as fractions of the network input, so it is scaled by the
    *original* frame size. Coordinates are truncated toward zero, never rounded.
    Rows holding any non-finite value, and rows shorter than five values, decode to
    objectness 0 / class -1 so that the candidate filter drops them.
    """

    p = _as_rows(tensor)
    if p is None:
        LOGGER.warning("Skipping output tensor with unsupported shape %s", getattr(tensor, "shape", None))
        return DecodedOutput.empty()

    n, cols = p.shape
    if n == 0:
        return DecodedOutput.empty()
    if cols <= OBJECTNESS_INDEX:
        LOGGER.warning("Skipping output tensor with %d columns per row", cols)
        return DecodedOutput(
            boxes=np.zeros((n, 4), dtype=np.int64),
            objectness=np.zeros((n,), dtype=np.float64),
            class_ids=np.full((n,), -1, dtype=np.int64),
            class_scores=np.zeros((n,), dtype=np.float64),
        )

    finite_mask = np.isfinite(p)
    valid = finite_mask.all(axis=1)
    clean = np.where(finite_mask, p, 0.0)
    clean[~valid] = 0.0

    objectness = clean[:, OBJECTNESS_INDEX].copy()

    scores = clean[:, FIRST_CLASS_INDEX:]
    if scores.shape[1] > 0:
        # argmax returns the first maximum, same as a left-to-right scan with strict `>`
        class_ids = np.argmax(scores, axis=1).astype(np.int64)
        class_scores = scores[np.arange(n), class_ids]
        # the scan starts from score 0 / id -1, so non-positive maxima never win
        scored = class_scores > 0.0
        class_ids = np.where(scored, class_ids, -1)
        class_scores = np.where(scored, class_scores, 0.0)
    else:
        class_ids = np.full((n,), -1, dtype=np.int64)
        class_scores = np.zeros((n,), dtype=np.float64)

    scale = np.array([frame_width, frame_height, frame_width, frame_height], dtype=np.float64)
    cx, cy, w, h = (clean[:, 0:4] * scale).T
    x = np.trunc(cx - w / 2)
    y = np.trunc(cy - h / 2)
    boxes = np.stack([x, y, np.trunc(w), np.trunc(h)], axis=1)
    boxes = np.clip(boxes, _PIXEL_MIN, _PIXEL_MAX).astype(np.int64)

    return DecodedOutput(
        boxes=boxes,
        objectness=objectness,
        class_ids=class_ids,
        class_scores=class_scores,
    )


def decode_row(row: Any, frame_width: int, frame_height: int) -> DecodedRow:
    try:
        single = np.asarray(row, dtype=np.float64).reshape(1, -1)
    except (TypeError, ValueError):
        single = np.zeros((1, 0), dtype=np.float64)
    return decode_output(single, frame_width, frame_height).row(0)
