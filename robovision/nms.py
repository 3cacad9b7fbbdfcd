from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .config import DEFAULT_IOU_THRESHOLD
from .types import BoundingBox, Candidate


@dataclass
class NMSConfig:
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
    # Scores not strictly above this are ignored; None keeps everything.
    score_threshold: Optional[float] = None
    # None means no cap.
    max_detections: Optional[int] = None


def box_iou(a: BoundingBox, b: BoundingBox) -> float:
    ax1, ay1, ax2, ay2 = a.as_xyxy()
    bx1, by1, bx2, by2 = b.as_xyxy()
    w = max(0, min(ax2, bx2) - max(ax1, bx1))
    h = max(0, min(ay2, by2) - max(ay1, by1))
    inter = w * h
    union = a.area + b.area - inter
    if union <= 0:
        return 0.0
    return inter / union


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes in pick order (score descending, equal scores
    in original index order).
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    boxes = boxes.astype(np.float64, copy=False)
    scores = np.asarray(scores, dtype=np.float64)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = np.maximum(0.0, x2 - x1) * np.maximum(0.0, y2 - y1)

    order = np.argsort(-scores, kind="stable")
    if cfg.score_threshold is not None:
        order = order[scores[order] > cfg.score_threshold]
    keep = []

    while order.size > 0 and (cfg.max_detections is None or len(keep) < cfg.max_detections):
        i = order[0]
        keep.append(i)

        xx1 = np.maximum(x1[i], x1[order[1:]])
        yy1 = np.maximum(y1[i], y1[order[1:]])
        xx2 = np.minimum(x2[i], x2[order[1:]])
        yy2 = np.minimum(y2[i], y2[order[1:]])

        w = np.maximum(0.0, xx2 - xx1)
        h = np.maximum(0.0, yy2 - yy1)
        inter = w * h
        union = areas[i] + areas[order[1:]] - inter
        iou = np.where(union > 0, inter / np.maximum(union, 1e-12), 0.0)

        inds = np.where(iou <= cfg.iou_threshold)[0]
        order = order[inds + 1]

    return np.array(keep, dtype=np.int64)


def suppress(
    candidates: Sequence[Candidate],
    conf_threshold: float,
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> List[int]:
    """
    Class-agnostic NMS over candidates; returns indices into `candidates` in pick order.
    """

    if not candidates:
        return []
    boxes = np.array([c.bbox.as_xyxy() for c in candidates], dtype=np.float64)
    scores = np.array([c.confidence for c in candidates], dtype=np.float64)
    keep = nms(boxes, scores, NMSConfig(iou_threshold=iou_threshold, score_threshold=conf_threshold))
    return [int(i) for i in keep]


def suppress_per_class(
    candidates: Sequence[Candidate],
    conf_threshold: float,
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> List[int]:
    """
    Run `suppress` separately for each class id, then merge the survivors by
    confidence (equal confidences keep original index order).
    """

    kept: List[int] = []
    for cls in sorted({c.class_id for c in candidates}):
        idx = [i for i, c in enumerate(candidates) if c.class_id == cls]
        local = suppress([candidates[i] for i in idx], conf_threshold, iou_threshold)
        kept.extend(idx[j] for j in local)

    kept.sort(key=lambda i: (-candidates[i].confidence, i))
    return kept
