from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Any, List, Sequence, Tuple

from .config import DEFAULT_CONF_THRESHOLD, DEFAULT_IOU_THRESHOLD
from .decode import decode_output
from .errors import ClassNotFound
from .filtering import select_candidates
from .metadata import ClassCatalog, resolve_whitelist
from .nms import suppress, suppress_per_class
from .types import Candidate, Detection

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostprocessConfig:
    """
    Post-processing settings for darknet-style (N, 5 + K) detector outputs.
    """

    conf_threshold: float = DEFAULT_CONF_THRESHOLD
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
    # Names of the classes to report; everything else is dropped before NMS.
    classes: Tuple[str, ...] = ("person", "dog")
    # If True, one NMS pass over all whitelisted classes together.
    # If False, runs per-class NMS then merges results by confidence.
    class_agnostic_nms: bool = True


def detect_frame(
    raw_tensors: Sequence[Any],
    frame_width: int,
    frame_height: int,
    catalog: ClassCatalog,
    whitelist: AbstractSet[int],
    conf_threshold: float = DEFAULT_CONF_THRESHOLD,
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
    class_agnostic_nms: bool = True,
) -> List[Detection]:
    """
    Turn the raw output tensors of one frame into labeled detections.

    Every row of every tensor is decoded and gated; the accepted candidates are
    pooled (tensor order, then row order) and deduplicated with a single NMS pass.
    Malformed rows and tensors are dropped, never raised.

    Args:
        raw_tensors: one (N, 5 + K) array per network output layer
        frame_width, frame_height: size of the original frame in pixels
        whitelist: class ids to keep; every id must exist in `catalog` (raises ClassNotFound)
    """

    unknown = sorted(i for i in whitelist if not 0 <= i < len(catalog))
    if unknown:
        raise ClassNotFound(f"Whitelisted class ids {unknown} are outside the catalog (size {len(catalog)})")

    candidates: List[Candidate] = []
    for tensor in raw_tensors:
        decoded = decode_output(tensor, frame_width, frame_height)
        candidates.extend(select_candidates(decoded, whitelist, conf_threshold))

    if not candidates:
        return []

    if class_agnostic_nms:
        keep = suppress(candidates, conf_threshold, iou_threshold)
    else:
        keep = suppress_per_class(candidates, conf_threshold, iou_threshold)
    LOGGER.debug("Frame %dx%d: %d candidates, %d kept", frame_width, frame_height, len(candidates), len(keep))

    detections: List[Detection] = []
    for i in keep:
        cand = candidates[i]
        detections.append(
            Detection(
                label=catalog[cand.class_id],
                confidence=cand.confidence,
                bbox=cand.bbox,
                class_id=cand.class_id,
            )
        )
    return detections


class DetectionPostprocessor:
    """
    Long-lived form of `detect_frame`: whitelist names are resolved once, at
    construction, so a missing class fails before the first frame.
    """

    def __init__(self, catalog: ClassCatalog, cfg: PostprocessConfig = PostprocessConfig()):
        self.cfg = cfg
        self.catalog = catalog
        self.whitelist = resolve_whitelist(catalog, cfg.classes)

    def process(self, outputs: Sequence[Any], frame_width: int, frame_height: int) -> List[Detection]:
        return detect_frame(
            outputs,
            frame_width,
            frame_height,
            self.catalog,
            self.whitelist,
            conf_threshold=self.cfg.conf_threshold,
            iou_threshold=self.cfg.iou_threshold,
            class_agnostic_nms=self.cfg.class_agnostic_nms,
        )
