from __future__ import annotations

from typing import AbstractSet, List, Optional

import numpy as np

from .config import DEFAULT_CONF_THRESHOLD
from .decode import DecodedOutput
from .types import BoundingBox, Candidate


def accept(
    bbox: BoundingBox,
    objectness: float,
    class_score: float,
    class_id: int,
    whitelist: AbstractSet[int],
    conf_threshold: float = DEFAULT_CONF_THRESHOLD,
) -> Optional[Candidate]:
    """
    Gate one decoded row. All comparisons are strict: a score exactly at the
    threshold is rejected.
    """

    if not objectness > conf_threshold:
        return None
    if not class_score > conf_threshold:
        return None
    if class_id not in whitelist:
        return None
    return Candidate(bbox=bbox, confidence=float(objectness), class_id=int(class_id))

def candidate_mask(
    decoded: DecodedOutput,
    whitelist: AbstractSet[int],
    conf_threshold: float = DEFAULT_CONF_THRESHOLD,
) -> np.ndarray:
    """Boolean mask over `decoded` rows with the same policy as `accept`."""

    if len(decoded) == 0:
        return np.zeros((0,), dtype=bool)
    allowed = np.isin(decoded.class_ids, np.fromiter(whitelist, dtype=np.int64, count=len(whitelist)))
    return (decoded.objectness > conf_threshold) & (decoded.class_scores > conf_threshold) & allowed

def select_candidates(
    decoded: DecodedOutput,
    whitelist: AbstractSet[int],
    conf_threshold: float = DEFAULT_CONF_THRESHOLD,
) -> List[Candidate]:
    keep = np.flatnonzero(candidate_mask(decoded, whitelist, conf_threshold))
    candidates: List[Candidate] = []
    for i in keep:
        row = decoded.row(int(i))
        candidates.append(Candidate(bbox=row.bbox, confidence=row.objectness, class_id=row.class_id))
    return candidates
