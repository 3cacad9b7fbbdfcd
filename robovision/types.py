from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box in pixel coordinates of the original frame.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class Candidate:
    """
    A decoded row that passed confidence gating and the class whitelist.
    """

    bbox: BoundingBox
    confidence: float
    class_id: int


@dataclass(frozen=True)
class Detection:
    """
    Final per-frame output handed to the renderer.
    """

    label: str
    confidence: float
    bbox: BoundingBox
    class_id: int
