import unittest

import numpy as np

from robovision.nms import NMSConfig, box_iou, nms, suppress, suppress_per_class
from robovision.types import BoundingBox, Candidate


def _cand(x: int, y: int, w: int, h: int, conf: float, class_id: int = 0) -> Candidate:
    return Candidate(bbox=BoundingBox(x, y, w, h), confidence=conf, class_id=class_id)


class TestBoxIou(unittest.TestCase):
    def test_identical_and_disjoint(self) -> None:
        a = BoundingBox(0, 0, 10, 10)
        self.assertEqual(box_iou(a, a), 1.0)
        self.assertEqual(box_iou(a, BoundingBox(20, 20, 5, 5)), 0.0)

    def test_touching_edges_do_not_overlap(self) -> None:
        self.assertEqual(box_iou(BoundingBox(0, 0, 10, 10), BoundingBox(10, 0, 10, 10)), 0.0)

    def test_zero_area(self) -> None:
        self.assertEqual(box_iou(BoundingBox(0, 0, 0, 0), BoundingBox(0, 0, 0, 0)), 0.0)


class TestSuppress(unittest.TestCase):
    def test_overlapping_keeps_higher_confidence(self) -> None:
        cands = [_cand(100, 100, 200, 200, 0.6), _cand(125, 100, 200, 200, 0.9)]
        self.assertGreater(box_iou(cands[0].bbox, cands[1].bbox), 0.4)
        self.assertEqual(suppress(cands, 0.5, 0.4), [1])

    def test_low_overlap_keeps_both_in_pick_order(self) -> None:
        cands = [_cand(0, 0, 10, 10, 0.6), _cand(8, 8, 10, 10, 0.9)]
        self.assertEqual(suppress(cands, 0.5, 0.4), [1, 0])

    def test_iou_equal_to_threshold_is_kept(self) -> None:
        cands = [_cand(0, 0, 10, 10, 0.9), _cand(0, 0, 10, 4, 0.8)]
        self.assertEqual(box_iou(cands[0].bbox, cands[1].bbox), 0.4)
        self.assertEqual(suppress(cands, 0.5, 0.4), [0, 1])

    def test_equal_confidence_prefers_lower_index(self) -> None:
        cands = [_cand(0, 0, 10, 10, 0.7), _cand(1, 1, 10, 10, 0.7), _cand(50, 50, 10, 10, 0.7)]
        self.assertEqual(suppress(cands, 0.5, 0.4), [0, 2])

    def test_ignores_confidence_at_or_below_threshold(self) -> None:
        cands = [_cand(0, 0, 10, 10, 0.5), _cand(50, 50, 10, 10, 0.51)]
        self.assertEqual(suppress(cands, 0.5, 0.4), [1])

    def test_cross_class_suppression(self) -> None:
        cands = [_cand(0, 0, 10, 10, 0.9, class_id=0), _cand(0, 0, 10, 10, 0.8, class_id=16)]
        self.assertEqual(suppress(cands, 0.5, 0.4), [0])
        self.assertEqual(suppress_per_class(cands, 0.5, 0.4), [0, 1])

    def test_per_class_merges_by_confidence(self) -> None:
        cands = [
            _cand(0, 0, 10, 10, 0.7, class_id=16),
            _cand(1, 0, 10, 10, 0.6, class_id=16),
            _cand(0, 0, 10, 10, 0.95, class_id=0),
        ]
        self.assertEqual(suppress_per_class(cands, 0.5, 0.4), [2, 0])

    def test_idempotent(self) -> None:
        rng = np.random.default_rng(5)
        cands = [
            _cand(int(x), int(y), int(w), int(h), float(c))
            for x, y, w, h, c in zip(
                rng.integers(0, 300, 60),
                rng.integers(0, 300, 60),
                rng.integers(10, 120, 60),
                rng.integers(10, 120, 60),
                rng.uniform(0.51, 1.0, 60),
            )
        ]
        first = suppress(cands, 0.5, 0.4)
        survivors = [cands[i] for i in first]
        second = suppress(survivors, 0.5, 0.4)
        self.assertEqual(sorted(second), list(range(len(survivors))))

    def test_empty(self) -> None:
        self.assertEqual(suppress([], 0.5, 0.4), [])


class TestNmsArray(unittest.TestCase):
    def test_max_detections_cap(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [20, 20, 30, 30], [40, 40, 50, 50]], dtype=np.float32)
        scores = np.array([0.5, 0.9, 0.7], dtype=np.float32)
        keep = nms(boxes, scores, NMSConfig(iou_threshold=0.4, max_detections=2))
        self.assertEqual(keep.tolist(), [1, 2])

    def test_empty_boxes(self) -> None:
        keep = nms(np.zeros((0, 4)), np.zeros((0,)), NMSConfig())
        self.assertEqual(keep.shape, (0,))


if __name__ == "__main__":
    unittest.main()
