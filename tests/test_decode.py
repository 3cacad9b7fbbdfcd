import unittest

import numpy as np

from robovision.decode import decode_output, decode_row
from robovision.types import BoundingBox


class TestDecodeRow(unittest.TestCase):
    def test_known_rectangle(self) -> None:
        row = np.array([0.5, 0.5, 0.2, 0.2, 0.9, 0.1, 0.8, 0.0], dtype=np.float32)
        out = decode_row(row, 416, 416)
        self.assertEqual(out.bbox, BoundingBox(x=166, y=166, width=83, height=83))
        self.assertAlmostEqual(out.objectness, 0.9, places=6)
        self.assertEqual(out.class_id, 1)
        self.assertAlmostEqual(out.class_score, 0.8, places=6)

    def test_scales_by_original_frame_size(self) -> None:
        out = decode_row([0.5, 0.5, 0.25, 0.25, 0.9, 0.9], 800, 600)
        self.assertEqual(out.bbox, BoundingBox(x=300, y=225, width=200, height=150))

    def test_truncates_toward_zero(self) -> None:
        # cx = 4, w = 13 -> left edge -2.5, truncated (not floored) to -2
        out = decode_row([0.0625, 0.0625, 0.203125, 0.203125, 0.9, 0.9], 64, 64)
        self.assertEqual(out.bbox, BoundingBox(x=-2, y=-2, width=13, height=13))

    def test_class_tie_goes_to_lowest_index(self) -> None:
        out = decode_row([0.5, 0.5, 0.1, 0.1, 0.9, 0.7, 0.7, 0.2], 100, 100)
        self.assertEqual(out.class_id, 0)
        self.assertAlmostEqual(out.class_score, 0.7)

    def test_non_positive_scores_have_no_class(self) -> None:
        out = decode_row([0.5, 0.5, 0.1, 0.1, 0.9, 0.0, -0.5, 0.0], 100, 100)
        self.assertEqual(out.class_id, -1)
        self.assertEqual(out.class_score, 0.0)

    def test_non_finite_row_scores_zero(self) -> None:
        for bad in (float("nan"), float("inf"), float("-inf")):
            out = decode_row([0.5, bad, 0.1, 0.1, 0.99, 0.99], 100, 100)
            self.assertEqual(out.objectness, 0.0)
            self.assertEqual(out.class_score, 0.0)
            self.assertEqual(out.class_id, -1)
            self.assertEqual(out.bbox, BoundingBox(0, 0, 0, 0))

    def test_short_row_does_not_raise(self) -> None:
        out = decode_row([0.5, 0.5], 100, 100)
        self.assertEqual(out.objectness, 0.0)
        self.assertEqual(out.class_id, -1)

    def test_unconvertible_row_does_not_raise(self) -> None:
        out = decode_row(["a", "b"], 100, 100)
        self.assertEqual(out.class_id, -1)


class TestDecodeOutput(unittest.TestCase):
    def test_matches_row_by_row_decode(self) -> None:
        rng = np.random.default_rng(7)
        tensor = rng.random((64, 5 + 6)).astype(np.float32)
        tensor[3, 2] = np.nan
        decoded = decode_output(tensor, 640, 480)
        self.assertEqual(len(decoded), 64)
        for i in range(tensor.shape[0]):
            self.assertEqual(decoded.row(i), decode_row(tensor[i], 640, 480))

    def test_squeezes_batch_axis(self) -> None:
        tensor = np.array([[[0.5, 0.5, 0.2, 0.2, 0.9, 0.8]]], dtype=np.float32)
        decoded = decode_output(tensor, 416, 416)
        self.assertEqual(len(decoded), 1)
        self.assertEqual(decoded.row(0).bbox, BoundingBox(166, 166, 83, 83))

    def test_unsupported_shapes_decode_to_nothing(self) -> None:
        self.assertEqual(len(decode_output(np.zeros((2, 2, 3, 6)), 10, 10)), 0)
        self.assertEqual(len(decode_output([[1, 2, 3], [4]], 10, 10)), 0)

    def test_empty_tensor(self) -> None:
        self.assertEqual(len(decode_output(np.zeros((0, 85), dtype=np.float32), 10, 10)), 0)

    def test_objectness_only_rows_have_no_class(self) -> None:
        decoded = decode_output(np.array([[0.5, 0.5, 0.2, 0.2, 0.9]]), 10, 10)
        self.assertEqual(decoded.row(0).class_id, -1)


if __name__ == "__main__":
    unittest.main()
