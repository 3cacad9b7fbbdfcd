import argparse
import logging

import cv2

from robovision import DetectorConfig, draw_detections, load_detector
from robovision.visualize import format_label


def main() -> int:
    parser = argparse.ArgumentParser(description="Run person/dog detection on a single image.")
    parser.add_argument("image", help="Path to an input image.")
    parser.add_argument("--topology", default="yolov4-tiny.cfg", help="Darknet .cfg file.")
    parser.add_argument("--weights", default="yolov4-tiny.weights", help="Darknet .weights or .onnx model.")
    parser.add_argument("--classes-file", default="coco.names", help="Class names file (one per line).")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.4, help="IoU threshold for NMS.")
    parser.add_argument("--out", default=None, help="Optional output path to save the visualization.")
    parser.add_argument("--show", action="store_true", help="Show a window with visualized detections.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    detector = load_detector(
        DetectorConfig(
            conf_threshold=args.conf,
            iou_threshold=args.iou,
            topology_path=args.topology,
            weights_path=args.weights,
            classes_path=args.classes_file,
        ),
        root=".",
    )

    img = cv2.imread(args.image)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    detections = detector(img)
    for det in detections:
        print(format_label(det), det.bbox.as_xyxy())

    vis = draw_detections(img, detections)
    if args.out:
        ok = cv2.imwrite(args.out, vis)
        if not ok:
            raise RuntimeError(f"Failed to write output image: {args.out}")

    if args.show:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
