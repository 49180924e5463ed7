#!/usr/bin/env python3
"""
Evaluate field detection accuracy on the sample forms.

This script:
1. Loads the sample forms and their ground truth (see generate_sample_forms.py)
2. Runs the field detector on each form
3. Matches detections to ground truth fields by rectangle overlap
4. Computes precision, recall and F1 and writes a JSON report
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from fieldscan.core.logging import configure_logging
from fieldscan.models import FieldKind, FieldRecord, Rect
from fieldscan.services.detection.detector import field_detector
from fieldscan.services.ocr import ocr_engine

# Minimum intersection over union for a detection to count as a match
IOU_THRESHOLD = 0.2

# Box-like kinds are interchangeable when matching
COMPATIBLE_KINDS = {
    "text": {FieldKind.TEXT},
    "checkbox": {FieldKind.CHECKBOX, FieldKind.RADIO},
    "radio": {FieldKind.CHECKBOX, FieldKind.RADIO},
}


def iou(a: Rect, b: Rect) -> float:
    """Intersection over union of two rectangles."""
    inter_x = max(0.0, min(a.x1, b.x1) - max(a.x0, b.x0))
    inter_y = max(0.0, min(a.y1, b.y1) - max(a.y0, b.y0))
    inter_area = inter_x * inter_y
    union_area = a.width * a.height + b.width * b.height - inter_area
    return inter_area / union_area if union_area > 0 else 0.0


def compute_metrics(
    detected: list[FieldRecord],
    ground_truth: list[dict],
) -> dict[str, Any]:
    """
    Compute detection metrics.

    Each ground truth field is greedily matched to the unmatched detection
    of a compatible kind with the highest overlap.
    """
    matched = set()
    matches = 0

    for gt in ground_truth:
        gt_rect = Rect.from_points(*gt["rect"])
        allowed = COMPATIBLE_KINDS.get(gt["kind"], {FieldKind(gt["kind"])})

        best, best_iou = None, IOU_THRESHOLD
        for i, d in enumerate(detected):
            if i in matched or d.kind not in allowed:
                continue
            overlap = iou(gt_rect, d.rect)
            if overlap >= best_iou:
                best, best_iou = i, overlap

        if best is not None:
            matched.add(best)
            matches += 1

    precision = matches / len(detected) if detected else 0
    recall = matches / len(ground_truth) if ground_truth else 0
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0

    by_method: dict[str, int] = {}
    for d in detected:
        by_method[d.detection_method.value] = by_method.get(d.detection_method.value, 0) + 1

    return {
        "total_ground_truth": len(ground_truth),
        "total_detected": len(detected),
        "matches": matches,
        "precision": precision,
        "recall": recall,
        "f1": f1,
        "by_method": by_method,
    }


async def evaluate_document(
    file_path: Path,
    ground_truth: list[dict],
) -> dict[str, Any]:
    """Evaluate detection on a single form."""
    print(f"  Evaluating: {file_path.name}")

    result = await field_detector.detect_document(file_path.read_bytes())

    metrics = compute_metrics(result.fields, ground_truth)
    metrics["detection_time_ms"] = result.detection_time_ms
    metrics["detector_errors"] = {
        p.page_number: p.detector_errors for p in result.pages if p.detector_errors
    }
    return metrics


async def main():
    """Run evaluation on all sample forms."""
    configure_logging("WARNING")
    sample_dir = Path(__file__).parent.parent / "sample_forms"
    truth_path = sample_dir / "ground_truth.json"

    if not truth_path.exists():
        print("Sample forms not found. Generating them first...")
        import subprocess
        subprocess.run([sys.executable, str(Path(__file__).parent / "generate_sample_forms.py")])

    with open(truth_path) as f:
        ground_truth_by_file = json.load(f)

    print("\n" + "=" * 60)
    print("FIELD DETECTION EVALUATION")
    print("=" * 60 + "\n")

    all_metrics = []
    total_gt = 0
    total_detected = 0
    total_matches = 0

    try:
        for filename, ground_truth in ground_truth_by_file.items():
            file_path = sample_dir / filename

            if not file_path.exists():
                print(f"  Skipping {filename} (not found)")
                continue

            metrics = await evaluate_document(file_path, ground_truth)
            all_metrics.append({"filename": filename, **metrics})

            total_gt += metrics["total_ground_truth"]
            total_detected += metrics["total_detected"]
            total_matches += metrics["matches"]

            print(f"    GT: {metrics['total_ground_truth']}, "
                  f"Detected: {metrics['total_detected']}, "
                  f"Precision: {metrics['precision']:.1%}, "
                  f"Recall: {metrics['recall']:.1%}, "
                  f"F1: {metrics['f1']:.1%}")
            print(f"    By method: {metrics['by_method']}")
    finally:
        ocr_engine.close()

    # Aggregate metrics
    print("\n" + "-" * 60)
    print("AGGREGATE RESULTS")
    print("-" * 60)

    overall_recall = total_matches / total_gt if total_gt > 0 else 0
    overall_precision = total_matches / total_detected if total_detected > 0 else 0
    overall_f1 = 2 * overall_precision * overall_recall / (overall_precision + overall_recall) if (overall_precision + overall_recall) > 0 else 0

    print(f"\nTotal ground truth fields: {total_gt}")
    print(f"Total detected fields: {total_detected}")
    print(f"Total matches: {total_matches}")
    print(f"\nOverall Precision: {overall_precision:.1%}")
    print(f"Overall Recall: {overall_recall:.1%}")
    print(f"Overall F1: {overall_f1:.1%}")

    # Acceptance criteria check
    print("\n" + "=" * 60)
    print("ACCEPTANCE CRITERIA CHECK")
    print("=" * 60)

    recall_pass = overall_recall >= 0.80
    precision_pass = overall_precision >= 0.60

    print(f"\n[{'PASS' if recall_pass else 'FAIL'}] Detection Recall >= 80%: {overall_recall:.1%}")
    print(f"[{'PASS' if precision_pass else 'FAIL'}] Detection Precision >= 60%: {overall_precision:.1%}")

    all_pass = recall_pass and precision_pass
    print(f"\n{'ALL CRITERIA MET!' if all_pass else 'SOME CRITERIA NOT MET'}")

    # Save results to JSON
    results_path = Path(__file__).parent.parent / "evaluation_results.json"
    with open(results_path, "w") as f:
        json.dump({
            "per_document": all_metrics,
            "aggregate": {
                "total_ground_truth": total_gt,
                "total_detected": total_detected,
                "total_matches": total_matches,
                "precision": overall_precision,
                "recall": overall_recall,
                "f1": overall_f1,
            },
            "acceptance_criteria": {
                "detection_recall_pass": recall_pass,
                "detection_precision_pass": precision_pass,
                "all_pass": all_pass,
            },
        }, f, indent=2)

    print(f"\nResults saved to: {results_path}")

    return all_pass


if __name__ == "__main__":
    result = asyncio.run(main())
    sys.exit(0 if result else 1)
