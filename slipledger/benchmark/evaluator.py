"""Accuracy benchmark for the slip text parser.

Runs the parser over labeled OCR text samples and computes per-field
precision, recall, F1, and accuracy, so heuristic changes can be
checked against a fixed set of real slips.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from slipledger.extraction.slip_parser import parse_slip_text
from slipledger.utils.logger import get_logger

logger = get_logger(__name__)

EVALUATED_FIELDS = ("amount", "date", "inferred_type", "note")


@dataclass
class FieldMetrics:
    """Precision, recall, F1, and accuracy for one parsed field.

    A correct ``None`` (field expected absent and not predicted) counts
    towards accuracy but not towards precision or recall.
    """

    field_name: str
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    correct: int = 0
    total: int = 0

    @property
    def precision(self) -> float:
        denom = self.true_positives + self.false_positives
        if denom == 0:
            return 0.0
        return self.true_positives / denom

    @property
    def recall(self) -> float:
        denom = self.true_positives + self.false_negatives
        if denom == 0:
            return 0.0
        return self.true_positives / denom

    @property
    def f1(self) -> float:
        if self.precision + self.recall == 0:
            return 0.0
        return 2 * (self.precision * self.recall) / (self.precision + self.recall)

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return self.correct / self.total


@dataclass
class BenchmarkResult:
    """Aggregated benchmark results across all samples and fields."""

    total_samples: int
    evaluated_samples: int
    overall_accuracy: float
    overall_f1: float
    field_metrics: dict[str, FieldMetrics]
    failures: list[str] = field(default_factory=list)


class SlipEvaluator:
    """Compares parser output against expected slip fields.

    Args:
        amount_tolerance: Absolute tolerance when comparing amounts.
        target_accuracy: Accuracy the report marks as passing.
    """

    def __init__(self, amount_tolerance: float = 0.005, target_accuracy: float = 0.9) -> None:
        self.amount_tolerance = amount_tolerance
        self.target_accuracy = target_accuracy

    def evaluate_samples(self, samples: dict[str, dict[str, Any]]) -> BenchmarkResult:
        """Parse every labeled sample and score the predictions.

        Args:
            samples: Mapping of sample name to ``{"text", "confidence",
                "expected"}``.
        """
        predictions = {
            name: parse_slip_text(sample.get("text", ""), sample.get("confidence")).to_dict()
            for name, sample in samples.items()
        }
        ground_truth = {name: sample.get("expected", {}) for name, sample in samples.items()}
        return self.evaluate(predictions, ground_truth)

    def evaluate(
        self,
        predictions: dict[str, dict[str, Any]],
        ground_truth: dict[str, dict[str, Any]],
    ) -> BenchmarkResult:
        """Score predictions against ground truth.

        Only fields present in a sample's expected mapping are scored, so
        a sample may label just the amount. An expected ``None`` means the
        parser should report nothing for that field.
        """
        field_metrics: dict[str, FieldMetrics] = {}
        failures: list[str] = []
        missing = 0

        for name, expected in ground_truth.items():
            predicted = predictions.get(name)
            if predicted is None:
                failures.append(f"Missing prediction for {name}")
                missing += 1

            for field_name, expected_value in expected.items():
                metrics = field_metrics.setdefault(field_name, FieldMetrics(field_name))
                metrics.total += 1
                value = None if predicted is None else predicted.get(field_name)

                if value is None and expected_value is None:
                    metrics.correct += 1
                elif value is None:
                    metrics.false_negatives += 1
                    failures.append(f"{name}.{field_name}: expected {expected_value!r}, got None")
                elif self._matches(field_name, value, expected_value):
                    metrics.true_positives += 1
                    metrics.correct += 1
                else:
                    metrics.false_positives += 1
                    failures.append(
                        f"{name}.{field_name}: expected {expected_value!r}, got {value!r}"
                    )

        scored = [m for m in field_metrics.values() if m.total > 0]
        return BenchmarkResult(
            total_samples=len(ground_truth),
            evaluated_samples=len(ground_truth) - missing,
            overall_accuracy=sum(m.accuracy for m in scored) / len(scored) if scored else 0.0,
            overall_f1=sum(m.f1 for m in scored) / len(scored) if scored else 0.0,
            field_metrics=field_metrics,
            failures=failures,
        )

    def _matches(self, field_name: str, predicted: Any, expected: Any) -> bool:
        if expected is None:
            return False
        if field_name == "amount":
            try:
                return abs(float(predicted) - float(expected)) <= self.amount_tolerance
            except (TypeError, ValueError):
                return False
        return str(predicted).strip() == str(expected).strip()

    def generate_report(self, result: BenchmarkResult, output_path: Path | None = None) -> str:
        """Format a human-readable benchmark report, optionally writing it."""
        lines = [
            "=" * 60,
            "SLIP PARSER BENCHMARK",
            "=" * 60,
            f"Total Samples:        {result.total_samples}",
            f"Evaluated:            {result.evaluated_samples}",
            f"Overall Accuracy:     {result.overall_accuracy:.2%}",
            f"Overall F1 Score:     {result.overall_f1:.3f}",
            "",
            "Field-Level Metrics:",
            "-" * 60,
            f"{'Field':<16} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Accuracy':>10}",
            "-" * 60,
        ]

        for name, metrics in sorted(result.field_metrics.items()):
            lines.append(
                f"{name:<16} {metrics.precision:>10.2%} {metrics.recall:>10.2%} "
                f"{metrics.f1:>10.3f} {metrics.accuracy:>10.2%}"
            )

        target_met = result.overall_accuracy >= self.target_accuracy
        lines.extend(
            [
                "-" * 60,
                "",
                f"Target: >={self.target_accuracy:.0%} accuracy - "
                f"{'PASSED' if target_met else 'FAILED'}",
                "=" * 60,
            ]
        )

        if result.failures:
            lines.append("")
            lines.append("Mismatches:")
            lines.extend(f"  - {failure}" for failure in result.failures)

        report = "\n".join(lines)

        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report, encoding="utf-8")
            logger.info("Report written to %s", output_path)

        return report


def load_samples(path: Path) -> dict[str, dict[str, Any]]:
    """Load labeled slip samples from a JSON file.

    Format: ``{"name": {"text": "...", "confidence": 90.0,
    "expected": {"amount": 100.0, "date": "2026-02-07"}}, ...}``

    Raises:
        ValueError: If the file is not a JSON object of samples.
    """
    if path.suffix != ".json":
        raise ValueError(f"Unsupported sample format: {path.suffix}")

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ValueError("Sample file must map sample names to objects")
    return data
