"""Calibration reporting over (prediction, outcome) history.

Reports are advisory: they show how predicted deal probabilities compare
with realized hire rates, and never feed back into scoring weights.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from matchscore.tracker.models import OutcomeType, RejectionCategory, RejectionSample

OVERCONFIDENT = "overconfident"
UNDERCONFIDENT = "underconfident"
WELL_CALIBRATED = "well_calibrated"


@dataclass
class CalibrationBucket:
    """One probability bucket of the reliability table.

    ``gap`` is predicted minus observed; positive means the engine was
    overconfident for this bucket.
    """

    lower: float
    upper: float
    count: int = 0
    hires: int = 0
    mean_predicted: float | None = None
    observed_rate: float | None = None
    status: str | None = None

    @property
    def gap(self) -> float | None:
        if self.mean_predicted is None or self.observed_rate is None:
            return None
        return round(self.mean_predicted - self.observed_rate, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lower": self.lower,
            "upper": self.upper,
            "count": self.count,
            "hires": self.hires,
            "mean_predicted": self.mean_predicted,
            "observed_rate": self.observed_rate,
            "gap": self.gap,
            "status": self.status,
        }


@dataclass
class CalibrationReport:
    """Bucketed reliability table for one algorithm version."""

    version: str
    bucket_count: int
    tolerance: float
    buckets: list[CalibrationBucket] = field(default_factory=list)
    outcome_counts: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(b.count for b in self.buckets)

    @property
    def hires(self) -> int:
        return sum(b.hires for b in self.buckets)

    @property
    def observed_hire_rate(self) -> float | None:
        if not self.total:
            return None
        return round(self.hires / self.total * 100, 1)

    def _count_status(self, status: str) -> int:
        """Predictions that fall in buckets with the given status."""
        return sum(b.count for b in self.buckets if b.status == status)

    @property
    def overconfident(self) -> int:
        return self._count_status(OVERCONFIDENT)

    @property
    def underconfident(self) -> int:
        return self._count_status(UNDERCONFIDENT)

    @property
    def well_calibrated(self) -> int:
        return self._count_status(WELL_CALIBRATED)

    @property
    def well_calibrated_percent(self) -> float | None:
        """Share of predictions in buckets whose gap is within tolerance."""
        if not self.total:
            return None
        return round(self.well_calibrated / self.total * 100, 1)

    def pairs(self) -> list[tuple[float, float]]:
        """(predicted, observed) per non-empty bucket, in bucket order."""
        return [
            (b.mean_predicted, b.observed_rate)
            for b in self.buckets
            if b.mean_predicted is not None and b.observed_rate is not None
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "bucket_count": self.bucket_count,
            "tolerance": self.tolerance,
            "total": self.total,
            "hires": self.hires,
            "observed_hire_rate": self.observed_hire_rate,
            "outcome_counts": dict(self.outcome_counts),
            "summary": {
                OVERCONFIDENT: self.overconfident,
                UNDERCONFIDENT: self.underconfident,
                WELL_CALIBRATED: self.well_calibrated,
                "well_calibrated_percent": self.well_calibrated_percent,
            },
            "buckets": [b.to_dict() for b in self.buckets],
        }


def bucket_index(probability: float, bucket_count: int) -> int:
    """Equal-width bucket for a 0-100 probability; 100 lands in the last bucket."""
    clamped = max(0.0, min(100.0, float(probability)))
    return min(int(clamped * bucket_count // 100), bucket_count - 1)


def build_calibration_report(
    version: str,
    pairs: Iterable[tuple[float, OutcomeType | str]],
    bucket_count: int = 10,
    tolerance: float = 15.0,
) -> CalibrationReport:
    """Bucket (deal_probability, outcome) pairs into a reliability table.

    Only ``hired`` counts as a positive outcome. Callers must pass pairs from
    a single algorithm version.
    """
    if bucket_count < 1:
        raise ValueError("bucket_count must be at least 1")

    width = 100.0 / bucket_count
    buckets = [
        CalibrationBucket(lower=round(i * width, 2), upper=round((i + 1) * width, 2))
        for i in range(bucket_count)
    ]
    sums = [0.0] * bucket_count
    outcome_counts: Counter[str] = Counter()

    for probability, outcome in pairs:
        outcome = OutcomeType(outcome)
        outcome_counts[outcome.value] += 1
        idx = bucket_index(probability, bucket_count)
        bucket = buckets[idx]
        bucket.count += 1
        sums[idx] += float(probability)
        if outcome == OutcomeType.HIRED:
            bucket.hires += 1

    for idx, bucket in enumerate(buckets):
        if not bucket.count:
            continue
        bucket.mean_predicted = round(sums[idx] / bucket.count, 1)
        bucket.observed_rate = round(bucket.hires / bucket.count * 100, 1)
        gap = bucket.gap or 0.0
        if gap > tolerance:
            bucket.status = OVERCONFIDENT
        elif gap < -tolerance:
            bucket.status = UNDERCONFIDENT
        else:
            bucket.status = WELL_CALIBRATED

    return CalibrationReport(
        version=version,
        bucket_count=bucket_count,
        tolerance=tolerance,
        buckets=buckets,
        outcome_counts={o.value: outcome_counts.get(o.value, 0) for o in OutcomeType},
    )


def format_calibration_report(report: CalibrationReport) -> str:
    """Format a CalibrationReport for CLI output."""
    lines = [
        f"Calibration report (version={report.version}, "
        f"outcomes={report.total}, hires={report.hires})"
    ]
    if not report.total:
        lines.append("No outcomes recorded for this version.")
        return "\n".join(lines)

    lines.append(f"{'bucket':>11}  {'n':>4}  {'predicted':>9}  {'observed':>8}  {'gap':>6}")
    for b in report.buckets:
        label = f"{b.lower:g}-{b.upper:g}"
        if not b.count:
            lines.append(f"{label:>11}  {0:>4}  {'-':>9}  {'-':>8}  {'-':>6}")
            continue
        lines.append(
            f"{label:>11}  {b.count:>4}  {b.mean_predicted:>8.1f}%  "
            f"{b.observed_rate:>7.1f}%  {b.gap:>+6.1f}  {b.status}"
        )
    lines.append(
        f"Summary: {report.well_calibrated} well calibrated, "
        f"{report.overconfident} overconfident, {report.underconfident} underconfident "
        f"predictions ({report.well_calibrated_percent:g}% well calibrated, "
        f"tolerance ±{report.tolerance:g} pts)"
    )
    return "\n".join(lines)


@dataclass
class RejectionCategorySummary:
    category: str
    count: int
    average_overall_match: float
    stages: dict[str, int] = field(default_factory=dict)


@dataclass
class RejectionAnalysis:
    """Rejections grouped by category."""

    version: str | None
    total: int
    categories: list[RejectionCategorySummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "total": self.total,
            "categories": [
                {
                    "category": c.category,
                    "count": c.count,
                    "average_overall_match": c.average_overall_match,
                    "stages": dict(c.stages),
                }
                for c in self.categories
            ],
        }


def summarize_rejections(
    samples: Iterable[RejectionSample], version: str | None = None
) -> RejectionAnalysis:
    """Group rejections by category, most frequent first.

    Rejections recorded without a category are reported under ``other``.
    """
    grouped: dict[str, list[RejectionSample]] = {}
    for sample in samples:
        category = (sample.rejection_category or RejectionCategory.OTHER).value
        grouped.setdefault(category, []).append(sample)

    categories = [
        RejectionCategorySummary(
            category=category,
            count=len(items),
            average_overall_match=round(
                sum(s.overall_match for s in items) / len(items), 1
            ),
            stages=dict(Counter(s.stage for s in items).most_common()),
        )
        for category, items in grouped.items()
    ]
    categories.sort(key=lambda c: (-c.count, c.category))
    return RejectionAnalysis(
        version=version,
        total=sum(c.count for c in categories),
        categories=categories,
    )


def format_rejection_analysis(analysis: RejectionAnalysis) -> str:
    """Format a RejectionAnalysis for CLI output."""
    scope = analysis.version or "all versions"
    lines = [f"Rejections ({scope}): {analysis.total}"]
    for c in analysis.categories:
        stages = ", ".join(f"{stage}={n}" for stage, n in c.stages.items())
        lines.append(
            f"- {c.category}: {c.count} (avg match {c.average_overall_match:g}%) [{stages}]"
        )
    return "\n".join(lines)
