"""
Leader vs runner-up significance testing.

Two-proportion z-test on the primary-metric rates of the two best variants,
mapped onto discrete confidence levels. Only the top two arms are compared;
with more than two variants the remaining arms do not take part.
"""

import math
from typing import Optional, Sequence

from scipy import stats

from ..metrics import metric_value
from ..schema import PrimaryMetric, VariantSnapshot, Verdict

MIN_ARM_IMPRESSIONS = 100

# (z threshold, confidence), checked from the top down
CONFIDENCE_LEVELS = (
    (2.576, 0.99),
    (1.96, 0.95),
    (1.645, 0.90),
    (1.28, 0.80),
)


def z_to_confidence(z: float) -> float:
    """Map a z-score onto 0.99 / 0.95 / 0.90 / 0.80, or 0.0 when below all."""
    for threshold, confidence in CONFIDENCE_LEVELS:
        if z >= threshold:
            return confidence
    return 0.0


def pooled_z_score(p1: float, n1: int, p2: float, n2: int) -> float:
    """
    Absolute z-score of a two-proportion test with pooled variance.

    Args:
        p1: Leader proportion in [0, 1]
        n1: Leader sample size
        p2: Runner-up proportion in [0, 1]
        n2: Runner-up sample size

    Returns:
        |p1 - p2| / se, or 0.0 when the pooled variance is not positive
        (both proportions at 0 or 1, or rates above 100% such as
        engagement counts exceeding impressions)
    """
    if n1 <= 0 or n2 <= 0:
        return 0.0
    p_pool = (p1 * n1 + p2 * n2) / (n1 + n2)
    variance = p_pool * (1 - p_pool) * (1 / n1 + 1 / n2)
    if variance <= 0:
        return 0.0
    return abs(p1 - p2) / math.sqrt(variance)


def two_sided_p_value(z: float) -> float:
    return float(2 * stats.norm.sf(abs(z)))


def compare_leaders(
    snapshot: Sequence[VariantSnapshot],
    primary_metric: PrimaryMetric,
    min_arm_impressions: int = MIN_ARM_IMPRESSIONS,
) -> Optional[Verdict]:
    """
    Compare the two best variants on the primary metric.

    Args:
        snapshot: Variant snapshots in experiment order
        primary_metric: Metric used for ranking
        min_arm_impressions: Impressions each of the two arms needs

    Returns:
        Verdict with improvement, z-score and confidence, or None when the
        comparison is not possible (fewer than two variants, runner-up value
        of zero, or an arm under the impression floor)
    """
    if len(snapshot) < 2:
        return None

    ranked = sorted(
        snapshot,
        key=lambda v: metric_value(v.metrics, primary_metric),
        reverse=True,
    )
    leader, runner_up = ranked[0], ranked[1]
    leader_value = metric_value(leader.metrics, primary_metric)
    runner_up_value = metric_value(runner_up.metrics, primary_metric)

    if runner_up_value == 0:
        return None

    improvement = (leader_value - runner_up_value) / runner_up_value * 100

    n1 = leader.metrics.impressions
    n2 = runner_up.metrics.impressions
    if n1 < min_arm_impressions or n2 < min_arm_impressions:
        return None

    z = pooled_z_score(leader_value / 100, n1, runner_up_value / 100, n2)
    return Verdict(
        leader=leader,
        runner_up=runner_up,
        leader_value=leader_value,
        runner_up_value=runner_up_value,
        improvement=improvement,
        z_score=z,
        confidence=z_to_confidence(z),
    )


def evaluate_variants(
    snapshot: Sequence[VariantSnapshot],
    primary_metric: PrimaryMetric,
    significance_level: float,
    min_arm_impressions: int = MIN_ARM_IMPRESSIONS,
) -> Optional[Verdict]:
    """Verdict only if its confidence reaches the significance level."""
    verdict = compare_leaders(snapshot, primary_metric, min_arm_impressions)
    if verdict is None or verdict.confidence < significance_level:
        return None
    return verdict


def build_recommendation(verdict: Verdict) -> str:
    return (
        f"{verdict.leader.name} outperformed by {verdict.improvement:.1f}% "
        f"with {verdict.confidence * 100:.0f}% confidence. "
        "Recommend applying this variant."
    )
