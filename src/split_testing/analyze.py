"""
Experiment analysis entrypoint.

Input: an experiment (any status).
Output: AnalysisResult, and optionally analysis.json + variants.csv saved to
artifacts/experiments/<experiment_id>/.

Analysis is read-only: it works on a registry snapshot and never changes the
experiment's status or counters.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from .metrics import metric_value
from .schema import (
    AnalysisResult,
    Experiment,
    ExperimentStatus,
    PrimaryMetric,
    VariantSnapshot,
    VariantStats,
)
from .stats import check_srm, compare_leaders, sample_size_proportion, two_sided_p_value
from .stats.significance import MIN_ARM_IMPRESSIONS

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACTS_DIR = "artifacts/experiments"

VARIANT_COLUMNS = [
    "variant_id",
    "name",
    "impressions",
    "clicks",
    "engagement",
    "conversions",
    "ctr",
    "engagement_rate",
    "conversion_rate",
    "metric_value",
    "expected_share",
    "observed_share",
]


def variant_frame(
    snapshot: Sequence[VariantSnapshot],
    traffic_split: Sequence[float],
    primary_metric: PrimaryMetric,
) -> pd.DataFrame:
    """
    One row per variant with counters, rates and traffic shares.

    Returns:
        DataFrame with VARIANT_COLUMNS, in experiment order
    """
    rows = []
    for v, weight in zip(snapshot, traffic_split):
        m = v.metrics
        rows.append({
            "variant_id": v.variant_id,
            "name": v.name,
            "impressions": m.impressions,
            "clicks": m.clicks,
            "engagement": m.engagement,
            "conversions": m.conversions,
            "ctr": m.ctr,
            "engagement_rate": m.engagement_rate,
            "conversion_rate": m.conversion_rate,
            "metric_value": metric_value(m, primary_metric),
            "expected_share": weight / 100,
        })
    df = pd.DataFrame(rows, columns=VARIANT_COLUMNS[:-1])
    total = df["impressions"].sum()
    df["observed_share"] = df["impressions"] / total if total > 0 else 0.0
    return df


def _required_sample(
    primary_metric: PrimaryMetric,
    leader_value: float,
    runner_up_value: float,
    confidence: float,
) -> Optional[int]:
    """Impressions per arm to detect the observed lift, for rate metrics only."""
    if primary_metric == PrimaryMetric.WATCH_TIME:
        return None
    baseline = runner_up_value / 100
    target = leader_value / 100
    if not (0 < baseline < 1) or not (0 < target < 1) or target == baseline:
        return None
    return sample_size_proportion(baseline, target / baseline - 1, confidence=confidence)


def run_analysis(
    experiment: Experiment,
    artifacts_dir: Optional[str] = None,
    min_arm_impressions: int = MIN_ARM_IMPRESSIONS,
    srm_alpha: float = 0.01,
) -> AnalysisResult:
    """
    Analyze an experiment's current state.

    Args:
        experiment: Experiment to analyze
        artifacts_dir: If given, write analysis.json and variants.csv under
                       <artifacts_dir>/<experiment_id>/
        min_arm_impressions: Per-arm floor for the leader comparison
        srm_alpha: Significance threshold for sample ratio mismatch

    Returns:
        AnalysisResult
    """
    status = experiment.status
    snapshot = experiment.registry.snapshot()
    metric = experiment.primary_metric
    df = variant_frame(snapshot, experiment.traffic_split, metric)
    current = int(df["impressions"].sum())

    srm_passed, _, srm_p = check_srm(df["impressions"].tolist(), experiment.traffic_split, srm_alpha)
    if not srm_passed:
        logger.warning(
            f"SRM detected for experiment {experiment.id}: p={srm_p:.4g}, "
            f"observed={df['observed_share'].round(3).tolist()}, "
            f"expected={df['expected_share'].round(3).tolist()}"
        )

    ranked = df.sort_values("metric_value", ascending=False, kind="stable")
    leader = ranked.iloc[0]["variant_id"] if len(ranked) else None
    runner_up = ranked.iloc[1]["variant_id"] if len(ranked) > 1 else None

    verdict = compare_leaders(snapshot, metric, min_arm_impressions)
    improvement = z_score = p_value = required = None
    confidence = 0.0
    if verdict is not None:
        improvement = verdict.improvement
        z_score = verdict.z_score
        p_value = two_sided_p_value(verdict.z_score)
        confidence = verdict.confidence
        required = _required_sample(
            metric, verdict.leader_value, verdict.runner_up_value, experiment.significance_level
        )

    stats_rows = [
        VariantStats(
            variant_id=str(row.variant_id),
            name=str(row.name),
            impressions=int(row.impressions),
            clicks=int(row.clicks),
            engagement=int(row.engagement),
            conversions=int(row.conversions),
            ctr=float(row.ctr),
            engagement_rate=float(row.engagement_rate),
            conversion_rate=float(row.conversion_rate),
            metric_value=float(row.metric_value),
            expected_share=float(row.expected_share),
            observed_share=float(row.observed_share),
        )
        for row in df.itertuples(index=False)
    ]

    # Recommendation logic
    if status == ExperimentStatus.COMPLETED and experiment.winner:
        winner_name = next(
            (v.name for v in snapshot if v.variant_id == experiment.winner), experiment.winner
        )
        recommendation = "apply"
        reason = (
            f"{winner_name} won with {(experiment.confidence or 0) * 100:.0f}% confidence. "
            "Apply this variant to the content."
        )
    elif not srm_passed:
        recommendation = "hold"
        reason = "SRM detected: served impressions deviate from the traffic split. Do not interpret results."
    elif status == ExperimentStatus.PAUSED:
        recommendation = "hold"
        reason = "Experiment was paused before reaching significance."
    elif status == ExperimentStatus.DRAFT:
        recommendation = "continue"
        reason = "Experiment has not started."
    elif current < experiment.minimum_sample_size:
        recommendation = "continue"
        reason = f"Collecting data: {current} of {experiment.minimum_sample_size} impressions."
    elif verdict is None:
        recommendation = "continue"
        reason = (
            f"Leading variants need at least {min_arm_impressions} impressions each "
            "and a non-zero runner-up rate before they can be compared."
        )
    else:
        recommendation = "continue"
        reason = (
            f"Leader ahead by {verdict.improvement:.1f}% at {confidence * 100:.0f}% confidence, "
            f"below the required {experiment.significance_level * 100:.0f}%."
        )
        if required is not None:
            reason += f" Roughly {required:,} impressions per arm are needed to confirm this lift."

    result = AnalysisResult(
        experiment_id=experiment.id,
        status=status.value,
        primary_metric=metric.value,
        current_sample_size=current,
        minimum_sample_size=experiment.minimum_sample_size,
        significance_level=experiment.significance_level,
        srm_passed=srm_passed,
        srm_p_value=srm_p,
        variant_stats=stats_rows,
        leader=leader,
        runner_up=runner_up,
        improvement=improvement,
        z_score=z_score,
        p_value=p_value,
        confidence=confidence,
        required_impressions_per_arm=required,
        winner=experiment.winner,
        recommendation=recommendation,
        recommendation_reason=reason,
    )

    if artifacts_dir is not None:
        out_dir = Path(artifacts_dir) / experiment.id
        out_dir.mkdir(parents=True, exist_ok=True)
        with open(out_dir / "analysis.json", "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        df.to_csv(out_dir / "variants.csv", index=False)
        logger.info(f"Analysis saved to {out_dir}")

    return result
