"""
Derived engagement rates for split-test variants.

Pure functions over counter snapshots. Every zero denominator yields 0.0
rather than NaN or an error.
"""

from typing import Tuple

from .schema import EventKind, PrimaryMetric, VariantMetrics


def _percent(numerator: int, denominator: int) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def compute_rates(
    impressions: int,
    clicks: int,
    engagement: int,
    conversions: int,
) -> Tuple[float, float, float]:
    """
    Compute the three derived rates from raw counters.

    Args:
        impressions: Times the variant was served
        clicks: Click events
        engagement: Engagement events (likes, shares, comments, ...)
        conversions: Conversion events

    Returns:
        Tuple of (ctr, engagement_rate, conversion_rate), all in percent.
        ctr and engagement_rate are per impression, conversion_rate per click.
    """
    ctr = _percent(clicks, impressions)
    engagement_rate = _percent(engagement, impressions)
    conversion_rate = _percent(conversions, clicks)
    return ctr, engagement_rate, conversion_rate


def build_metrics(
    impressions: int = 0,
    clicks: int = 0,
    engagement: int = 0,
    conversions: int = 0,
) -> VariantMetrics:
    """Build a VariantMetrics with rates consistent with its counters."""
    ctr, engagement_rate, conversion_rate = compute_rates(
        impressions, clicks, engagement, conversions
    )
    return VariantMetrics(
        impressions=impressions,
        clicks=clicks,
        engagement=engagement,
        conversions=conversions,
        ctr=ctr,
        engagement_rate=engagement_rate,
        conversion_rate=conversion_rate,
    )


_COUNTER_BY_EVENT = {
    EventKind.IMPRESSION: "impressions",
    EventKind.CLICK: "clicks",
    EventKind.ENGAGEMENT: "engagement",
    EventKind.CONVERSION: "conversions",
}


def increment(metrics: VariantMetrics, event_kind: EventKind) -> VariantMetrics:
    """Return new metrics with the event's counter bumped and rates recomputed."""
    counters = {
        "impressions": metrics.impressions,
        "clicks": metrics.clicks,
        "engagement": metrics.engagement,
        "conversions": metrics.conversions,
    }
    counters[_COUNTER_BY_EVENT[event_kind]] += 1
    return build_metrics(**counters)


def metric_value(metrics: VariantMetrics, primary_metric: PrimaryMetric) -> float:
    """
    Value used to rank variants for the given primary metric.

    watch_time has no counter of its own and ranks on the raw engagement count.
    """
    if primary_metric == PrimaryMetric.CLICKS:
        return metrics.ctr
    if primary_metric == PrimaryMetric.ENGAGEMENT:
        return metrics.engagement_rate
    if primary_metric == PrimaryMetric.CONVERSIONS:
        return metrics.conversion_rate
    if primary_metric == PrimaryMetric.WATCH_TIME:
        return float(metrics.engagement)
    raise ValueError(f"Unknown primary metric: {primary_metric}")
