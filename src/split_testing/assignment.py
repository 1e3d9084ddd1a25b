"""
Weighted random variant assignment for split tests.

A uniform draw in [0, 100) is mapped onto the experiment's cumulative
traffic split. Draws come from per-thread NumPy generators spawned from a
single SeedSequence, so concurrent callers never share generator state and
a fixed seed still gives reproducible streams per thread.
"""

import math
import threading
from typing import Optional, Sequence, Tuple

import numpy as np

from .schema import Experiment, ExperimentStatus

SPLIT_TOTAL = 100.0


class DrawSource:
    """Thread-safe source of uniform draws."""

    def __init__(self, seed: Optional[int] = None):
        self._seed_seq = np.random.SeedSequence(seed)
        self._spawn_lock = threading.Lock()
        self._local = threading.local()

    def _generator(self) -> np.random.Generator:
        rng = getattr(self._local, "rng", None)
        if rng is None:
            with self._spawn_lock:
                child = self._seed_seq.spawn(1)[0]
            rng = np.random.default_rng(child)
            self._local.rng = rng
        return rng

    def uniform(self, high: float = SPLIT_TOTAL) -> float:
        """Uniform draw in [0, high)."""
        return float(self._generator().random() * high)


def default_split(n_variants: int) -> Tuple[float, ...]:
    """Equal traffic share for each variant."""
    if n_variants < 1:
        raise ValueError("Need at least one variant to split traffic")
    return tuple([SPLIT_TOTAL / n_variants] * n_variants)


def validate_split(
    traffic_split: Sequence[float],
    n_variants: int,
    tolerance: float = 0.01,
) -> Tuple[float, ...]:
    """
    Check a traffic split against the variant count.

    Args:
        traffic_split: Percentage weight per variant, in variant order
        n_variants: Number of variants in the experiment
        tolerance: Allowed deviation of the total from 100

    Returns:
        The split as an immutable tuple of floats

    Raises:
        ValueError: On length mismatch, non-finite or negative weights, or a
                    total away from 100
    """
    try:
        split = tuple(float(w) for w in traffic_split)
    except (TypeError, ValueError):
        raise ValueError(f"traffic_split weights must be numbers, got {traffic_split!r}")
    if len(split) != n_variants:
        raise ValueError(
            f"traffic_split length ({len(split)}) must match "
            f"variants length ({n_variants})"
        )
    if not all(math.isfinite(w) for w in split):
        raise ValueError(f"traffic_split weights must be finite, got {list(split)}")
    if any(w < 0 for w in split):
        raise ValueError(f"traffic_split weights must be non-negative, got {list(split)}")
    total = sum(split)
    if abs(total - SPLIT_TOTAL) > tolerance:
        raise ValueError(f"traffic_split must sum to 100, got {total}")
    return split


def bucket_for_draw(traffic_split: Sequence[float], draw: float) -> int:
    """
    Index of the variant whose cumulative weight first exceeds the draw.

    Falls back to the last index when rounding leaves the cumulative total
    just under the draw.
    """
    cumulative = 0.0
    for i, weight in enumerate(traffic_split):
        cumulative += weight
        if draw < cumulative:
            return i
    return len(traffic_split) - 1


def select_variant(experiment: Experiment, source: DrawSource) -> Optional[str]:
    """
    Pick a variant id for one unit of traffic.

    Args:
        experiment: Experiment to route for
        source: Draw source shared by the caller's manager

    Returns:
        Variant id, or None if the experiment is not running
    """
    if experiment.status != ExperimentStatus.RUNNING:
        return None
    variants = experiment.variants
    split = experiment.traffic_split
    idx = bucket_for_draw(split, source.uniform(SPLIT_TOTAL))
    return variants[idx].id
