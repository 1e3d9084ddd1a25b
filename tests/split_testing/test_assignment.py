"""Tests for weighted random assignment."""
from collections import Counter

import pytest
from scipy import stats
from src.split_testing.assignment import (
    DrawSource,
    bucket_for_draw,
    default_split,
    validate_split,
)
from src.split_testing.manager import ExperimentManager
from src.split_testing.config import EngineConfig

VARIANTS = [
    {"id": "a", "name": "A"},
    {"id": "b", "name": "B"},
    {"id": "c", "name": "C"},
]


def _running(split, seed=7):
    manager = ExperimentManager(config=EngineConfig(random_seed=seed))
    exp = manager.create_experiment("t", "content-1", VARIANTS[:len(split)], "clicks", split)
    manager.start_experiment(exp.id)
    return manager, exp


def test_default_split_sums_to_100():
    """Equal split over 3 variants sums to 100 within rounding."""
    split = default_split(3)
    assert len(split) == 3
    assert sum(split) == pytest.approx(100.0)


def test_validate_split_rejects_bad_total():
    """Split must sum to 100."""
    with pytest.raises(ValueError, match="sum to 100"):
        validate_split([50, 40], 2)


def test_validate_split_rejects_length_mismatch():
    """One weight per variant."""
    with pytest.raises(ValueError, match="length"):
        validate_split([50, 25, 25], 2)


def test_validate_split_rejects_negative():
    """Weights cannot be negative."""
    with pytest.raises(ValueError, match="non-negative"):
        validate_split([110, -10], 2)


def test_bucket_boundaries():
    """Cumulative weight must strictly exceed the draw."""
    assert bucket_for_draw([50, 50], 0.0) == 0
    assert bucket_for_draw([50, 50], 49.999) == 0
    assert bucket_for_draw([50, 50], 50.0) == 1
    assert bucket_for_draw([50, 50], 99.999) == 1


def test_bucket_rounding_falls_back_to_last():
    """A cumulative total just under 100 falls back to the last variant."""
    assert bucket_for_draw([33.333, 33.333, 33.333], 99.9995) == 2


def test_draw_source_range_and_reproducible():
    """Draws are in [0, 100) and a fixed seed repeats the stream."""
    s1, s2 = DrawSource(seed=3), DrawSource(seed=3)
    d1 = [s1.uniform() for _ in range(100)]
    d2 = [s2.uniform() for _ in range(100)]
    assert d1 == d2
    assert all(0 <= d < 100 for d in d1)


def test_select_only_known_variants():
    """Selections always come from the experiment's variant set."""
    manager, exp = _running([40, 30, 30])
    picks = {manager.select_variant(exp.id) for _ in range(500)}
    assert picks <= {"a", "b", "c"}


def test_split_100_0_always_first():
    """Split [100, 0] routes every draw to the first variant."""
    manager, exp = _running([100, 0])
    picks = [manager.select_variant(exp.id) for _ in range(1000)]
    assert set(picks) == {"a"}


def test_frequencies_follow_split():
    """10,000 draws pass a chi-square goodness-of-fit against [50, 30, 20]."""
    manager, exp = _running([50, 30, 20])
    counts = Counter(manager.select_variant(exp.id) for _ in range(10000))
    observed = [counts["a"], counts["b"], counts["c"]]
    _, p_value = stats.chisquare(observed, f_exp=[5000, 3000, 2000])
    assert p_value > 0.001


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), "half"])
def test_validate_split_rejects_non_finite_weights(bad):
    """NaN, infinite and non-numeric weights never pass as a split."""
    with pytest.raises(ValueError, match="traffic_split"):
        validate_split([bad, 100], 2)


def test_create_rejects_nan_split():
    """A NaN weight cannot reach a running experiment."""
    manager = ExperimentManager(config=EngineConfig(random_seed=7))
    with pytest.raises(ValueError, match="finite"):
        manager.create_experiment("t", "content-1", VARIANTS[:2], "clicks", [float("nan"), 100])
    assert manager.list_experiments() == []
