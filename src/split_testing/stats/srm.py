"""
Sample Ratio Mismatch (SRM) chi-square test.

Detects if served impressions deviate significantly from the configured
traffic split.
"""

from typing import Sequence, Tuple

import numpy as np
from scipy import stats


def srm_chi_square(
    observed: Sequence[int],
    traffic_split: Sequence[float],
) -> Tuple[float, float]:
    """
    Chi-square goodness-of-fit of impressions against the traffic split.

    H0: impressions follow the split
    H1: impressions deviate from the split

    Arms with a zero weight are left out of the test; any impression on such
    an arm is a mismatch by itself and yields p = 0.

    Args:
        observed: Impressions per variant, in variant order
        traffic_split: Percentage weights, in variant order

    Returns:
        Tuple of (chi2_statistic, p_value)
    """
    obs = np.asarray(observed, dtype=float)
    weights = np.asarray(traffic_split, dtype=float)
    n_total = obs.sum()
    if n_total == 0:
        return 0.0, 1.0

    active = weights > 0
    if obs[~active].sum() > 0:
        return float("inf"), 0.0
    if active.sum() < 2:
        return 0.0, 1.0

    expected = n_total * weights[active] / weights[active].sum()
    chi2, p_value = stats.chisquare(obs[active], f_exp=expected)
    return float(chi2), float(p_value)


def check_srm(
    observed: Sequence[int],
    traffic_split: Sequence[float],
    alpha: float = 0.01,
) -> Tuple[bool, float, float]:
    """
    Check for sample ratio mismatch.

    Args:
        observed: Impressions per variant
        traffic_split: Percentage weights per variant
        alpha: Significance threshold (default 0.01)

    Returns:
        Tuple of (srm_passed, chi2_statistic, p_value)
    """
    chi2, p_value = srm_chi_square(observed, traffic_split)
    srm_passed = p_value >= alpha
    return srm_passed, chi2, p_value
