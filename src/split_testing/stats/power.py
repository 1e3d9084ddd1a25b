"""
Power analysis for rate comparisons.

Estimates how many impressions each arm needs before an observed lift can
be declared significant.
"""

import numpy as np
from scipy import stats


def sample_size_proportion(
    baseline: float,
    lift_relative: float,
    confidence: float = 0.95,
    power: float = 0.8,
) -> int:
    """
    Sample size per arm for a two-proportion test with equal allocation.

    Args:
        baseline: Baseline proportion in (0, 1) (e.g., runner-up CTR 0.04)
        lift_relative: Relative lift to detect (e.g., 0.10 = +10%)
        confidence: Two-sided confidence level (1 - alpha)
        power: Statistical power (1 - Type II)

    Returns:
        Required sample size per arm

    Raises:
        ValueError: If baseline or lift make the target proportion invalid
    """
    p1 = baseline
    p2 = baseline * (1 + lift_relative)
    if not (0 < p1 < 1) or not (0 < p2 < 1):
        raise ValueError(
            f"Proportions must be in (0, 1), got baseline={p1}, target={p2}"
        )
    effect = abs(p2 - p1)
    if effect == 0:
        raise ValueError("lift_relative must be non-zero")

    z_alpha = stats.norm.ppf(1 - (1 - confidence) / 2)
    z_beta = stats.norm.ppf(power)

    p_pool = (p1 + p2) / 2
    se = np.sqrt(2 * p_pool * (1 - p_pool))

    n_per_arm = ((z_alpha + z_beta) * se / effect) ** 2
    return int(np.ceil(n_per_arm))
