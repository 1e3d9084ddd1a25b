"""Split-test statistics module."""

from .significance import (
    z_to_confidence,
    pooled_z_score,
    two_sided_p_value,
    compare_leaders,
    evaluate_variants,
    build_recommendation,
)
from .srm import srm_chi_square, check_srm
from .power import sample_size_proportion

__all__ = [
    "z_to_confidence",
    "pooled_z_score",
    "two_sided_p_value",
    "compare_leaders",
    "evaluate_variants",
    "build_recommendation",
    "srm_chi_square",
    "check_srm",
    "sample_size_proportion",
]
