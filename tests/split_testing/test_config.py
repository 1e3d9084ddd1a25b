"""Tests for engine configuration."""
import pytest
from src.split_testing.config import EngineConfig


def test_defaults():
    """Defaults match the documented thresholds."""
    config = EngineConfig()
    assert config.minimum_sample_size == 1000
    assert config.significance_level == 0.95
    assert config.min_arm_impressions == 100


def test_from_env_overrides():
    """SPLIT_TESTING_* variables override defaults."""
    config = EngineConfig.from_env({
        "SPLIT_TESTING_MINIMUM_SAMPLE_SIZE": "500",
        "SPLIT_TESTING_SIGNIFICANCE_LEVEL": "0.9",
        "SPLIT_TESTING_RANDOM_SEED": "11",
        "UNRELATED": "x",
    })
    assert config.minimum_sample_size == 500
    assert config.significance_level == 0.9
    assert config.random_seed == 11
    assert config.min_arm_impressions == 100


def test_from_env_invalid_value():
    """Unparseable values raise ValueError."""
    with pytest.raises(ValueError, match="MINIMUM_SAMPLE_SIZE"):
        EngineConfig.from_env({"SPLIT_TESTING_MINIMUM_SAMPLE_SIZE": "lots"})


def test_validate_rejects_bad_level():
    """Significance level must be in (0, 1)."""
    with pytest.raises(ValueError, match="significance_level"):
        EngineConfig(significance_level=1.5).validate()


@pytest.mark.parametrize("value", ["lots", None, True, float("nan")])
def test_validate_rejects_non_numeric(value):
    """Thresholds must be finite numbers."""
    with pytest.raises(ValueError, match="minimum_sample_size"):
        EngineConfig(minimum_sample_size=value).validate()
