"""
Engine configuration.

Defaults apply to every experiment a manager creates unless the caller
overrides them per experiment.
"""

import math
import os
from dataclasses import dataclass, fields
from numbers import Real
from typing import Mapping, Optional

ENV_PREFIX = "SPLIT_TESTING_"


@dataclass
class EngineConfig:
    """Defaults and thresholds for the split-testing engine."""
    minimum_sample_size: int = 1000  # total impressions before evaluating
    significance_level: float = 0.95
    min_arm_impressions: int = 100  # per-arm floor for the z-test
    split_tolerance: float = 0.01  # allowed drift of the split total from 100
    random_seed: Optional[int] = None

    def validate(self) -> "EngineConfig":
        for name in ("minimum_sample_size", "significance_level", "min_arm_impressions", "split_tolerance"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value!r}")
        if self.minimum_sample_size < 1:
            raise ValueError(
                f"minimum_sample_size must be positive, got {self.minimum_sample_size}"
            )
        if not (0 < self.significance_level < 1):
            raise ValueError(
                f"significance_level must be in (0, 1), got {self.significance_level}"
            )
        if self.min_arm_impressions < 1:
            raise ValueError(
                f"min_arm_impressions must be positive, got {self.min_arm_impressions}"
            )
        if self.split_tolerance < 0:
            raise ValueError(f"split_tolerance must be >= 0, got {self.split_tolerance}")
        return self

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = ENV_PREFIX,
    ) -> "EngineConfig":
        """
        Build a config from environment variables.

        ``SPLIT_TESTING_MINIMUM_SAMPLE_SIZE=500`` overrides
        ``minimum_sample_size``, and so on for every field. Unset variables
        keep their defaults.

        Raises:
            ValueError: If a variable cannot be parsed or fails validation
        """
        environ = os.environ if environ is None else environ
        kwargs = {}
        for f in fields(cls):
            raw = environ.get(f"{prefix}{f.name.upper()}")
            if raw is None or raw == "":
                continue
            try:
                kwargs[f.name] = float(raw) if f.name in ("significance_level", "split_tolerance") else int(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {prefix}{f.name.upper()}: {raw!r}")
        return cls(**kwargs).validate()
