"""Split-testing engine for content variants."""

from .schema import (
    AnalysisResult,
    EvaluationResult,
    EventKind,
    Experiment,
    ExperimentStatus,
    PrimaryMetric,
    Variant,
    VariantMetrics,
    VariantSnapshot,
)
from .config import EngineConfig
from .errors import ExperimentNotFoundError, ExperimentStateError
from .metrics import compute_rates, metric_value
from .registry import VariantRegistry
from .assignment import DrawSource, select_variant
from .store import ExperimentStore, InMemoryExperimentStore
from .manager import ExperimentManager
from .analyze import run_analysis
from .report import render_exec_summary
from .simulate import run_traffic_simulation

__all__ = [
    "AnalysisResult",
    "EvaluationResult",
    "EventKind",
    "Experiment",
    "ExperimentStatus",
    "PrimaryMetric",
    "Variant",
    "VariantMetrics",
    "VariantSnapshot",
    "EngineConfig",
    "ExperimentNotFoundError",
    "ExperimentStateError",
    "compute_rates",
    "metric_value",
    "VariantRegistry",
    "DrawSource",
    "select_variant",
    "ExperimentStore",
    "InMemoryExperimentStore",
    "ExperimentManager",
    "run_analysis",
    "render_exec_summary",
    "run_traffic_simulation",
]
