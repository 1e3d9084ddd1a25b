"""
Data models for content split tests.

Dataclass schemas for experiments, variants, per-variant counters and
derived rates, evaluation verdicts and analysis results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .registry import VariantRegistry


class ExperimentStatus(str, Enum):
    """Experiment lifecycle state."""
    DRAFT = "draft"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class PrimaryMetric(str, Enum):
    """Metric used to rank variants."""
    CLICKS = "clicks"  # ctr
    ENGAGEMENT = "engagement"  # engagement_rate
    CONVERSIONS = "conversions"  # conversion_rate
    WATCH_TIME = "watch_time"  # raw engagement count, no dedicated counter


class EventKind(str, Enum):
    """Engagement event recorded against a variant."""
    IMPRESSION = "impression"
    CLICK = "click"
    ENGAGEMENT = "engagement"
    CONVERSION = "conversion"


@dataclass(frozen=True)
class VariantMetrics:
    """Counters for one variant plus the rates derived from them."""
    impressions: int = 0
    clicks: int = 0
    engagement: int = 0
    conversions: int = 0
    ctr: float = 0.0
    engagement_rate: float = 0.0
    conversion_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "impressions": self.impressions,
            "clicks": self.clicks,
            "engagement": self.engagement,
            "conversions": self.conversions,
            "ctr": self.ctr,
            "engagement_rate": self.engagement_rate,
            "conversion_rate": self.conversion_rate,
        }


@dataclass
class Variant:
    """One arm of an experiment.

    ``changes`` holds the collaborator's description of what differs from the
    control (title, thumbnail, headline, cta, ...). The engine never reads it.
    ``metrics`` is swapped for a new frozen instance on every event.
    """
    id: str
    name: str
    changes: Dict[str, Any] = field(default_factory=dict)
    metrics: VariantMetrics = field(default_factory=VariantMetrics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "changes": dict(self.changes),
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class VariantSnapshot:
    """Read-only copy of a variant's identity and metrics."""
    variant_id: str
    name: str
    metrics: VariantMetrics


@dataclass
class Experiment:
    """A configured split test over two or more variants."""
    id: str
    name: str
    content_id: str
    registry: "VariantRegistry" = field(repr=False, compare=False)
    traffic_split: Tuple[float, ...] = ()
    primary_metric: PrimaryMetric = PrimaryMetric.CLICKS
    minimum_sample_size: int = 1000
    significance_level: float = 0.95
    status: ExperimentStatus = ExperimentStatus.DRAFT
    start_date: datetime = field(default_factory=datetime.utcnow)
    end_date: Optional[datetime] = None
    winner: Optional[str] = None
    confidence: Optional[float] = None

    @property
    def variants(self) -> List[Variant]:
        return self.registry.variants

    @property
    def current_sample_size(self) -> int:
        """Total impressions across all variants."""
        return self.registry.total_impressions()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "name": self.name,
            "content_id": self.content_id,
            "status": self.status.value,
            "variants": [v.to_dict() for v in self.variants],
            "traffic_split": list(self.traffic_split),
            "metrics": {
                "primary_metric": self.primary_metric.value,
                "minimum_sample_size": self.minimum_sample_size,
                "current_sample_size": self.current_sample_size,
                "significance_level": self.significance_level,
            },
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "winner": self.winner,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class Verdict:
    """Leader vs runner-up comparison produced by the significance evaluator."""
    leader: VariantSnapshot
    runner_up: VariantSnapshot
    leader_value: float
    runner_up_value: float
    improvement: float
    z_score: float
    confidence: float


@dataclass
class EvaluationResult:
    """Winner declaration handed to the publishing collaborator."""
    test_id: str
    winner: str  # variant name
    winner_id: str
    improvement: float  # percent over runner-up
    confidence: float
    recommendation: str
    z_score: Optional[float] = None
    p_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "test_id": self.test_id,
            "winner": self.winner,
            "winner_id": self.winner_id,
            "improvement": self.improvement,
            "confidence": self.confidence,
            "recommendation": self.recommendation,
            "z_score": self.z_score,
            "p_value": self.p_value,
        }


@dataclass
class VariantStats:
    """Per-variant row of an analysis."""
    variant_id: str
    name: str
    impressions: int
    clicks: int
    engagement: int
    conversions: int
    ctr: float
    engagement_rate: float
    conversion_rate: float
    metric_value: float
    expected_share: float
    observed_share: float


@dataclass
class AnalysisResult:
    """Read-only analysis of an experiment at a point in time."""
    experiment_id: str
    analysis_timestamp: datetime = field(default_factory=datetime.utcnow)
    status: str = ExperimentStatus.DRAFT.value
    primary_metric: str = PrimaryMetric.CLICKS.value
    current_sample_size: int = 0
    minimum_sample_size: int = 1000
    significance_level: float = 0.95

    # SRM
    srm_passed: bool = True
    srm_p_value: Optional[float] = None

    # Leader vs runner-up
    variant_stats: List[VariantStats] = field(default_factory=list)
    leader: Optional[str] = None
    runner_up: Optional[str] = None
    improvement: Optional[float] = None
    z_score: Optional[float] = None
    p_value: Optional[float] = None
    confidence: float = 0.0
    required_impressions_per_arm: Optional[int] = None

    winner: Optional[str] = None

    # Recommendation
    recommendation: str = "continue"  # apply, hold, continue
    recommendation_reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "experiment_id": self.experiment_id,
            "analysis_timestamp": self.analysis_timestamp.isoformat(),
            "status": self.status,
            "primary_metric": self.primary_metric,
            "current_sample_size": self.current_sample_size,
            "minimum_sample_size": self.minimum_sample_size,
            "significance_level": self.significance_level,
            "srm_passed": self.srm_passed,
            "srm_p_value": self.srm_p_value,
            "variant_stats": [
                {
                    "variant_id": s.variant_id,
                    "name": s.name,
                    "impressions": s.impressions,
                    "clicks": s.clicks,
                    "engagement": s.engagement,
                    "conversions": s.conversions,
                    "ctr": s.ctr,
                    "engagement_rate": s.engagement_rate,
                    "conversion_rate": s.conversion_rate,
                    "metric_value": s.metric_value,
                    "expected_share": s.expected_share,
                    "observed_share": s.observed_share,
                }
                for s in self.variant_stats
            ],
            "leader": self.leader,
            "runner_up": self.runner_up,
            "improvement": self.improvement,
            "z_score": self.z_score,
            "p_value": self.p_value,
            "confidence": self.confidence,
            "required_impressions_per_arm": self.required_impressions_per_arm,
            "winner": self.winner,
            "recommendation": self.recommendation,
            "recommendation_reason": self.recommendation_reason,
        }
