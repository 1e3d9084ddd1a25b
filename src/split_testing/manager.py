"""
Experiment lifecycle manager.

Owns the experiment store, enforces the draft -> running -> paused/completed
state machine, routes traffic and records events. Each experiment's event
sequence (counter increment, sample-size check, significance evaluation and
the completed transition) runs under that experiment's registry lock, so
two concurrent events can never both declare a winner. Variant selection
takes no lock.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from .assignment import DrawSource, default_split, select_variant, validate_split
from .config import EngineConfig
from .errors import ExperimentNotFoundError, ExperimentStateError
from .registry import VariantRegistry
from .schema import (
    EvaluationResult,
    EventKind,
    Experiment,
    ExperimentStatus,
    PrimaryMetric,
)
from .stats.significance import build_recommendation, evaluate_variants, two_sided_p_value
from .store import ExperimentStore, InMemoryExperimentStore

logger = logging.getLogger(__name__)

_METRIC_ALIASES = {"watchTime": PrimaryMetric.WATCH_TIME}

CompletionListener = Callable[[EvaluationResult], None]


def parse_primary_metric(value: Union[str, PrimaryMetric]) -> PrimaryMetric:
    if isinstance(value, PrimaryMetric):
        return value
    if isinstance(value, str) and value in _METRIC_ALIASES:
        return _METRIC_ALIASES[value]
    try:
        return PrimaryMetric(value)
    except (TypeError, ValueError):
        raise ValueError(
            f"Unknown primary metric '{value}'. "
            f"Valid metrics: {[m.value for m in PrimaryMetric]}"
        )


def parse_event_kind(value: Union[str, EventKind]) -> EventKind:
    if isinstance(value, EventKind):
        return value
    try:
        return EventKind(value)
    except (TypeError, ValueError):
        raise ValueError(
            f"Unknown event kind '{value}'. "
            f"Valid events: {[e.value for e in EventKind]}"
        )


class ExperimentManager:
    """Creates, runs and completes content split tests.

    Usage:
        manager = ExperimentManager()
        exp = manager.create_experiment(
            name="Thumbnail test",
            content_id="video-42",
            variant_definitions=[
                {"id": "control", "name": "Control"},
                {"id": "bold", "name": "Bold thumbnail", "changes": {"thumbnail": "bold.png"}},
            ],
            primary_metric="clicks",
        )
        manager.start_experiment(exp.id)
        variant_id = manager.select_variant(exp.id)
        manager.record_event(exp.id, variant_id, "impression")

    Unknown experiment ids raise ExperimentNotFoundError. Events for unknown
    variants or for experiments that are not running are ignored.
    """

    def __init__(
        self,
        store: Optional[ExperimentStore] = None,
        config: Optional[EngineConfig] = None,
        on_complete: Optional[CompletionListener] = None,
    ):
        """
        Args:
            store: Experiment store. Defaults to a fresh in-memory store.
            config: Engine defaults. Defaults to EngineConfig().
            on_complete: Called with the EvaluationResult whenever an
                         experiment completes, after its lock is released.
        """
        self.config = (config or EngineConfig()).validate()
        self.store = store if store is not None else InMemoryExperimentStore()
        self.on_complete = on_complete
        self._draws = DrawSource(self.config.random_seed)

    def create_experiment(
        self,
        name: str,
        content_id: str,
        variant_definitions: Iterable[Mapping[str, Any]],
        primary_metric: Union[str, PrimaryMetric],
        traffic_split: Optional[Iterable[float]] = None,
        minimum_sample_size: Optional[int] = None,
        significance_level: Optional[float] = None,
    ) -> Experiment:
        """
        Create an experiment in draft status.

        Args:
            name: Human-readable experiment name
            content_id: Id of the content under test (opaque)
            variant_definitions: Ordered mappings with id, name and optional changes
            primary_metric: clicks, engagement, conversions or watch_time
            traffic_split: Percentage per variant; equal split when omitted
            minimum_sample_size: Total impressions before evaluation starts
            significance_level: Confidence required to declare a winner

        Returns:
            The new Experiment

        Raises:
            ValueError: On fewer than two variants, duplicate variant ids,
                        an invalid split or an unknown primary metric
        """
        metric = parse_primary_metric(primary_metric)
        if isinstance(variant_definitions, (str, bytes, Mapping)):
            raise ValueError("variant_definitions must be a sequence of mappings")
        try:
            definitions = list(variant_definitions)
        except TypeError:
            raise ValueError("variant_definitions must be a sequence of mappings")
        if len(definitions) < 2:
            raise ValueError(f"Experiment needs at least 2 variants, got {len(definitions)}")

        registry = VariantRegistry()
        for definition in definitions:
            registry.create_variant(definition)

        if traffic_split is None:
            split = default_split(len(registry))
        else:
            split = validate_split(traffic_split, len(registry), self.config.split_tolerance)

        settings = EngineConfig(
            minimum_sample_size=(
                self.config.minimum_sample_size if minimum_sample_size is None else minimum_sample_size
            ),
            significance_level=(
                self.config.significance_level if significance_level is None else significance_level
            ),
            min_arm_impressions=self.config.min_arm_impressions,
        ).validate()

        experiment = Experiment(
            id=f"test-{uuid4().hex[:12]}",
            name=name,
            content_id=content_id,
            registry=registry,
            traffic_split=split,
            primary_metric=metric,
            minimum_sample_size=settings.minimum_sample_size,
            significance_level=settings.significance_level,
        )
        self.store.put(experiment)
        logger.info(
            f"Created experiment {experiment.id} '{name}' for content {content_id}: "
            f"{len(registry)} variants, split={list(split)}, metric={metric.value}"
        )
        return experiment

    def start_experiment(self, experiment_id: str) -> Experiment:
        """
        Move a draft experiment to running and freeze its traffic split.

        Raises:
            ExperimentNotFoundError: If the experiment does not exist
            ExperimentStateError: If the experiment is not in draft
        """
        experiment = self._require(experiment_id)
        with experiment.registry.lock:
            if experiment.status != ExperimentStatus.DRAFT:
                raise ExperimentStateError(
                    f"Cannot start experiment in '{experiment.status.value}' status. "
                    f"Only 'draft' experiments can be started."
                )
            experiment.start_date = datetime.utcnow()
            experiment.status = ExperimentStatus.RUNNING
        logger.info(f"Started experiment {experiment_id}")
        return experiment

    def stop_experiment(self, experiment_id: str) -> Experiment:
        """
        Pause a running experiment. Paused experiments cannot be resumed.

        Stopping an already paused experiment returns it unchanged.

        Raises:
            ExperimentNotFoundError: If the experiment does not exist
            ExperimentStateError: If the experiment is draft or completed
        """
        experiment = self._require(experiment_id)
        with experiment.registry.lock:
            if experiment.status == ExperimentStatus.PAUSED:
                return experiment
            if experiment.status != ExperimentStatus.RUNNING:
                raise ExperimentStateError(
                    f"Cannot stop experiment in '{experiment.status.value}' status. "
                    f"Only 'running' experiments can be stopped."
                )
            experiment.status = ExperimentStatus.PAUSED
        logger.info(f"Paused experiment {experiment_id}")
        return experiment

    def select_variant(self, experiment_id: str) -> Optional[str]:
        """
        Route one unit of traffic.

        Returns:
            Variant id, or None if the experiment is not running

        Raises:
            ExperimentNotFoundError: If the experiment does not exist
        """
        experiment = self._require(experiment_id)
        return select_variant(experiment, self._draws)

    def record_event(
        self,
        experiment_id: str,
        variant_id: str,
        event_kind: Union[str, EventKind],
    ) -> None:
        """
        Record one engagement event and evaluate once enough traffic is in.

        Ignored when the experiment is not running, whatever the event kind,
        or when the variant is unknown.

        Raises:
            ExperimentNotFoundError: If the experiment does not exist
            ValueError: If the event kind is unknown and the experiment is running
        """
        experiment = self._require(experiment_id)

        result = None
        with experiment.registry.lock:
            if experiment.status != ExperimentStatus.RUNNING:
                logger.debug(
                    f"Ignoring {event_kind!r} for experiment {experiment_id} "
                    f"in '{experiment.status.value}' status"
                )
                return
            kind = parse_event_kind(event_kind)
            if not experiment.registry.apply_event(variant_id, kind):
                return
            if experiment.current_sample_size >= experiment.minimum_sample_size:
                result = self._evaluate_locked(experiment)

        if result is not None:
            self._notify(result)

    def evaluate(self, experiment_id: str) -> Optional[EvaluationResult]:
        """
        Run the significance check now.

        Only running experiments are evaluated; the total-impression
        threshold is not required here, the per-arm floor still is.

        Returns:
            EvaluationResult if a winner was declared, else None

        Raises:
            ExperimentNotFoundError: If the experiment does not exist
        """
        experiment = self._require(experiment_id)
        with experiment.registry.lock:
            if experiment.status != ExperimentStatus.RUNNING:
                return None
            result = self._evaluate_locked(experiment)
        if result is not None:
            self._notify(result)
        return result

    def get_experiment(self, experiment_id: str) -> Optional[Experiment]:
        return self.store.get(experiment_id)

    def list_experiments(self) -> List[Experiment]:
        return self.store.list()

    # ===== Private Methods =====

    def _require(self, experiment_id: str) -> Experiment:
        experiment = self.store.get(experiment_id)
        if experiment is None:
            raise ExperimentNotFoundError(experiment_id)
        return experiment

    def _evaluate_locked(self, experiment: Experiment) -> Optional[EvaluationResult]:
        """Evaluate and complete the experiment. Caller holds its registry lock."""
        verdict = evaluate_variants(
            experiment.registry.snapshot(),
            experiment.primary_metric,
            experiment.significance_level,
            self.config.min_arm_impressions,
        )
        if verdict is None:
            logger.debug(
                f"No verdict for experiment {experiment.id} "
                f"at {experiment.current_sample_size} impressions"
            )
            return None

        experiment.winner = verdict.leader.variant_id
        experiment.confidence = verdict.confidence
        experiment.end_date = datetime.utcnow()
        experiment.status = ExperimentStatus.COMPLETED

        result = EvaluationResult(
            test_id=experiment.id,
            winner=verdict.leader.name,
            winner_id=verdict.leader.variant_id,
            improvement=verdict.improvement,
            confidence=verdict.confidence,
            recommendation=build_recommendation(verdict),
            z_score=verdict.z_score,
            p_value=two_sided_p_value(verdict.z_score),
        )
        logger.info(
            f"Experiment {experiment.id} completed: winner={verdict.leader.variant_id} "
            f"improvement={verdict.improvement:.1f}% confidence={verdict.confidence:.2f}"
        )
        return result

    def _notify(self, result: EvaluationResult) -> None:
        if self.on_complete is not None:
            self.on_complete(result)
