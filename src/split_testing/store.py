"""
Experiment stores.

The manager depends on the ExperimentStore interface only; the in-memory
store keeps live Experiment objects in a lock-guarded dict. The lock covers
the id -> experiment map, not the experiments themselves, which carry their
own registry lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .schema import Experiment

logger = logging.getLogger(__name__)


class ExperimentStore(ABC):
    """Keyed storage for experiments."""

    @abstractmethod
    def get(self, experiment_id: str) -> Optional[Experiment]:
        ...

    @abstractmethod
    def put(self, experiment: Experiment) -> None:
        ...

    @abstractmethod
    def delete(self, experiment_id: str) -> bool:
        ...

    @abstractmethod
    def list(self) -> List[Experiment]:
        ...


class InMemoryExperimentStore(ExperimentStore):
    """Process-local store; one instance per manager."""

    def __init__(self):
        self._experiments: Dict[str, Experiment] = {}
        self._lock = threading.Lock()

    def get(self, experiment_id: str) -> Optional[Experiment]:
        with self._lock:
            return self._experiments.get(experiment_id)

    def put(self, experiment: Experiment) -> None:
        with self._lock:
            self._experiments[experiment.id] = experiment

    def delete(self, experiment_id: str) -> bool:
        with self._lock:
            removed = self._experiments.pop(experiment_id, None)
        if removed is not None:
            logger.info(f"Deleted experiment {experiment_id} from store")
        return removed is not None

    def list(self) -> List[Experiment]:
        """Experiments in insertion order."""
        with self._lock:
            return list(self._experiments.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._experiments)
