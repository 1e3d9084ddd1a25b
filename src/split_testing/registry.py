"""
Variant registry for a single experiment.

Owns the ordered variants, their counters, and the lock that serializes
mutations of one experiment. Metrics are replaced, never edited in place,
so readers holding a snapshot always see counters and rates that agree.
"""

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .metrics import increment
from .schema import EventKind, Variant, VariantSnapshot

logger = logging.getLogger(__name__)


class VariantRegistry:
    """Ordered variants of one experiment plus their per-experiment lock."""

    def __init__(self):
        self._variants: List[Variant] = []
        self._by_id: Dict[str, Variant] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Exclusive lock for read-modify-write sequences on this experiment."""
        return self._lock

    @property
    def variants(self) -> List[Variant]:
        return list(self._variants)

    def __len__(self) -> int:
        return len(self._variants)

    def __contains__(self, variant_id: str) -> bool:
        return variant_id in self._by_id

    def create_variant(self, definition: Mapping[str, Any]) -> Variant:
        """
        Add a variant with zeroed counters.

        Args:
            definition: Mapping with ``id`` and ``name``; optional ``changes``
                        describing what differs from the control.

        Returns:
            The new Variant

        Raises:
            ValueError: If the definition is not a mapping, id/name is missing
                        or the id is already registered
        """
        if not isinstance(definition, Mapping):
            raise ValueError(f"Variant definition must be a mapping, got {definition!r}")
        variant_id = definition.get("id")
        name = definition.get("name")
        if variant_id is None or variant_id == "":
            raise ValueError("Variant definition requires an 'id'")
        if not name:
            raise ValueError(f"Variant '{variant_id}' requires a 'name'")
        changes = definition.get("changes") or {}
        if not isinstance(changes, Mapping):
            raise ValueError(f"Variant '{variant_id}' changes must be a mapping")

        variant_id = str(variant_id)
        with self._lock:
            if variant_id in self._by_id:
                raise ValueError(f"Duplicate variant id '{variant_id}'")
            variant = Variant(
                id=variant_id,
                name=str(name),
                changes=dict(changes),
            )
            self._variants.append(variant)
            self._by_id[variant.id] = variant
        return variant

    def get(self, variant_id: str) -> Optional[Variant]:
        return self._by_id.get(variant_id)

    def apply_event(self, variant_id: str, event_kind: EventKind) -> bool:
        """
        Increment exactly one counter of a variant.

        Unknown variant ids, including ids that are not strings, are ignored.

        Returns:
            True if a counter changed
        """
        if not isinstance(variant_id, str):
            logger.debug(f"Ignoring {event_kind.value} for non-string variant id {variant_id!r}")
            return False
        with self._lock:
            variant = self._by_id.get(variant_id)
            if variant is None:
                logger.debug(f"Ignoring {event_kind.value} for unknown variant '{variant_id}'")
                return False
            variant.metrics = increment(variant.metrics, event_kind)
        return True

    def total_impressions(self) -> int:
        with self._lock:
            return sum(v.metrics.impressions for v in self._variants)

    def snapshot(self) -> Tuple[VariantSnapshot, ...]:
        """Immutable copy of every variant's counters and rates, in order."""
        with self._lock:
            return tuple(
                VariantSnapshot(variant_id=v.id, name=v.name, metrics=v.metrics)
                for v in self._variants
            )
