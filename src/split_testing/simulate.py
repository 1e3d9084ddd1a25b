"""
Synthetic traffic simulator for split tests.

Routes simulated visitors through a running experiment and records
impression, click, engagement and conversion events drawn from per-variant
true probabilities:
- every routed visitor produces an impression
- click and engagement are independent draws per impression
- conversion is drawn only for visitors who clicked

Stops as soon as the experiment leaves the running state (a winner was
declared or it was paused). Returns a run summary.
"""

import logging
from typing import Dict, Mapping

import numpy as np

from .manager import ExperimentManager
from .schema import EventKind

logger = logging.getLogger(__name__)

SIMULATOR_SEED = 42


def run_traffic_simulation(
    manager: ExperimentManager,
    experiment_id: str,
    true_rates: Mapping[str, Mapping[str, float]],
    n_visitors: int = 10000,
    random_seed: int = SIMULATOR_SEED,
) -> Dict:
    """
    Drive a running experiment with simulated visitors.

    Args:
        manager: Manager owning the experiment
        experiment_id: Experiment to drive (must be running)
        true_rates: variant_id -> {"click": p, "engagement": p, "conversion": p};
                    conversion is per click. Missing keys default to 0.
        n_visitors: Maximum number of visitors to route
        random_seed: Random seed for reproducibility

    Returns:
        Dict with visitors_routed, visitors_per_variant, events_sent,
        status, winner and confidence
    """
    rng = np.random.default_rng(random_seed)
    per_variant: Dict[str, int] = {}
    events = 0
    routed = 0

    for _ in range(n_visitors):
        variant_id = manager.select_variant(experiment_id)
        if variant_id is None:
            break
        routed += 1
        per_variant[variant_id] = per_variant.get(variant_id, 0) + 1
        rates = true_rates.get(variant_id, {})

        manager.record_event(experiment_id, variant_id, EventKind.IMPRESSION)
        events += 1
        clicked = rng.random() < rates.get("click", 0.0)
        if clicked:
            manager.record_event(experiment_id, variant_id, EventKind.CLICK)
            events += 1
        if rng.random() < rates.get("engagement", 0.0):
            manager.record_event(experiment_id, variant_id, EventKind.ENGAGEMENT)
            events += 1
        if clicked and rng.random() < rates.get("conversion", 0.0):
            manager.record_event(experiment_id, variant_id, EventKind.CONVERSION)
            events += 1

    experiment = manager.get_experiment(experiment_id)
    summary = {
        "experiment_id": experiment_id,
        "visitors_routed": routed,
        "visitors_per_variant": per_variant,
        "events_sent": events,
        "status": experiment.status.value,
        "winner": experiment.winner,
        "confidence": experiment.confidence,
        "random_seed": random_seed,
    }
    logger.info(f"Simulation complete: {summary}")
    return summary
