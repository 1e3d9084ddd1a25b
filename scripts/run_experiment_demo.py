#!/usr/bin/env python3
"""
Run full split-test demo: create -> start -> simulate traffic -> analyze -> report.

Creates artifacts/experiments/<id>/analysis.json, variants.csv and exec_summary.html.
"""

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))


def main():
    logging.basicConfig(level=logging.INFO)

    from src.split_testing import (
        ExperimentManager,
        render_exec_summary,
        run_analysis,
        run_traffic_simulation,
    )

    artifacts_dir = ROOT / "artifacts" / "experiments"
    artifacts_dir.mkdir(parents=True, exist_ok=True)

    manager = ExperimentManager()

    print("1. Creating experiment...")
    experiment = manager.create_experiment(
        name="Headline test",
        content_id="post-demo-001",
        variant_definitions=[
            {"id": "control", "name": "Control", "changes": {"headline": "10 tips for better sleep"}},
            {"id": "question", "name": "Question headline", "changes": {"headline": "Sleeping badly?"}},
            {"id": "number", "name": "Big number", "changes": {"headline": "97% of people sleep wrong"}},
        ],
        primary_metric="clicks",
        traffic_split=[40, 30, 30],
    )
    manager.start_experiment(experiment.id)
    print(f"   {experiment.id}: {[v.id for v in experiment.variants]}")

    print("2. Simulating traffic...")
    summary = run_traffic_simulation(
        manager,
        experiment.id,
        true_rates={
            "control": {"click": 0.040, "engagement": 0.010, "conversion": 0.10},
            "question": {"click": 0.046, "engagement": 0.012, "conversion": 0.10},
            "number": {"click": 0.060, "engagement": 0.015, "conversion": 0.12},
        },
        n_visitors=50000,
    )
    print(f"   Routed {summary['visitors_routed']} visitors: {summary['visitors_per_variant']}")
    print(f"   Status: {summary['status']}, winner: {summary['winner']}")

    print("3. Running analysis...")
    result = run_analysis(experiment, artifacts_dir=str(artifacts_dir))
    print(f"   Recommendation: {result.recommendation} - {result.recommendation_reason}")

    print("4. Generating executive summary...")
    render_exec_summary(result.to_dict(), experiment.id, artifacts_dir=str(artifacts_dir))

    out_dir = artifacts_dir / experiment.id
    print(f"\n[OK] Demo complete. Artifacts in {out_dir}:")
    for f in sorted(out_dir.iterdir()):
        print(f"   - {f.name}")


if __name__ == "__main__":
    main()
