"""End-to-end: simulate -> analyze -> report produces non-empty artifacts."""
import json
import shutil
import tempfile
from pathlib import Path

import pandas as pd
import pytest
from src.split_testing.analyze import run_analysis, variant_frame
from src.split_testing.config import EngineConfig
from src.split_testing.manager import ExperimentManager
from src.split_testing.report import render_exec_summary
from src.split_testing.simulate import run_traffic_simulation

VARIANTS = [
    {"id": "weak", "name": "Weak thumbnail"},
    {"id": "strong", "name": "Strong thumbnail"},
]


@pytest.fixture
def temp_artifacts_dir():
    """Temporary directory for experiment artifacts."""
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def manager():
    return ExperimentManager(config=EngineConfig(random_seed=42))


def test_e2e_simulate_analyze_report(manager, temp_artifacts_dir):
    """Simulation -> winner -> analysis.json, variants.csv, exec_summary.html."""
    exp = manager.create_experiment("Thumbs", "video-9", VARIANTS, "clicks")
    manager.start_experiment(exp.id)

    summary = run_traffic_simulation(
        manager,
        exp.id,
        true_rates={"weak": {"click": 0.02}, "strong": {"click": 0.08}},
        n_visitors=20000,
    )
    assert summary["status"] == "completed"
    assert summary["winner"] == "strong"
    assert summary["visitors_routed"] < 20000  # stopped at completion

    result = run_analysis(exp, artifacts_dir=temp_artifacts_dir)
    assert result.recommendation == "apply"
    assert result.winner == "strong"

    render_exec_summary(result.to_dict(), exp.id, artifacts_dir=temp_artifacts_dir)

    out_dir = Path(temp_artifacts_dir) / exp.id
    assert (out_dir / "analysis.json").exists()
    assert (out_dir / "variants.csv").exists()
    html = (out_dir / "exec_summary.html").read_text()
    assert "Strong thumbnail (winner)" in html
    assert "APPLY" in html

    with open(out_dir / "analysis.json") as f:
        saved = json.load(f)
    assert saved["experiment_id"] == exp.id
    assert len(saved["variant_stats"]) == 2

    table = pd.read_csv(out_dir / "variants.csv")
    assert list(table["variant_id"]) == ["weak", "strong"]


def test_simulation_stops_when_paused(manager):
    """A paused experiment routes no traffic."""
    exp = manager.create_experiment("t", "c", VARIANTS, "clicks")
    manager.start_experiment(exp.id)
    manager.stop_experiment(exp.id)
    summary = run_traffic_simulation(manager, exp.id, {}, n_visitors=100)
    assert summary["visitors_routed"] == 0
    assert summary["status"] == "paused"


def test_variant_frame_shares(manager):
    """Observed shares follow impressions, expected shares follow the split."""
    exp = manager.create_experiment("t", "c", VARIANTS, "clicks", [25, 75])
    manager.start_experiment(exp.id)
    for _ in range(30):
        manager.record_event(exp.id, "weak", "impression")
    for _ in range(90):
        manager.record_event(exp.id, "strong", "impression")
    df = variant_frame(exp.registry.snapshot(), exp.traffic_split, exp.primary_metric)
    assert list(df["expected_share"]) == [0.25, 0.75]
    assert list(df["observed_share"]) == [0.25, 0.75]


def test_analysis_draft(manager):
    """Draft experiments are analyzed without traffic."""
    exp = manager.create_experiment("t", "c", VARIANTS, "clicks")
    result = run_analysis(exp)
    assert result.recommendation == "continue"
    assert result.current_sample_size == 0
    assert result.srm_passed
    assert result.z_score is None


def test_analysis_detects_srm(manager):
    """900/100 impressions on a 50/50 split -> hold."""
    exp = manager.create_experiment("t", "c", VARIANTS, "clicks", minimum_sample_size=10 ** 6)
    manager.start_experiment(exp.id)
    for _ in range(900):
        manager.record_event(exp.id, "weak", "impression")
    for _ in range(100):
        manager.record_event(exp.id, "strong", "impression")
    result = run_analysis(exp)
    assert not result.srm_passed
    assert result.recommendation == "hold"


def test_analysis_paused_is_hold(manager):
    """Paused experiments are held."""
    exp = manager.create_experiment("t", "c", VARIANTS, "clicks")
    manager.start_experiment(exp.id)
    manager.stop_experiment(exp.id)
    assert run_analysis(exp).recommendation == "hold"


def test_analysis_estimates_required_sample(manager):
    """A small, non-significant lift reports impressions still needed."""
    exp = manager.create_experiment("t", "c", VARIANTS, "clicks", minimum_sample_size=10 ** 6)
    manager.start_experiment(exp.id)
    for variant_id, clicks in (("weak", 45), ("strong", 50)):
        for _ in range(1000):
            manager.record_event(exp.id, variant_id, "impression")
        for _ in range(clicks):
            manager.record_event(exp.id, variant_id, "click")
    result = run_analysis(exp)
    assert result.leader == "strong"
    assert result.runner_up == "weak"
    assert result.confidence == 0.0
    assert result.required_impressions_per_arm > 10000
    assert result.recommendation == "continue"
    assert exp.status.value == "running"  # analysis never completes an experiment
