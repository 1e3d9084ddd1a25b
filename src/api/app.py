"""Flask API for the split-testing engine - routes traffic and ingests events."""
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(ROOT))

from flask import Flask, request, jsonify

from src.split_testing import (
    EngineConfig,
    ExperimentManager,
    ExperimentNotFoundError,
    ExperimentStateError,
    run_analysis,
)

logger = logging.getLogger(__name__)

MANAGER_KEY = "split_testing.manager"


def create_app(manager=None, config=None):
    """
    Build the API around one ExperimentManager.

    Args:
        manager: Manager to expose; a new one is created when omitted
        config: EngineConfig for a new manager; read from SPLIT_TESTING_*
                environment variables when omitted
    """
    app = Flask(__name__)
    if manager is None:
        manager = ExperimentManager(config=config or EngineConfig.from_env())
    app.extensions[MANAGER_KEY] = manager

    def _manager() -> ExperimentManager:
        return app.extensions[MANAGER_KEY]

    @app.errorhandler(ExperimentNotFoundError)
    def _not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ExperimentStateError)
    def _bad_state(e):
        return jsonify({"error": str(e)}), 409

    @app.errorhandler(ValueError)
    def _bad_request(e):
        return jsonify({"error": str(e)}), 400

    @app.route("/ping", methods=["GET"])
    def ping():
        return "pong"

    @app.route("/experiments", methods=["POST"])
    def create_experiment():
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "Empty request"}), 400
        for key in ("name", "content_id", "variants", "primary_metric"):
            if key not in data:
                return jsonify({"error": f"Missing field '{key}'"}), 400
        experiment = _manager().create_experiment(
            name=data["name"],
            content_id=data["content_id"],
            variant_definitions=data["variants"],
            primary_metric=data["primary_metric"],
            traffic_split=data.get("traffic_split"),
            minimum_sample_size=data.get("minimum_sample_size"),
            significance_level=data.get("significance_level"),
        )
        return jsonify(experiment.to_dict()), 201

    @app.route("/experiments", methods=["GET"])
    def list_experiments():
        return jsonify([e.to_dict() for e in _manager().list_experiments()])

    @app.route("/experiments/<experiment_id>", methods=["GET"])
    def get_experiment(experiment_id):
        experiment = _manager().get_experiment(experiment_id)
        if experiment is None:
            raise ExperimentNotFoundError(experiment_id)
        return jsonify(experiment.to_dict())

    @app.route("/experiments/<experiment_id>/start", methods=["POST"])
    def start_experiment(experiment_id):
        return jsonify(_manager().start_experiment(experiment_id).to_dict())

    @app.route("/experiments/<experiment_id>/stop", methods=["POST"])
    def stop_experiment(experiment_id):
        return jsonify(_manager().stop_experiment(experiment_id).to_dict())

    @app.route("/experiments/<experiment_id>/variant", methods=["GET"])
    def select_variant(experiment_id):
        return jsonify({"variant_id": _manager().select_variant(experiment_id)})

    @app.route("/experiments/<experiment_id>/events", methods=["POST"])
    def record_event(experiment_id):
        data = request.get_json(silent=True)
        if not data or "variant_id" not in data or "event" not in data:
            return jsonify({"error": "Body must contain 'variant_id' and 'event'"}), 400
        _manager().record_event(experiment_id, data["variant_id"], data["event"])
        return "", 202

    @app.route("/experiments/<experiment_id>/evaluate", methods=["POST"])
    def evaluate(experiment_id):
        result = _manager().evaluate(experiment_id)
        return jsonify({"result": result.to_dict() if result else None})

    @app.route("/experiments/<experiment_id>/analysis", methods=["GET"])
    def analysis(experiment_id):
        experiment = _manager().get_experiment(experiment_id)
        if experiment is None:
            raise ExperimentNotFoundError(experiment_id)
        return jsonify(run_analysis(experiment).to_dict())

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(host="0.0.0.0", port=5000)
