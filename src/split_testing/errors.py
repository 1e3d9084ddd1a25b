"""Exceptions raised by the split-testing engine."""


class ExperimentNotFoundError(LookupError):
    """Experiment id is not in the store."""

    def __init__(self, experiment_id: str):
        super().__init__(f"Experiment {experiment_id} not found")
        self.experiment_id = experiment_id


class ExperimentStateError(Exception):
    """Lifecycle transition is not allowed from the experiment's current status."""
    pass
