from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

MAX_ALLOWED_CLUSTERS = 50
MAX_VISITS_DOCKED = 3
PREDICTION_HISTORY_SAMPLE_DEPTH = 3

# camelCase keys as sent by the API layer
_CAMEL_CASE_KEYS = {
    'maxClusters': 'max_clusters',
    'maxPointsToRegress': 'max_points_to_regress',
    'predictionHistorySampleDepth': 'prediction_history_sample_depth',
    'maxPredictionTiers': 'max_prediction_tiers',
}


@dataclass
class ClusteringConfig:
    """Settings for analyzing the locations of a set of clusters

    Args:
        max_clusters: Maximum number of clusters requested
        max_points_to_regress: Most recent points fed to each fit; None for all
        prediction_history_sample_depth: Number of most recent points replayed
            when backtesting predictions
        max_prediction_tiers: Highest top-k tier reported
    """
    max_clusters: int = 5
    max_points_to_regress: Optional[int] = None
    prediction_history_sample_depth: int = PREDICTION_HISTORY_SAMPLE_DEPTH
    max_prediction_tiers: int = 20

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not 1 <= self.max_clusters <= MAX_ALLOWED_CLUSTERS:
            raise ValueError(f"max_clusters must be between 1 and {MAX_ALLOWED_CLUSTERS}, "
                             f"got {self.max_clusters}")
        if self.max_points_to_regress is not None and self.max_points_to_regress < 2:
            raise ValueError(f"max_points_to_regress must be at least 2, got {self.max_points_to_regress}")
        if self.prediction_history_sample_depth < 1:
            raise ValueError("prediction_history_sample_depth must be positive")
        if self.max_prediction_tiers < 1:
            raise ValueError("max_prediction_tiers must be positive")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'ClusteringConfig':
        """Create a config from snake_case or camelCase keys, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            key = _CAMEL_CASE_KEYS.get(key, key)
            if key in known:
                kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
