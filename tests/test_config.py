import pytest

from effort_predictor.clusters.config import MAX_ALLOWED_CLUSTERS, ClusteringConfig


class TestClusteringConfig:
    """Test config defaults and validation."""

    def test_defaults(self):
        config = ClusteringConfig()

        assert config.max_clusters == 5
        assert config.max_points_to_regress is None
        assert config.prediction_history_sample_depth == 3
        assert config.max_prediction_tiers == 20

    def test_from_camel_case_dict(self):
        config = ClusteringConfig.from_dict({
            'maxClusters': 8,
            'maxPointsToRegress': 6,
            'predictionHistorySampleDepth': 2,
            'maxPredictionTiers': 10,
            'unrelated': True,
        })

        assert config == ClusteringConfig(8, 6, 2, 10)

    def test_from_snake_case_dict(self):
        config = ClusteringConfig.from_dict({'max_prediction_tiers': 4})
        assert config.max_prediction_tiers == 4
        assert config.max_clusters == 5

    def test_to_dict(self):
        assert ClusteringConfig(max_clusters=2).to_dict() == {
            'max_clusters': 2,
            'max_points_to_regress': None,
            'prediction_history_sample_depth': 3,
            'max_prediction_tiers': 20,
        }

    @pytest.mark.parametrize("kwargs", [
        {'max_clusters': 0},
        {'max_clusters': MAX_ALLOWED_CLUSTERS + 1},
        {'max_points_to_regress': 1},
        {'prediction_history_sample_depth': 0},
        {'max_prediction_tiers': 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ClusteringConfig(**kwargs)
