import math
from abc import abstractmethod
from typing import Hashable, List, Optional, Sequence

from effort_predictor.points import Point, PointSliceSpec, slice_point_set
from effort_predictor.models.fitted_models import PowerFitModel
from effort_predictor.backtesting.framework import PredictionStatsGenerator, PredictionStrategy
from effort_predictor.clusters.config import ClusteringConfig
from effort_predictor.clusters.location_graph_data import LocationGraphData


def predict_delta_species(data_points: Sequence[Point], slice_spec: PointSliceSpec) -> Optional[float]:
    """Predict the number of additional species the next unit of effort yields

    Args:
        data_points: The location's full cumulative species curve
        slice_spec: Window of data_points to predict from

    Returns:
        The predicted delta, or None if too few points remain to predict
    """
    points = slice_point_set(data_points, slice_spec)

    # No prediction for locations having only one data point
    if points is None or len(points) <= 1:
        return None

    # With only two points, predict from the slope of the first two points
    if len(points) == 2:
        first, second = data_points[0], data_points[1]
        if second.x == first.x:
            return 0.0
        return (second.y - first.y) / (second.x - first.x)

    model = PowerFitModel(points)
    last = points[-1]
    delta = model.fitted_y(last.x + 1) - last.y
    # The curve may fall below the last point near the end of its range
    return delta if delta >= 0 else 0.0


class SpeciesCountStrategy(PredictionStrategy[LocationGraphData]):
    """Ranks locations by the species expected from one more unit of effort"""

    def __init__(self, max_points_to_regress: Optional[int] = None):
        self.max_points_to_regress = max_points_to_regress

    @abstractmethod
    def get_all_points(self, graph_data: LocationGraphData) -> List[Point]:
        pass

    def get_item_key(self, graph_data: LocationGraphData) -> Hashable:
        return graph_data.location_id

    def put_predictions_in_dataset(self, dataset: List[LocationGraphData], points_elided: int) -> None:
        slice_spec = PointSliceSpec(
            min_point_count=0,
            max_point_count=self.max_points_to_regress or math.inf,
            recent_points_to_ignore=points_elided
        )
        for graph_data in dataset:
            self.set_predicted_value(
                graph_data, predict_delta_species(self.get_all_points(graph_data), slice_spec)
            )

    def to_actual_delta(self, graph_data: LocationGraphData, points_elided: int) -> float:
        """Return the slope of the curve right after the last point kept"""
        points = self.get_all_points(graph_data)
        next_index = len(points) - points_elided
        prior, next_point = points[next_index - 1], points[next_index]
        return (next_point.y - prior.y) / (next_point.x - prior.x)

    def get_actual_value_sort(self, predicted_items: List[LocationGraphData],
                              points_elided: int) -> List[LocationGraphData]:
        # Locations with equal deltas rank by location ID
        return sorted(
            predicted_items,
            key=lambda graph_data: (-self.to_actual_delta(graph_data, points_elided), graph_data.location_id)
        )


class PerVisitSpeciesCountStrategy(SpeciesCountStrategy):

    def get_all_points(self, graph_data: LocationGraphData) -> List[Point]:
        return graph_data.per_visit_points

    def get_predicted_value(self, graph_data: LocationGraphData) -> Optional[float]:
        return graph_data.predicted_per_visit_diff

    def set_predicted_value(self, graph_data: LocationGraphData, value: Optional[float]) -> None:
        graph_data.predicted_per_visit_diff = value


class PerPersonVisitSpeciesCountStrategy(SpeciesCountStrategy):

    def get_all_points(self, graph_data: LocationGraphData) -> List[Point]:
        return graph_data.per_person_visit_points

    def get_predicted_value(self, graph_data: LocationGraphData) -> Optional[float]:
        return graph_data.predicted_per_person_visit_diff

    def set_predicted_value(self, graph_data: LocationGraphData, value: Optional[float]) -> None:
        graph_data.predicted_per_person_visit_diff = value


def create_per_visit_stats_generator(config: ClusteringConfig,
                                     dataset: List[LocationGraphData]) -> PredictionStatsGenerator:
    return PredictionStatsGenerator(
        PerVisitSpeciesCountStrategy(config.max_points_to_regress),
        dataset,
        config.prediction_history_sample_depth,
        config.max_prediction_tiers
    )


def create_per_person_visit_stats_generator(config: ClusteringConfig,
                                            dataset: List[LocationGraphData]) -> PredictionStatsGenerator:
    return PredictionStatsGenerator(
        PerPersonVisitSpeciesCountStrategy(config.max_points_to_regress),
        dataset,
        config.prediction_history_sample_depth,
        config.max_prediction_tiers
    )
