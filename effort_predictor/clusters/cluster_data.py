"""
ClusterData characterizes a single cluster: its locations, each holding its
forward-looking predictions, and the backtested accuracy of those predictions.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from effort_predictor.points import Point, PointSliceSpec, slice_point_set
from effort_predictor.models.fitted_models import FittedModel, FittedModelFactory, PowerFitModel
from effort_predictor.models.averager import CoefficientAverager, SampleAverager
from effort_predictor.backtesting.framework import PredictionTierStat, sort_by_predictions
from effort_predictor.backtesting.species_counts import (
    create_per_person_visit_stats_generator,
    create_per_visit_stats_generator,
)
from effort_predictor.backtesting.taxa_visits import generate_avg_taxa_tier_stats
from effort_predictor.clusters.config import ClusteringConfig
from effort_predictor.clusters.location_graph_data import LocationGraphData, PointExtractor

GetPredictedDiff = Callable[[LocationGraphData], Optional[float]]


@dataclass
class ClusterData:
    visits_by_taxon_unique: Dict[str, int]
    location_graph_data_set: List[LocationGraphData]
    avg_per_visit_tier_stats: List[PredictionTierStat] = field(default_factory=list)
    avg_per_person_visit_tier_stats: List[PredictionTierStat] = field(default_factory=list)
    avg_taxa_tier_stats: List[PredictionTierStat] = field(default_factory=list)


def sort_location_graph_data_set(location_graph_data_set: List[LocationGraphData],
                                 get_predicted_diff: GetPredictedDiff) -> None:
    """Sort locations by predicted diff, highest first, locations without predictions last"""
    sort_by_predictions(location_graph_data_set, get_predicted_diff, lambda graph_data: graph_data.location_id)


def sum_visits_by_taxon(location_graph_data_set: Sequence[LocationGraphData]) -> Dict[str, int]:
    visits_by_taxon = Counter()
    for graph_data in location_graph_data_set:
        visits_by_taxon.update(graph_data.visits_by_taxon_unique)
    return dict(visits_by_taxon)


def to_cluster_data(config: ClusteringConfig, visits_by_taxon_unique: Optional[Dict[str, int]],
                    location_graph_data_set: List[LocationGraphData]) -> ClusterData:
    """Backtest all predictions for one cluster

    Leaves each location holding its forward-looking per-visit and
    per-person-visit predictions.
    """
    if visits_by_taxon_unique is None:
        visits_by_taxon_unique = sum_visits_by_taxon(location_graph_data_set)

    logging.info(f"Backtesting cluster of {len(location_graph_data_set)} locations "
                 f"and {len(visits_by_taxon_unique)} taxa")

    avg_per_visit_tier_stats = create_per_visit_stats_generator(
        config, location_graph_data_set
    ).compute_average_stats()
    avg_per_person_visit_tier_stats = create_per_person_visit_stats_generator(
        config, location_graph_data_set
    ).compute_average_stats()
    avg_taxa_tier_stats = generate_avg_taxa_tier_stats(
        config, location_graph_data_set, visits_by_taxon_unique
    )

    return ClusterData(
        visits_by_taxon_unique=visits_by_taxon_unique,
        location_graph_data_set=location_graph_data_set,
        avg_per_visit_tier_stats=avg_per_visit_tier_stats,
        avg_per_person_visit_tier_stats=avg_per_person_visit_tier_stats,
        avg_taxa_tier_stats=avg_taxa_tier_stats
    )


def fit_cluster_average_model(location_graph_data_set: Sequence[LocationGraphData],
                              point_extractor: PointExtractor,
                              model_factory: FittedModelFactory = PowerFitModel,
                              weight_power: float = 0.0,
                              slice_spec: Optional[PointSliceSpec] = None) -> Optional[FittedModel]:
    """Fit each location's curve and average the fits into one model for the cluster

    Fixed-basis models are averaged by coefficient; others, such as power
    fits, by sampling and refitting. The average is scored against the
    pooled points of all contributing locations.

    Returns:
        The averaged model, or None if no location had enough points to fit
    """
    slice_spec = slice_spec or PointSliceSpec(min_point_count=3)
    averager = None
    pooled_points: List[Point] = []
    lowest_x = highest_x = None

    for graph_data in location_graph_data_set:
        points = slice_point_set(point_extractor(graph_data), slice_spec)
        if points is None or len(points) < 3:
            continue
        model = model_factory(points)
        if averager is None:
            averager = CoefficientAverager() if model.fixed_basis else SampleAverager(model_factory)
        averager.add_model(points, model, weight_power)

        pooled_points.extend(points)
        lowest_x = model.lowest_x if lowest_x is None else min(lowest_x, model.lowest_x)
        highest_x = model.highest_x if highest_x is None else max(highest_x, model.highest_x)

    if averager is None:
        return None

    average_model = averager.get_average_model(lowest_x, highest_x)
    average_model.evaluate(pooled_points)
    return average_model
