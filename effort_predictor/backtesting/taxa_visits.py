"""
Backtests predictions of which taxa a location will gain next. A taxon is
predicted for a location when other locations of the cluster have it but the
location does not yet; taxa found on more visits elsewhere rank higher.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Hashable, List, Mapping, Optional, Sequence

from effort_predictor.backtesting.framework import (
    PredictionStatsGenerator,
    PredictionStrategy,
    PredictionTierStat,
    TierStatAccumulator,
)
from effort_predictor.clusters.config import ClusteringConfig
from effort_predictor.clusters.location_graph_data import LocationGraphData


@dataclass
class TaxonVisitItem:
    taxon: str
    visits: int = 0  # 0 when the taxon isn't predicted


class TaxaVisitsStrategy(PredictionStrategy[TaxonVisitItem]):
    """Predicts a location's next taxa from the taxa of the rest of its cluster

    Args:
        other_visits_by_taxon: Visits on which each cluster taxon was found at
            the cluster's other locations
        graph_data: The location whose recent visits are replayed
        items: One item per cluster taxon
    """

    def __init__(self, other_visits_by_taxon: Mapping[str, int], graph_data: LocationGraphData,
                 items: Sequence[TaxonVisitItem]):
        self._items_by_taxon: Dict[str, TaxonVisitItem] = {item.taxon: item for item in items}
        self._other_visits_by_taxon = dict(other_visits_by_taxon)
        self._location_taxa = set(graph_data.visits_by_taxon_unique)

        self._recent_taxa: List[List[str]] = []
        for visit_taxa in graph_data.recent_taxa:
            known_taxa = [taxon for taxon in visit_taxa if taxon in self._items_by_taxon]
            if len(known_taxa) < len(visit_taxa):
                logging.warning(f"Ignoring recent taxa of location {graph_data.location_id} "
                                f"that are not in its cluster")
            self._recent_taxa.append(known_taxa)

    def get_item_key(self, item: TaxonVisitItem) -> Hashable:
        return item.taxon

    def get_predicted_value(self, item: TaxonVisitItem) -> Optional[float]:
        return item.visits if item.visits != 0 else None

    def set_predicted_value(self, item: TaxonVisitItem, value: Optional[float]) -> None:
        item.visits = int(value) if value is not None else 0

    def _taxa_found_after(self, points_elided: int) -> List[str]:
        """Return taxa first found on the last points_elided visits, in the order found"""
        if points_elided == 0:
            return []
        return [taxon for visit_taxa in self._recent_taxa[-points_elided:] for taxon in visit_taxa]

    def put_predictions_in_dataset(self, dataset: List[TaxonVisitItem], points_elided: int) -> None:
        if points_elided > len(self._recent_taxa):
            # Too little history to replay this many visits
            remaining_in_cluster = {}
        else:
            # Taxa known to the location as of points_elided visits ago
            known_taxa = self._location_taxa - set(self._taxa_found_after(points_elided))
            remaining_in_cluster = {
                taxon: visits for taxon, visits in self._other_visits_by_taxon.items()
                if taxon not in known_taxa
            }

        for item in dataset:
            item.visits = remaining_in_cluster.get(item.taxon, 0)

    def get_actual_value_sort(self, predicted_items: List[TaxonVisitItem],
                              points_elided: int) -> List[TaxonVisitItem]:
        # The actual ranking is the order in which the location found the taxa,
        # whether or not they were predicted.
        found_taxa = dict.fromkeys(self._taxa_found_after(points_elided))
        return [self._items_by_taxon[taxon] for taxon in found_taxa]


def generate_avg_taxa_tier_stats(config: ClusteringConfig,
                                 location_graph_data_set: Sequence[LocationGraphData],
                                 cluster_visits_by_taxon_unique: Mapping[str, int]) -> List[PredictionTierStat]:
    """Backtest next-taxon predictions for each location of a cluster

    Each location is tested assuming all other locations remain unchanged.
    The per-location averages are combined weighting each location by its
    number of recent visits.
    """
    accumulator = TierStatAccumulator(config.max_prediction_tiers)

    cluster_visits = Counter()
    for graph_data in location_graph_data_set:
        for taxon, visits in graph_data.visits_by_taxon_unique.items():
            if taxon in cluster_visits_by_taxon_unique:
                cluster_visits[taxon] += visits

    for graph_data in location_graph_data_set:
        # Visits of the cluster's taxa at the other locations of the cluster
        other_visits = cluster_visits.copy()
        for taxon, visits in graph_data.visits_by_taxon_unique.items():
            if taxon in other_visits:
                other_visits[taxon] -= visits
        other_visits = {taxon: visits for taxon, visits in other_visits.items() if visits > 0}

        items = [TaxonVisitItem(taxon) for taxon in cluster_visits_by_taxon_unique]
        generator = PredictionStatsGenerator(
            TaxaVisitsStrategy(other_visits, graph_data, items),
            items,
            config.prediction_history_sample_depth,
            config.max_prediction_tiers
        )
        location_stats = generator.compute_average_stats()
        accumulator.add(location_stats, weight=len(graph_data.recent_taxa))

    return accumulator.get_average_stats()
