from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence

from effort_predictor.backtesting.framework import PredictionTierStat
from effort_predictor.clusters.cluster_data import ClusterData


@dataclass
class ClusterSummaryStats:
    """Cross-cluster prediction accuracies, as percentages"""
    avg_top10_per_visit_caves: float = 0.0
    avg_top20_per_visit_caves: float = 0.0
    avg_top10_per_person_visit_caves: float = 0.0
    avg_top20_per_person_visit_caves: float = 0.0
    avg_top3_next_taxa: float = 0.0
    avg_top6_next_taxa: float = 0.0
    general_caves: float = 0.0
    general_taxa: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


# (tier stats attribute, first tier, last tier, summary field)
_SUMMARIZED_TIERS = [
    ('avg_per_visit_tier_stats', 1, 10, 'avg_top10_per_visit_caves'),
    ('avg_per_visit_tier_stats', 11, 20, 'avg_top20_per_visit_caves'),
    ('avg_per_person_visit_tier_stats', 1, 10, 'avg_top10_per_person_visit_caves'),
    ('avg_per_person_visit_tier_stats', 11, 20, 'avg_top20_per_person_visit_caves'),
    ('avg_taxa_tier_stats', 1, 3, 'avg_top3_next_taxa'),
    ('avg_taxa_tier_stats', 4, 6, 'avg_top6_next_taxa'),
]


class ClusterSummaryStatsGenerator:
    """Combines the tier stats of clusters, weighting each by its location count"""

    def __init__(self, data_by_cluster: Sequence[ClusterData]):
        self.data_by_cluster = data_by_cluster

    def get_summary_stats(self) -> ClusterSummaryStats:
        weighted_sums = {summary_field: 0.0 for _, _, _, summary_field in _SUMMARIZED_TIERS}
        location_counts = {summary_field: 0 for _, _, _, summary_field in _SUMMARIZED_TIERS}

        for cluster_data in self.data_by_cluster:
            location_count = len(cluster_data.location_graph_data_set)
            for stats_attr, from_top_n, thru_top_n, summary_field in _SUMMARIZED_TIERS:
                stat = get_nearest_stat(from_top_n, thru_top_n, getattr(cluster_data, stats_attr))
                if stat is not None:
                    weighted_sums[summary_field] += stat * location_count
                    location_counts[summary_field] += location_count

        stats = ClusterSummaryStats()
        for summary_field, weighted_sum in weighted_sums.items():
            count = location_counts[summary_field]
            setattr(stats, summary_field, 100 * weighted_sum / count if count > 0 else 0.0)

        stats.general_caves = max(
            _headline(stats.avg_top10_per_visit_caves, stats.avg_top20_per_visit_caves),
            _headline(stats.avg_top10_per_person_visit_caves, stats.avg_top20_per_person_visit_caves)
        )
        stats.general_taxa = _headline(stats.avg_top3_next_taxa, stats.avg_top6_next_taxa)
        return stats


def get_nearest_stat(from_top_n: int, thru_top_n: int,
                     tier_stats: List[PredictionTierStat]) -> Optional[float]:
    """Return fraction correct of the highest tier in from_top_n..thru_top_n that has stats"""
    for n in range(thru_top_n, from_top_n - 1, -1):
        if n <= len(tier_stats):
            return tier_stats[n - 1].fraction_correct
    return None


def _headline(top_stat: float, next_stat: float) -> float:
    if next_stat == 0:
        return top_stat
    return (top_stat + next_stat) / 2
