#!/usr/bin/env python3
# python run_backtests.py --data clusters.json --max-tiers 20
import argparse
import datetime
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from effort_predictor.backtesting.framework import PredictionTierStat
from effort_predictor.clusters.cluster_data import ClusterData, fit_cluster_average_model, to_cluster_data
from effort_predictor.clusters.config import MAX_ALLOWED_CLUSTERS, ClusteringConfig
from effort_predictor.clusters.data_loader import DataLoader
from effort_predictor.clusters.location_graph_data import POINT_EXTRACTORS, to_location_graph_data
from effort_predictor.clusters.summary_stats import ClusterSummaryStats, ClusterSummaryStatsGenerator
from effort_predictor.models.fitted_models import LinearFitModel, PowerFitModel

AVERAGE_MODEL_FACTORIES = {
    'power': PowerFitModel,
    'linear': LinearFitModel,
}


def tier_stats_to_dicts(tier_stats: List[PredictionTierStat]) -> List[Dict[str, float]]:
    return [
        {'tier': i + 1, 'fraction_correct': stat.fraction_correct,
         'contributing_locations': stat.contributing_locations}
        for i, stat in enumerate(tier_stats)
    ]


def cluster_result(cluster_index: int, cluster_data: ClusterData,
                   average_models: Dict[str, Optional[str]]) -> Dict[str, Any]:
    """Summarize one cluster's backtest in a JSON-serializable dict"""
    return {
        'cluster': cluster_index,
        'location_count': len(cluster_data.location_graph_data_set),
        'taxa_count': len(cluster_data.visits_by_taxon_unique),
        'per_visit_tier_stats': tier_stats_to_dicts(cluster_data.avg_per_visit_tier_stats),
        'per_person_visit_tier_stats': tier_stats_to_dicts(cluster_data.avg_per_person_visit_tier_stats),
        'taxa_tier_stats': tier_stats_to_dicts(cluster_data.avg_taxa_tier_stats),
        'average_models': average_models,
        'predictions': [
            {
                'location_id': graph_data.location_id,
                'locality_name': graph_data.locality_name,
                'predicted_per_visit_diff': graph_data.predicted_per_visit_diff,
                'predicted_per_person_visit_diff': graph_data.predicted_per_person_visit_diff
            }
            for graph_data in cluster_data.location_graph_data_set
        ]
    }


def log_results(results_dir: Path, config: ClusteringConfig, cluster_results: List[Dict[str, Any]],
                summary_stats: ClusterSummaryStats, runtime: float) -> Path:
    """Append the cluster results and summary to a timestamped JSONL file"""
    results_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.datetime.now()
    log_path = results_dir / f"backtest_{timestamp.strftime('%Y%m%d_%H%M%S')}.jsonl"

    with open(log_path, 'a') as f:
        for result in cluster_results:
            entry = {'timestamp': timestamp.isoformat(), 'config': config.to_dict(), **result}
            f.write(json.dumps(entry) + '\n')
        summary_entry = {
            'timestamp': timestamp.isoformat(),
            'config': config.to_dict(),
            'summary': summary_stats.to_dict(),
            'runtime_seconds': runtime
        }
        f.write(json.dumps(summary_entry) + '\n')
    return log_path


def print_results(cluster_results: List[Dict[str, Any]], summary_stats: ClusterSummaryStats):
    """Print formatted results"""
    print("\n" + "=" * 50)
    print("BACKTEST RESULTS")
    print("=" * 50)
    print("Fraction correct: share of the top-k predicted that were actually top-k")

    for result in cluster_results:
        print(f"\nCluster {result['cluster']} ({result['location_count']} locations, "
              f"{result['taxa_count']} taxa):")
        for label, key in [('Per visit', 'per_visit_tier_stats'),
                           ('Per person-visit', 'per_person_visit_tier_stats'),
                           ('Next taxa', 'taxa_tier_stats')]:
            if result[key]:
                table = pd.DataFrame(result[key]).set_index('tier')
                print(f"  {label}:")
                print(table.to_string(float_format=lambda value: f"{value:.3f}"))
            else:
                print(f"  {label}: no predictions")
        for unit, formula in result['average_models'].items():
            if formula is not None:
                print(f"  Average {unit} model: {formula}")

    print("\nSummary (% correct):")
    for name, value in summary_stats.to_dict().items():
        print(f"  {name}: {value:.1f}")


def main():
    parser = argparse.ArgumentParser(description='Backtest species and taxa predictions for clustered locations')
    parser.add_argument('--data', type=str, required=True,
                        help='JSON or CSV file of location effort records by cluster')
    parser.add_argument('--max-points-to-regress', type=int, default=None,
                        help='Most recent points used in each fit (default: all)')
    parser.add_argument('--history-depth', type=int, default=None,
                        help='Number of most recent points to replay')
    parser.add_argument('--max-tiers', type=int, default=None,
                        help='Highest top-k tier to report')
    parser.add_argument('--average-model', choices=sorted(AVERAGE_MODEL_FACTORIES), default='power',
                        help='Model family averaged across each cluster')
    parser.add_argument('--weight-power', type=float, default=0.0,
                        help='Exponent of last x used to weight averaged models')
    parser.add_argument('--results-dir', type=str, default='backtest_results',
                        help='Directory receiving the JSONL results')
    parser.add_argument('--verbose', action='store_true', help='Log debug messages')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    start_time = time.time()
    loaded = DataLoader(args.data).load_data()

    # Command-line settings override those of the data file
    config_values = dict(loaded.config)
    for key, value in [('max_points_to_regress', args.max_points_to_regress),
                       ('prediction_history_sample_depth', args.history_depth),
                       ('max_prediction_tiers', args.max_tiers)]:
        if value is not None:
            config_values[key] = value
    if 'max_clusters' not in config_values and 'maxClusters' not in config_values:
        config_values['max_clusters'] = min(MAX_ALLOWED_CLUSTERS, max(1, len(loaded.clusters)))
    config = ClusteringConfig.from_dict(config_values)

    model_factory = AVERAGE_MODEL_FACTORIES[args.average_model]
    data_by_cluster = []
    cluster_results = []
    for i, raw_cluster in enumerate(loaded.clusters):
        location_graph_data_set = [to_location_graph_data(raw) for raw in raw_cluster.locations]
        cluster_data = to_cluster_data(config, raw_cluster.visits_by_taxon_unique, location_graph_data_set)
        data_by_cluster.append(cluster_data)

        average_models = {}
        for unit in ('per_visit', 'per_person_visit'):
            model = fit_cluster_average_model(location_graph_data_set, POINT_EXTRACTORS[unit],
                                              model_factory, args.weight_power)
            average_models[unit] = f"{model.get_formula()} (RMSE {model.rmse:.3f})" if model else None
        cluster_results.append(cluster_result(i, cluster_data, average_models))

    summary_stats = ClusterSummaryStatsGenerator(data_by_cluster).get_summary_stats()
    runtime = time.time() - start_time

    print_results(cluster_results, summary_stats)
    log_path = log_results(Path(args.results_dir), config, cluster_results, summary_stats, runtime)
    print(f"\nResults logged to: {log_path}")


if __name__ == "__main__":
    main()
