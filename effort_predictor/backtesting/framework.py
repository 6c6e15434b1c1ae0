"""
Framework for assessing how well a ranking of items predicts what actually
happened next. Rankings are assessed separately for each top N items (each
"tier"), by replaying history with the most recent points withheld.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, List, Optional, TypeVar

T = TypeVar('T')


@dataclass
class PredictionTierStat:
    """Accuracy of the top-k predictions for one tier k

    Args:
        fraction_correct: Fraction of the top k predicted items that were
            actually among the top k
        contributing_locations: Number of items the fraction is over, which
            is k unless trimmed for lack of data
    """
    fraction_correct: float
    contributing_locations: float


def sort_by_predictions(dataset: List[T], get_predicted_value: Callable[[T], Optional[float]],
                        get_tiebreak: Optional[Callable[[T], Any]] = None) -> None:
    """Sort dataset in place by predicted value, highest first, with None last

    Ties are ordered by get_tiebreak(item) when given. Otherwise the sort is
    stable, so ties keep their existing order.
    """
    def sort_key(item):
        value = get_predicted_value(item)
        tiebreak = get_tiebreak(item) if get_tiebreak is not None else 0
        return (value is None, -value if value is not None else 0.0, tiebreak)

    dataset.sort(key=sort_key)


class PredictionStrategy(ABC, Generic[T]):
    """Item-specific operations that PredictionStatsGenerator needs

    Implementations own the meaning of a prediction: a fitted curve's next
    delta for locations, a remaining visit count for taxa, and so on.
    """

    @abstractmethod
    def get_item_key(self, item: T) -> Hashable:
        """Return a sortable value uniquely identifying item within the dataset"""
        pass

    @abstractmethod
    def get_predicted_value(self, item: T) -> Optional[float]:
        """Return the item's current prediction, or None if it has none"""
        pass

    @abstractmethod
    def set_predicted_value(self, item: T, value: Optional[float]) -> None:
        pass

    @abstractmethod
    def put_predictions_in_dataset(self, dataset: List[T], points_elided: int) -> None:
        """Set every item's prediction as of points_elided recent points ago"""
        pass

    @abstractmethod
    def get_actual_value_sort(self, predicted_items: List[T], points_elided: int) -> List[T]:
        """Return the items ranked by what actually happened, best first

        The ranking must not depend on the order of predicted_items, so that
        repeated backtests over a reordered dataset agree.
        """
        pass

    def sort_dataset(self, dataset: List[T]) -> None:
        sort_by_predictions(dataset, self.get_predicted_value, self.get_item_key)


class TierStatAccumulator:
    """Accumulates tier stats as weighted averages across trials

    Each tier stat added is weighted by its own contributing_locations unless
    the caller supplies a weight. Only tiers populated by some trial are
    reported.
    """

    def __init__(self, max_tiers: int):
        self.max_tiers = max_tiers
        self._weighted_fractions = [0.0] * max_tiers
        self._weighted_contributions = [0.0] * max_tiers
        self._weights = [0.0] * max_tiers
        self._max_populated_tiers = 0

    def add(self, tier_stats: List[PredictionTierStat], weight: Optional[float] = None) -> None:
        tier_stats = tier_stats[:self.max_tiers]
        for i, stat in enumerate(tier_stats):
            stat_weight = stat.contributing_locations if weight is None else weight
            self._weighted_fractions[i] += stat.fraction_correct * stat_weight
            self._weighted_contributions[i] += stat.contributing_locations * stat_weight
            self._weights[i] += stat_weight
        self._max_populated_tiers = max(self._max_populated_tiers, len(tier_stats))

    def get_average_stats(self) -> List[PredictionTierStat]:
        average_stats = []
        for i in range(self._max_populated_tiers):
            weight = self._weights[i]
            if weight > 0:
                average_stats.append(PredictionTierStat(
                    fraction_correct=self._weighted_fractions[i] / weight,
                    contributing_locations=self._weighted_contributions[i] / weight
                ))
            else:
                # No trial gave this tier any weight
                average_stats.append(PredictionTierStat(fraction_correct=0.0, contributing_locations=0))
        return average_stats


class PredictionStatsGenerator(Generic[T]):
    """Backtests a strategy's predictions over a dataset

    compute_average_stats() mutates the items' prediction slots and reorders
    the dataset in place, so the dataset must not be shared with a concurrent
    analysis. On return every item holds its forward-looking prediction.
    """

    def __init__(self, strategy: PredictionStrategy[T], dataset: List[T],
                 prediction_history_sample_depth: int, max_prediction_tiers: int):
        self.strategy = strategy
        self.dataset = dataset
        self.prediction_history_sample_depth = prediction_history_sample_depth
        self.max_prediction_tiers = max_prediction_tiers

    def compute_average_stats(self) -> List[PredictionTierStat]:
        """Average the tier stats of predictions made 1..depth points ago

        Returns:
            One PredictionTierStat per tier, up to the highest tier populated
            by any trial; empty when no trial had predictions
        """
        accumulator = TierStatAccumulator(self.max_prediction_tiers)

        # Each trial hides the most recent points_elided points, so that the
        # first hidden point tests the prediction made without it.
        for points_elided in range(self.prediction_history_sample_depth, 0, -1):
            self.strategy.put_predictions_in_dataset(self.dataset, points_elided)
            tier_stats = self.compute_prediction_tier_stats(points_elided)
            if tier_stats is None:
                logging.debug(f"No predictions with {points_elided} points elided")
                continue
            accumulator.add(tier_stats)

        # Leave genuine predictions in the dataset rather than backtest ones.
        self.strategy.put_predictions_in_dataset(self.dataset, 0)

        return accumulator.get_average_stats()

    def compute_prediction_tier_stats(self, points_elided: int) -> Optional[List[PredictionTierStat]]:
        """Compare the predicted ranking with the actual one for a single trial

        Returns:
            Tier stats for tiers 1..N, where N is at most the number of items
            actually ranked, or None if no item has a prediction
        """
        strategy = self.strategy
        strategy.sort_dataset(self.dataset)

        predicted_items = [item for item in self.dataset
                           if strategy.get_predicted_value(item) is not None]
        if not predicted_items:
            return None

        max_tiers = self.max_prediction_tiers
        predicted_keys = [strategy.get_item_key(item) for item in predicted_items[:max_tiers]]
        actual_items = strategy.get_actual_value_sort(predicted_items, points_elided)[:max_tiers]
        actual_offsets = {strategy.get_item_key(item): offset for offset, item in enumerate(actual_items)}

        # A predicted item counts toward every tier that includes it on both
        # the predicted side and the actual side.
        correct_counts = [0] * max_tiers
        for predicted_offset, key in enumerate(predicted_keys):
            actual_offset = actual_offsets.get(key)
            if actual_offset is not None:
                for j in range(max(predicted_offset, actual_offset), max_tiers):
                    correct_counts[j] += 1

        tier_stats = [
            PredictionTierStat(fraction_correct=correct_counts[i] / (i + 1), contributing_locations=i + 1)
            for i in range(max_tiers)
        ]

        # Tiers beyond the number of actually ranked items are uninformative.
        return tier_stats[:len(actual_items)]
