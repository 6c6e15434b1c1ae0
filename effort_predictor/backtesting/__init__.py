from effort_predictor.backtesting.framework import (
    PredictionTierStat,
    PredictionStrategy,
    PredictionStatsGenerator,
    TierStatAccumulator,
    sort_by_predictions,
)
