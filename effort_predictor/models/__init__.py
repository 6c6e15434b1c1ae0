from effort_predictor.models.regression import Regression
from effort_predictor.models.fitted_models import (
    FittedModel,
    LinearFitModel,
    QuadraticFitModel,
    LogFitModel,
    PowerFitModel,
    DEFAULT_SEARCH_PARAMS,
)
from effort_predictor.models.averager import (
    ModelAverager,
    CoefficientAverager,
    SampleAverager,
    AVERAGED_MODEL_POINTS,
)
