import copy
import logging
from abc import ABC, abstractmethod
import numpy as np
from typing import Callable, List, Sequence

from effort_predictor.points import Point
from effort_predictor.models.fitted_models import FittedModel, FittedModelFactory

AVERAGED_MODEL_POINTS = 20  # shouldn't need very many


class ModelAverager(ABC):
    """Combines the models of several locations into one representative model

    Each model is weighted by lastX**weight_power, where lastX is the x of the
    last point its location was fit to. A weight_power of 0 weights every
    model equally; larger powers favor locations with longer histories.
    """

    @abstractmethod
    def add_model(self, data_points: Sequence[Point], model: FittedModel, weight_power: float) -> None:
        """Add a model fit to data_points"""
        pass

    @abstractmethod
    def get_average_model(self, lowest_x: float, highest_x: float) -> FittedModel:
        """Return the weighted average model spanning [lowest_x, highest_x]"""
        pass

    @staticmethod
    def _to_weight(data_points: Sequence[Point], weight_power: float) -> float:
        last_x = data_points[-1].x
        return float(last_x ** weight_power)


class CoefficientAverager(ModelAverager):
    """Averages coefficients position by position

    Only meaningful when every model shares the same fixed basis, such as a
    set of linear fits.
    """

    def __init__(self):
        self._base_model = None
        self._weighted_coef_sums: List[float] = []
        self._coef_sums: List[float] = []
        self._model_count = 0
        self._total_weight = 0.0

    def add_model(self, data_points: Sequence[Point], model: FittedModel, weight_power: float) -> None:
        if not model.fixed_basis:
            raise ValueError(f"Can't average coefficients of a {model.name}; its basis varies per model")
        if self._base_model is not None and type(model) is not type(self._base_model):
            raise ValueError(f"Can't average a {model.name} with a {self._base_model.name}")

        coefs = model.regression.coefs
        weight = self._to_weight(data_points, weight_power)
        if self._base_model is None:
            self._base_model = model
            self._weighted_coef_sums = [weight * coef for coef in coefs]
            self._coef_sums = list(coefs)
        else:
            for i, coef in enumerate(coefs):
                self._weighted_coef_sums[i] += weight * coef
                self._coef_sums[i] += coef
        self._model_count += 1
        self._total_weight += weight

    def get_average_model(self, lowest_x: float, highest_x: float) -> FittedModel:
        if self._base_model is None:
            raise ValueError("No models to average")

        if self._total_weight > 0:
            averaged_coefs = [s / self._total_weight for s in self._weighted_coef_sums]
        else:
            logging.warning("Averaged models have zero total weight; weighting them equally")
            averaged_coefs = [s / self._model_count for s in self._coef_sums]

        # Copy so the base model keeps its own fit
        average_model = copy.deepcopy(self._base_model)
        average_model.regression.coefs = averaged_coefs
        average_model.lowest_x = lowest_x
        average_model.highest_x = highest_x
        return average_model


class SampleAverager(ModelAverager):
    """Averages the curves at sample points and refits a model to the averages

    Needed for power fits, whose exponents vary from model to model. The
    returned model has residuals only for the sampled averages; call its
    evaluate() with the pooled raw points to get a meaningful RMSE.
    """

    def __init__(self, model_factory: FittedModelFactory, sample_count: int = AVERAGED_MODEL_POINTS):
        if sample_count < 2:
            raise ValueError("Sample averaging needs at least 2 samples")
        self._model_factory = model_factory
        self._sample_count = sample_count
        self._fitted_ys: List[Callable[[float], float]] = []
        self._weights: List[float] = []

    def add_model(self, data_points: Sequence[Point], model: FittedModel, weight_power: float) -> None:
        self._fitted_ys.append(model.fitted_y)
        self._weights.append(self._to_weight(data_points, weight_power))

    def get_average_model(self, lowest_x: float, highest_x: float) -> FittedModel:
        if not self._fitted_ys:
            raise ValueError("No models to average")

        weights = np.array(self._weights, dtype=float)
        if weights.sum() <= 0:
            logging.warning("Averaged models have zero total weight; weighting them equally")
            weights = np.ones(len(self._weights))

        points = []
        for x in np.linspace(lowest_x, highest_x, self._sample_count):
            ys = np.array([fitted_y(float(x)) for fitted_y in self._fitted_ys])
            points.append(Point(float(x), float(np.average(ys, weights=weights))))
        return self._model_factory(points)
