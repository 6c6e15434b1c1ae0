import math
import logging
from abc import ABC, abstractmethod
import numpy as np
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from effort_predictor.points import Point
from effort_predictor.models.regression import Regression, shorten_value

MODEL_COEF_PRECISION = 3

# Search over the exponent P of y = A*x**P + B
DEFAULT_SEARCH_PARAMS = {
    'lower_bound': 0.001,       # Lowest exponent considered
    'upper_bound': 3.0,         # Highest exponent considered
    'initial_partitions': 8,    # Steps of the coarse scan
    'max_search_depth': 8       # Halvings of the binary refinement
}

FittedModelFactory = Callable[[Sequence[Point]], 'FittedModel']
RegressionFactory = Callable[[Sequence[Point], float], Regression]


class FittedModel(ABC):
    """Base class for a curve fit to one set of effort points"""

    name = 'fit'
    # Whether every instance shares the same basis, so that coefficients of
    # separate fits can be averaged position by position.
    fixed_basis = True

    def __init__(self, data_points: Sequence[Point]):
        self.lowest_x = math.inf
        self.highest_x = 0.0
        for point in data_points:
            self.lowest_x = min(self.lowest_x, point.x)
            self.highest_x = max(self.highest_x, point.x)
        self.regression: Optional[Regression] = None

    @abstractmethod
    def get_formula(self) -> str:
        """Return the fitted equation as plain text"""
        pass

    @property
    def rmse(self) -> float:
        return self.regression.rmse

    @property
    def residuals(self) -> List[Point]:
        return self.regression.residuals

    def fitted_y(self, x: float) -> float:
        return self.regression.fitted_y(x)

    def evaluate(self, data_points: Sequence[Point]) -> None:
        """Score the model against data_points without refitting"""
        self.regression.evaluate(data_points)

    def get_model_points(self, point_count: int) -> List[Point]:
        """Sample point_count evenly spaced points of the curve over its x range

        Samples with negative y are dropped, since a cumulative count can't be
        negative and curves may dip below zero near the edges of the range.
        """
        model_points = []
        for x in np.linspace(self.lowest_x, self.highest_x, point_count):
            y = self.fitted_y(float(x))
            if y >= 0:
                model_points.append(Point(float(x), y))
        return model_points


class LinearFitModel(FittedModel):
    """y = Ax + B"""

    name = 'linear fit'

    def __init__(self, data_points: Sequence[Point]):
        super().__init__(data_points)
        self.regression = Regression(
            lambda x: [x, 1.0],
            lambda coefs, x: coefs[0] * x + coefs[1],
            data_points
        )

    def get_formula(self) -> str:
        coefs = self.regression.coefs
        return f"y = {_coef_text(coefs[0], True)} x {_coef_text(coefs[1])}"


class QuadraticFitModel(FittedModel):
    """y = Ax^2 + Bx + C"""

    name = 'quadratic fit'

    def __init__(self, data_points: Sequence[Point]):
        super().__init__(data_points)
        self.regression = Regression(
            lambda x: [x * x, x, 1.0],
            lambda coefs, x: coefs[0] * x * x + coefs[1] * x + coefs[2],
            data_points
        )

    def get_formula(self) -> str:
        coefs = self.regression.coefs
        return (f"y = {_coef_text(coefs[0], True)} x^2 {_coef_text(coefs[1])} x "
                f"{_coef_text(coefs[2])}")


class LogFitModel(FittedModel):
    """y = A ln(x) + B, for positive x only"""

    name = 'log fit'

    def __init__(self, data_points: Sequence[Point]):
        super().__init__(data_points)
        self.regression = Regression(
            lambda x: [math.log(x), 1.0],
            lambda coefs, x: coefs[0] * math.log(x) + coefs[1],
            data_points
        )

    def get_formula(self) -> str:
        coefs = self.regression.coefs
        return f"y = {_coef_text(coefs[0], True)} ln(x) {_coef_text(coefs[1])}"


class PowerFitModel(FittedModel):
    """Fits y = Ax^P + B by searching for the P that minimizes RMSE

    A coarse scan over [lower_bound, upper_bound] narrows the interval around
    the best exponent, then a fixed number of halvings refines it. Each
    candidate P is a linear regression over the basis [x**P, 1].
    """

    name = 'power fit'
    fixed_basis = False

    def __init__(self, data_points: Sequence[Point], search_params: Optional[Dict] = None):
        super().__init__(data_points)
        params = DEFAULT_SEARCH_PARAMS.copy()
        if search_params:
            params.update(search_params)
        self.search_params = params

        if params['initial_partitions'] < 2:
            raise ValueError("Power fit needs at least 2 initial partitions")
        if params['max_search_depth'] < 1:
            raise ValueError("Power fit needs a search depth of at least 1")

        def regression_factory(points: Sequence[Point], power: float) -> Regression:
            return Regression(
                lambda x: [x ** power, 1.0],
                lambda coefs, x: coefs[0] * x ** power + coefs[1],
                points
            )

        self.regression, self.power = _find_best_rmse_power_n_ary(
            params, data_points, regression_factory
        )

    def get_first_derivative(self) -> Callable[[float], float]:
        """Return dy/dx of the fitted curve"""
        coefs = self.regression.coefs
        power = self.power
        return lambda x: power * coefs[0] * x ** (power - 1)

    def get_formula(self) -> str:
        coefs = self.regression.coefs
        return (f"y = {_coef_text(coefs[0], True)} x^{shorten_value(self.power, 4)} "
                f"{_coef_text(coefs[1])}")


def _coef_text(coef: float, first_coef: bool = False) -> str:
    if first_coef:
        return shorten_value(coef, MODEL_COEF_PRECISION)
    return ('+ ' if coef >= 0 else '- ') + shorten_value(abs(coef), MODEL_COEF_PRECISION)


def _find_best_rmse_power_binary(low_power: float, high_power: float, max_search_depth: int,
                                 data_points: Sequence[Point],
                                 regression_factory: RegressionFactory,
                                 low_regression: Regression,
                                 high_regression: Regression) -> Tuple[Regression, float]:
    middle_power = None
    middle_regression = None
    for _ in range(max_search_depth):
        middle_power = (low_power + high_power) / 2
        middle_regression = regression_factory(data_points, middle_power)
        # Move whichever bound fits worse to the middle
        if low_regression.rmse < high_regression.rmse:
            high_power, high_regression = middle_power, middle_regression
        else:
            low_power, low_regression = middle_power, middle_regression

    return middle_regression, middle_power


def _find_best_rmse_power_n_ary(params: Dict, data_points: Sequence[Point],
                                regression_factory: RegressionFactory) -> Tuple[Regression, float]:
    powers = [float(p) for p in np.linspace(params['lower_bound'], params['upper_bound'],
                                            params['initial_partitions'] + 1)]
    regressions = [regression_factory(data_points, power) for power in powers]
    rmses = [regression.rmse for regression in regressions]

    # First minimum wins ties
    best = int(np.argmin(rmses))
    last = len(powers) - 1
    if best == 0:
        low, high = 0, 1
    elif best == last:
        low, high = last - 1, last
    elif rmses[best - 1] < rmses[best + 1]:
        low, high = best - 1, best
    else:
        low, high = best, best + 1

    logging.debug(f"Power scan best P={powers[best]:.4f}, refining within "
                  f"[{powers[low]:.4f}, {powers[high]:.4f}]")
    return _find_best_rmse_power_binary(
        powers[low], powers[high], params['max_search_depth'], data_points,
        regression_factory, regressions[low], regressions[high]
    )
