import numpy as np
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_squared_error
from typing import Callable, List, Sequence

from effort_predictor.points import Point

XTransform = Callable[[float], List[float]]
FittedYTakingCoefs = Callable[[Sequence[float], float], float]


class Regression:
    """Ordinary least squares fit over a caller-supplied expansion of x

    The coefficients are fixed once fit. evaluate() rescores them against
    another set of points without refitting, which is how an averaged model
    gets residuals and RMSE for the pooled data of a cluster.
    """

    def __init__(self, x_transform: XTransform, fitted_y_taking_coefs: FittedYTakingCoefs,
                 data_points: Sequence[Point]):
        """Fit the regression

        Args:
            x_transform: Maps x to the feature values of the basis, e.g. x -> [x**p, 1]
            fitted_y_taking_coefs: Reconstructs y from the coefficients and x
            data_points: Points to fit; at least as many as there are basis terms
        """
        if len(data_points) == 0:
            raise ValueError("Regression requires at least one data point")

        self._fitted_y_taking_coefs = fitted_y_taking_coefs

        features = np.array([x_transform(point.x) for point in data_points], dtype=float)
        targets = np.array([point.y for point in data_points], dtype=float)
        if features.shape[0] < features.shape[1]:
            raise ValueError(
                f"Regression over {features.shape[1]} terms needs at least as many points, "
                f"got {features.shape[0]}"
            )

        # The basis carries its own constant term when it wants one.
        ols = LinearRegression(fit_intercept=False)
        ols.fit(features, targets)
        self.coefs: List[float] = [float(coef) for coef in ols.coef_]

        self.residuals: List[Point] = []
        self.rmse = 0.0
        self.evaluate(data_points)

    def fitted_y(self, x: float) -> float:
        return self._fitted_y_taking_coefs(self.coefs, x)

    def evaluate(self, data_points: Sequence[Point]) -> None:
        """Recompute residuals and RMSE for data_points using the current coefficients"""
        if len(data_points) == 0:
            raise ValueError("Cannot evaluate a regression against no points")
        actual = np.array([point.y for point in data_points], dtype=float)
        fitted = np.array([self.fitted_y(point.x) for point in data_points], dtype=float)
        self.residuals = [
            Point(point.x, float(y - fy)) for point, y, fy in zip(data_points, actual, fitted)
        ]
        self.rmse = float(np.sqrt(mean_squared_error(actual, fitted)))


def shorten_value(value: float, precision: int) -> str:
    """Format value to the given number of significant digits"""
    if value != 0 and abs(value) < 0.001:
        return f"{float(value):.{precision - 1}e}"
    return f"{float(value):#.{precision}g}".rstrip('.')
