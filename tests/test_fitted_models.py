import math

import pytest

from effort_predictor.points import Point, pairs_to_points
from effort_predictor.models.regression import shorten_value
from effort_predictor.models.fitted_models import (
    DEFAULT_SEARCH_PARAMS,
    LinearFitModel,
    LogFitModel,
    PowerFitModel,
    QuadraticFitModel,
)


class TestFixedBasisModels:
    """Test the linear, quadratic and log fits."""

    def test_linear_fit(self):
        model = LinearFitModel(pairs_to_points([[1, 3], [2, 5], [3, 7]]))

        assert model.fixed_basis
        assert model.regression.coefs == pytest.approx([2.0, 1.0])
        assert model.fitted_y(5) == pytest.approx(11.0)
        assert model.rmse == pytest.approx(0.0, abs=1e-9)
        assert model.get_formula() == "y = 2.00 x + 1.00"

    def test_linear_formula_negative_intercept(self):
        model = LinearFitModel(pairs_to_points([[1, -1], [2, 1], [3, 3]]))
        assert model.get_formula() == "y = 2.00 x - 3.00"

    def test_quadratic_fit(self):
        model = QuadraticFitModel([Point(x, x * x + 2 * x + 1) for x in range(1, 6)])

        assert model.regression.coefs == pytest.approx([1.0, 2.0, 1.0])
        assert model.fitted_y(10) == pytest.approx(121.0)
        assert model.get_formula().startswith("y = 1.00 x^2")

    def test_log_fit(self):
        model = LogFitModel([Point(x, 3 * math.log(x) + 1) for x in range(1, 6)])

        assert model.regression.coefs == pytest.approx([3.0, 1.0])
        assert "ln(x)" in model.get_formula()

    def test_x_range(self):
        model = LinearFitModel(pairs_to_points([[2, 1], [5, 2], [3, 4]]))
        assert model.lowest_x == 2
        assert model.highest_x == 5

    def test_model_points_drop_negative_y(self):
        model = LinearFitModel(pairs_to_points([[1, -0.5], [2, 0.5], [3, 1.5]]))
        model_points = model.get_model_points(3)

        assert [point.x for point in model_points] == pytest.approx([2.0, 3.0])
        assert [point.y for point in model_points] == pytest.approx([0.5, 1.5])

    def test_fits_untransformed_y(self):
        with pytest.raises(TypeError):
            LinearFitModel(pairs_to_points([[1, 1], [2, 2]]), y_transform=math.log)

    def test_evaluate_against_other_points(self):
        model = LinearFitModel(pairs_to_points([[1, 1], [2, 2]]))
        model.evaluate(pairs_to_points([[1, 2], [3, 1]]))

        assert [residual.y for residual in model.residuals] == pytest.approx([1.0, -2.0])
        assert model.rmse == pytest.approx(math.sqrt(2.5))


class TestPowerFitModel:
    """Test the exponent search of power fits."""

    def test_finds_exponent(self, power_curve_points):
        model = PowerFitModel(power_curve_points)

        assert not model.fixed_basis
        assert model.power == pytest.approx(1.5, abs=0.01)
        assert model.rmse < 0.1
        assert model.fitted_y(4) == pytest.approx(16.0, rel=0.02)

    def test_first_derivative(self, power_curve_points):
        model = PowerFitModel(power_curve_points)
        derivative = model.get_first_derivative()
        # d/dx 2x^1.5 = 3x^0.5
        assert derivative(4) == pytest.approx(6.0, rel=0.05)

    def test_linear_data(self):
        model = PowerFitModel(pairs_to_points([[x, 2 * x + 5] for x in range(1, 8)]))
        assert model.power == pytest.approx(1.0, abs=0.01)
        assert model.fitted_y(8) == pytest.approx(21.0, rel=0.01)

    def test_formula(self, power_curve_points):
        model = PowerFitModel(power_curve_points)
        formula = model.get_formula()
        assert formula.startswith("y = ")
        assert f" x^{shorten_value(model.power, 4)} " in formula

    def test_search_params_override_defaults(self, power_curve_points):
        model = PowerFitModel(power_curve_points, search_params={'max_search_depth': 12})

        assert model.search_params['max_search_depth'] == 12
        assert model.search_params['upper_bound'] == DEFAULT_SEARCH_PARAMS['upper_bound']
        assert DEFAULT_SEARCH_PARAMS['max_search_depth'] == 8

    def test_too_few_partitions(self, power_curve_points):
        with pytest.raises(ValueError):
            PowerFitModel(power_curve_points, search_params={'initial_partitions': 1})

    def test_zero_search_depth(self, power_curve_points):
        with pytest.raises(ValueError):
            PowerFitModel(power_curve_points, search_params={'max_search_depth': 0})

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            PowerFitModel([Point(1, 1)])
