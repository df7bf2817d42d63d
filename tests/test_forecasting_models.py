"""
Unit tests for forecasting models.
Tests the linear regression reference model, Holt-Winters and the naive baseline.
"""

import unittest
from datetime import datetime, timedelta, timezone
import sys
import os
from unittest.mock import patch

import numpy as np

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from forecasting.base_model import BaseForecaster, to_ticks
from forecasting.forecaster import (
    LinearRegressionForecaster, HoltWintersForecaster, NaiveForecaster,
    create_forecaster, default_forecasters, AVAILABLE_FORECASTERS
)
from timeseries.data_models import Observation
from utils.exceptions import DegenerateFitError, ForecastingError, InsufficientHistoryError

EPOCH = datetime(1970, 1, 1)


def make_observations(values, start=EPOCH, step=timedelta(seconds=1)):
    return [Observation(start + i * step, value) for i, value in enumerate(values)]


class TestTickEncoding(unittest.TestCase):
    """Test cases for timestamp encoding."""

    def test_naive_and_aware_timestamps(self):
        """Test that naive timestamps are read as UTC."""
        self.assertEqual(to_ticks(EPOCH), 0.0)
        self.assertEqual(to_ticks(datetime(1970, 1, 2)), 86400.0)
        self.assertEqual(to_ticks(datetime(1970, 1, 2, tzinfo=timezone.utc)), 86400.0)


class TestLinearRegressionForecaster(unittest.TestCase):
    """Test cases for the linear regression reference model."""

    def setUp(self):
        """Set up test fixtures."""
        self.model = LinearRegressionForecaster()

    def test_initialization(self):
        """Test model name and type."""
        self.assertEqual(self.model.name, "LinearRegression")
        self.assertEqual(self.model.model_type, "statistical")

    def test_three_point_scenario(self):
        """Test extrapolating the line y = 10x + 10."""
        historical = make_observations([10, 20, 30])
        forecast = self.model.forecast(historical, 2, timedelta(seconds=1))

        self.assertEqual(len(forecast), 2)
        self.assertEqual(forecast[0].timestamp, EPOCH + timedelta(seconds=3))
        self.assertEqual(forecast[1].timestamp, EPOCH + timedelta(seconds=4))
        self.assertAlmostEqual(forecast[0].value, 40.0)
        self.assertAlmostEqual(forecast[1].value, 50.0)

    def test_fit_recovers_slope_and_intercept(self):
        """Test that a noiseless line is recovered exactly."""
        slope, intercept = -2.5, 7.0
        historical = make_observations([slope * x + intercept for x in range(20)])

        fit = LinearRegressionForecaster.fit_line(tuple(historical))
        self.assertAlmostEqual(fit.slope, slope)
        self.assertAlmostEqual(fit.intercept, intercept)

        forecast = self.model.forecast(historical, 5, timedelta(seconds=1))
        for obs in forecast:
            self.assertAlmostEqual(obs.value, slope * to_ticks(obs.timestamp) + intercept)

    def test_daily_series(self):
        """Test a linear trend over realistic calendar dates."""
        start = datetime(2024, 1, 1)
        historical = make_observations([100 + 0.5 * day for day in range(30)], start, timedelta(days=1))

        forecast = self.model.forecast(historical, 3, timedelta(days=1))

        self.assertEqual(forecast[0].timestamp, datetime(2024, 1, 31))
        for k, obs in enumerate(forecast, start=30):
            self.assertAlmostEqual(obs.value, 100 + 0.5 * k, places=6)

    def test_single_observation_is_degenerate(self):
        """Test that one historical point cannot be fitted."""
        with self.assertRaises(DegenerateFitError):
            self.model.forecast(make_observations([5.0]), 3, timedelta(seconds=1))

    def test_identical_timestamps_are_degenerate(self):
        """Test that zero time variance cannot be fitted."""
        historical = [Observation(EPOCH, 1.0), Observation(EPOCH, 2.0), Observation(EPOCH, 3.0)]
        with self.assertRaises(DegenerateFitError):
            self.model.forecast(historical, 1, timedelta(seconds=1))

    def test_empty_history(self):
        """Test that an empty history is insufficient."""
        with self.assertRaises(InsufficientHistoryError):
            self.model.forecast([], 2, timedelta(seconds=1))

    def test_invalid_horizon_and_interval(self):
        """Test that non-positive horizon or interval are rejected."""
        historical = make_observations([1, 2, 3])
        with self.assertRaises(ValueError):
            self.model.forecast(historical, 0, timedelta(seconds=1))
        with self.assertRaises(ValueError):
            self.model.forecast(historical, 2, timedelta(0))

    def test_input_not_mutated(self):
        """Test that the historical sequence is left untouched."""
        historical = make_observations([3, 1, 4, 1, 5])
        snapshot = list(historical)

        self.model.forecast(historical, 3, timedelta(seconds=1))
        self.assertEqual(historical, snapshot)

    def test_deterministic(self):
        """Test that repeated forecasts are bit-identical."""
        historical = make_observations(np.random.RandomState(0).normal(50, 5, 40))
        first = self.model.forecast(historical, 4, timedelta(seconds=1))
        second = self.model.forecast(historical, 4, timedelta(seconds=1))
        self.assertEqual(first, second)


class TestHoltWintersForecaster(unittest.TestCase):
    """Test cases for the Holt-Winters model."""

    def setUp(self):
        """Set up test fixtures."""
        self.start = datetime(2024, 1, 1)
        noise = np.random.RandomState(1).normal(0, 0.1, 40)
        self.historical = make_observations(
            [5 + 2 * day + noise[day] for day in range(40)], self.start, timedelta(days=1)
        )

    def test_trend_forecast(self):
        """Test that a linear trend is continued."""
        model = HoltWintersForecaster()
        forecast = model.forecast(self.historical, 5, timedelta(days=1))

        self.assertEqual(len(forecast), 5)
        self.assertEqual(forecast[0].timestamp, self.start + timedelta(days=40))
        values = np.array([obs.value for obs in forecast])
        expected = np.array([5 + 2 * day for day in range(40, 45)], dtype=float)
        self.assertTrue(np.all(np.isfinite(values)))
        self.assertTrue(np.allclose(values, expected, rtol=0.05))

    def test_seasonal_forecast(self):
        """Test an additive seasonal model."""
        pattern = [10, 20, 30, 20]
        historical = make_observations(pattern * 6, self.start, timedelta(hours=1))
        model = HoltWintersForecaster(trend=None, seasonal='add', seasonal_periods=4)

        forecast = model.forecast(historical, 4, timedelta(hours=1))
        self.assertEqual(len(forecast), 4)
        self.assertTrue(all(np.isfinite(obs.value) for obs in forecast))

    def test_insufficient_history(self):
        """Test minimum history requirements."""
        with self.assertRaises(InsufficientHistoryError):
            HoltWintersForecaster().forecast(self.historical[:3], 2, timedelta(days=1))

        seasonal = HoltWintersForecaster(seasonal='add', seasonal_periods=4)
        self.assertEqual(seasonal.min_history, 8)
        with self.assertRaises(InsufficientHistoryError):
            seasonal.forecast(self.historical[:6], 2, timedelta(days=1))

    def test_seasonal_requires_periods(self):
        """Test that a seasonal model needs a season length."""
        with self.assertRaises(ValueError):
            HoltWintersForecaster(seasonal='add')

    @patch('statsmodels.tsa.holtwinters.ExponentialSmoothing')
    def test_fit_failure_is_wrapped(self, mock_model):
        """Test that statsmodels errors surface as ForecastingError."""
        mock_model.side_effect = np.linalg.LinAlgError("singular matrix")

        with self.assertRaises(ForecastingError) as context:
            HoltWintersForecaster().forecast(self.historical, 2, timedelta(days=1))

        self.assertIn("singular matrix", str(context.exception))

    def test_model_parameters(self):
        """Test reported parameters."""
        params = HoltWintersForecaster(damped_trend=True).get_model_parameters()
        self.assertEqual(params['trend'], 'add')
        self.assertTrue(params['damped_trend'])


class TestNaiveForecaster(unittest.TestCase):
    """Test cases for the naive baseline."""

    def test_repeats_last_value(self):
        """Test that the last value is carried forward."""
        forecast = NaiveForecaster().forecast(make_observations([1, 2, 7]), 3, timedelta(seconds=10))

        self.assertEqual([obs.value for obs in forecast], [7.0, 7.0, 7.0])
        self.assertEqual(forecast[-1].timestamp, EPOCH + timedelta(seconds=32))


class TestForecasterFactory(unittest.TestCase):
    """Test cases for the forecaster registry."""

    def test_create_forecaster(self):
        """Test creating every registered model."""
        for key, info in AVAILABLE_FORECASTERS.items():
            model = create_forecaster(key)
            self.assertIsInstance(model, info['class'])
            self.assertIsInstance(model, BaseForecaster)

    def test_unknown_model(self):
        """Test that unknown keys are rejected."""
        with self.assertRaises(ValueError) as context:
            create_forecaster('prophet')
        self.assertIn("Unknown model type", str(context.exception))

    def test_default_forecasters_keep_order(self):
        """Test that named forecasters come back in the requested order."""
        forecasters = default_forecasters(['naive', 'linear_regression'])

        self.assertEqual([name for name, _ in forecasters], ['naive', 'linear_regression'])
        self.assertIsInstance(forecasters[0][1], NaiveForecaster)
        self.assertIsInstance(forecasters[1][1], LinearRegressionForecaster)

    def test_custom_forecaster_subclass(self):
        """Test that new algorithms only need _forecast_values."""
        class MeanForecaster(BaseForecaster):
            def __init__(self):
                super().__init__("Mean", "baseline")

            def _forecast_values(self, historical, horizon, interval):
                return np.full(horizon, np.mean([obs.value for obs in historical]))

        forecast = MeanForecaster().forecast(make_observations([2, 4, 6]), 2, timedelta(seconds=1))
        self.assertEqual([obs.value for obs in forecast], [4.0, 4.0])


if __name__ == '__main__':
    unittest.main(verbosity=2)
