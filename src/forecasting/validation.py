"""
Train/test splitting and forecast scoring.
Provides the hold-out split policy and regression-quality metrics.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
import math
import threading

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from timeseries.data_models import Observation, RegressionMetrics, Series
from utils.exceptions import InvalidSeriesError, LengthMismatchError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# scikit-learn input checks enter warnings.catch_warnings(), which swaps the
# process-wide filter list; scoring from worker threads must not overlap
_metrics_lock = threading.Lock()


def split_series(series: Series, horizon: int) -> Tuple[Tuple[Observation, ...], Tuple[Observation, ...]]:
    """
    Split a series into its historical and actual segments.

    The actual segment is the last `horizon` observations. When the series
    has no more than `horizon` observations the historical segment is empty
    and the actual segment is the whole series.

    Args:
        series: Series to split
        horizon: Number of most recent observations to hold out

    Returns:
        Tuple of (historical, actual)

    Raises:
        InvalidSeriesError: If the series has no observations
        ValueError: If horizon is not a positive integer
    """
    if not isinstance(horizon, (int, np.integer)) or isinstance(horizon, bool) or horizon <= 0:
        raise ValueError(f"horizon must be a positive integer, got {horizon!r}")

    observations = series.observations
    if not observations:
        raise InvalidSeriesError(f"Series '{series.name}' has no observations")

    split_at = max(len(observations) - horizon, 0)
    if split_at == 0:
        logger.debug(f"Series '{series.name}' is not longer than the horizon; no historical data")
    return observations[:split_at], observations[split_at:]


class ModelEvaluator:
    """
    Forecast scoring against held-out actual values.

    Actual and forecast values are paired strictly by position, not by
    timestamp proximity. Forecasters project timestamps on the series'
    nominal interval, so gaps in the actual data (weekends, outages) shift
    the pairing; this is accepted as a simplification.
    """

    def __init__(self):
        """Initialize the model evaluator."""
        self.metrics_registry: Dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
            'mae': self._mean_absolute_error,
            'mse': self._mean_squared_error,
            'rmse': self._root_mean_squared_error,
            'r_squared': self._r_squared,
            'mape': self._mean_absolute_percentage_error,
            'bias': self._forecast_bias
        }

    def evaluate(self,
                 actual: Sequence[Observation],
                 forecast: Sequence[Observation]) -> RegressionMetrics:
        """
        Score a forecast against the actual observations.

        Args:
            actual: Held-out observations
            forecast: Forecast observations, same length as `actual`

        Returns:
            RegressionMetrics for the pair

        Raises:
            LengthMismatchError: If the sequences differ in length
        """
        y_true = np.array([obs.value for obs in actual], dtype=float)
        y_pred = np.array([obs.value for obs in forecast], dtype=float)

        scores = self.evaluate_model(y_true, y_pred)
        return RegressionMetrics(**scores)

    def evaluate_model(self,
                       y_true: np.ndarray,
                       y_pred: np.ndarray,
                       metrics: Optional[List[str]] = None) -> Dict[str, float]:
        """
        Compute metrics over raw value arrays.

        Args:
            y_true: True values
            y_pred: Predicted values
            metrics: Metric names to compute (all registered metrics if None)

        Returns:
            Dictionary of metric names and values
        """
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)

        if len(y_true) != len(y_pred):
            raise LengthMismatchError(
                f"Actual has {len(y_true)} values but forecast has {len(y_pred)}"
            )
        if len(y_true) == 0:
            raise ValueError("Cannot score an empty forecast")

        if metrics is None:
            metrics = list(self.metrics_registry.keys())

        unknown = [metric for metric in metrics if metric not in self.metrics_registry]
        if unknown:
            raise ValueError(f"Unknown metrics: {unknown}")

        with _metrics_lock:
            return {metric: float(self.metrics_registry[metric](y_true, y_pred)) for metric in metrics}

    # Metric implementations
    def _mean_absolute_error(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Calculate Mean Absolute Error."""
        return mean_absolute_error(y_true, y_pred)

    def _mean_squared_error(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Calculate Mean Squared Error."""
        return mean_squared_error(y_true, y_pred)

    def _root_mean_squared_error(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Calculate Root Mean Squared Error."""
        return np.sqrt(mean_squared_error(y_true, y_pred))

    def _r_squared(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Calculate R-squared.

        NaN when the actual values are constant, except for an exact forecast
        of a constant series, which scores 1.
        """
        ss_res = np.sum((y_true - y_pred) ** 2)
        ss_tot = np.sum((y_true - np.mean(y_true)) ** 2)

        if ss_tot == 0:
            return 1.0 if ss_res == 0 else math.nan
        return 1.0 - ss_res / ss_tot

    def _mean_absolute_percentage_error(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Calculate Mean Absolute Percentage Error, skipping zero actuals."""
        mask = y_true != 0
        if not np.any(mask):
            return math.nan

        return np.mean(np.abs((y_true[mask] - y_pred[mask]) / y_true[mask])) * 100

    def _forecast_bias(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Calculate forecast bias (mean of residuals)."""
        return np.mean(y_pred - y_true)


_default_evaluator = ModelEvaluator()


def evaluate(actual: Sequence[Observation], forecast: Sequence[Observation]) -> RegressionMetrics:
    """Score `forecast` against `actual` with the default evaluator."""
    return _default_evaluator.evaluate(actual, forecast)
