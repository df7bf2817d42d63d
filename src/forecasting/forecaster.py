"""
Forecasting algorithms.
Implements the linear-regression reference model, a Holt-Winters exponential
smoothing model and a naive persistence baseline.
"""

import numpy as np
from typing import Dict, List, Any, Optional, Tuple
from datetime import timedelta
from dataclasses import dataclass
import logging
import warnings

from statsmodels.tools.sm_exceptions import ConvergenceWarning

from .base_model import BaseForecaster, to_ticks
from timeseries.data_models import Observation
from utils.config import Config
from utils.exceptions import DegenerateFitError, ForecastingError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Optimizer chatter from short or noisy histories; installed once, never per call
warnings.filterwarnings("ignore", category=ConvergenceWarning)
warnings.filterwarnings("ignore", category=RuntimeWarning, module=r"statsmodels\.")


@dataclass(frozen=True)
class LinearFit:
    """Best-fit line y = slope * x + intercept, x in seconds since the epoch."""
    slope: float
    intercept: float

    def predict(self, ticks: np.ndarray) -> np.ndarray:
        return self.slope * np.asarray(ticks, dtype=float) + self.intercept


class StatisticalForecaster(BaseForecaster):
    """Base class for statistical forecasting models."""

    def __init__(self, model_name: str, **kwargs):
        super().__init__(model_name, "statistical", **kwargs)


class LinearRegressionForecaster(StatisticalForecaster):
    """
    Ordinary-least-squares trend line extrapolated over the horizon.

    The line is fitted over the entire historical range, so long histories
    are dominated by their global trend and the forecast can look flat or
    poorly scaled next to recent local behaviour. It is the baseline
    the other forecasters are compared against.
    """

    def __init__(self, **kwargs):
        super().__init__("LinearRegression", **kwargs)

    @staticmethod
    def fit_line(historical: Tuple[Observation, ...]) -> LinearFit:
        """
        Closed-form single-variable least squares over the historical points.

        Raises:
            DegenerateFitError: If every timestamp is identical
        """
        x = np.array([to_ticks(obs.timestamp) for obs in historical], dtype=float)
        y = np.array([obs.value for obs in historical], dtype=float)

        if len(x) < 2:
            raise DegenerateFitError(f"Cannot fit a line through {len(x)} observation(s)")

        mean_x = x.mean()
        mean_y = y.mean()
        dx = x - mean_x
        sxx = np.sum(dx * dx)

        if sxx == 0 or np.all(x == x[0]):
            raise DegenerateFitError(
                f"Cannot fit a line through {len(x)} observations with identical timestamps"
            )

        slope = np.sum(dx * (y - mean_y)) / sxx
        intercept = mean_y - slope * mean_x
        return LinearFit(slope=float(slope), intercept=float(intercept))

    def _forecast_values(self,
                         historical: Tuple[Observation, ...],
                         horizon: int,
                         interval: timedelta) -> np.ndarray:
        fit = self.fit_line(historical)

        last_x = to_ticks(historical[-1].timestamp)
        step = interval.total_seconds()
        future_x = last_x + step * np.arange(1, horizon + 1)

        logger.debug(f"Linear fit slope={fit.slope:.6g} intercept={fit.intercept:.6g}")
        return fit.predict(future_x)


class HoltWintersForecaster(StatisticalForecaster):
    """
    Holt-Winters exponential smoothing (level, trend and optional seasonality).
    """

    def __init__(self,
                 trend: Optional[str] = 'add',
                 seasonal: Optional[str] = None,
                 seasonal_periods: Optional[int] = None,
                 damped_trend: bool = False,
                 **kwargs):
        """
        Initialize Holt-Winters model.

        Args:
            trend: Type of trend component ('add', 'mul', None)
            seasonal: Type of seasonal component ('add', 'mul', None)
            seasonal_periods: Number of periods in a season
            damped_trend: Whether the trend component is damped
            **kwargs: Additional parameters
        """
        super().__init__("HoltWinters", **kwargs)
        if seasonal and not seasonal_periods:
            raise ValueError("seasonal_periods is required when seasonal is set")

        self.trend = trend
        self.seasonal = seasonal
        self.seasonal_periods = seasonal_periods
        self.damped_trend = damped_trend and trend is not None
        self.min_history = 2 * seasonal_periods if seasonal else 4

    def _forecast_values(self,
                         historical: Tuple[Observation, ...],
                         horizon: int,
                         interval: timedelta) -> np.ndarray:
        from statsmodels.tsa.holtwinters import ExponentialSmoothing

        values = np.array([obs.value for obs in historical], dtype=float)

        try:
            with np.errstate(all='ignore'):
                model = ExponentialSmoothing(
                    values,
                    trend=self.trend,
                    seasonal=self.seasonal,
                    seasonal_periods=self.seasonal_periods,
                    damped_trend=self.damped_trend
                )
                fitted_model = model.fit()
                forecast = np.asarray(fitted_model.forecast(horizon), dtype=float)
        except Exception as e:
            raise ForecastingError(f"Holt-Winters fitting failed: {e}") from e

        if not np.all(np.isfinite(forecast)):
            raise ForecastingError("Holt-Winters produced non-finite forecast values")

        return forecast

    def get_model_parameters(self) -> Dict[str, Any]:
        params = super().get_model_parameters()
        params.update({
            'trend': self.trend,
            'seasonal': self.seasonal,
            'seasonal_periods': self.seasonal_periods,
            'damped_trend': self.damped_trend
        })
        return params


class NaiveForecaster(BaseForecaster):
    """Persistence baseline: repeats the last historical value."""

    def __init__(self, **kwargs):
        super().__init__("Naive", "baseline", **kwargs)

    def _forecast_values(self,
                         historical: Tuple[Observation, ...],
                         horizon: int,
                         interval: timedelta) -> np.ndarray:
        return np.full(horizon, historical[-1].value, dtype=float)


# Factory function for creating forecasters
def create_forecaster(model_type: str, **kwargs) -> BaseForecaster:
    """
    Factory function to create forecasting models.

    Args:
        model_type: Registry key of the model to create
        **kwargs: Model-specific parameters

    Returns:
        Forecaster instance
    """
    key = model_type.lower()
    if key not in AVAILABLE_FORECASTERS:
        available = ', '.join(AVAILABLE_FORECASTERS.keys())
        raise ValueError(f"Unknown model type: {model_type}. Available: {available}")

    return AVAILABLE_FORECASTERS[key]['class'](**kwargs)


def default_forecasters(names: Optional[List[str]] = None) -> List[Tuple[str, BaseForecaster]]:
    """
    Build the ordered (name, forecaster) list the analyzer iterates.

    Args:
        names: Registry keys in order; defaults to Config.DEFAULT_FORECASTERS

    Returns:
        List of (algorithm name, forecaster) pairs
    """
    if names is None:
        names = Config.forecaster_names()
    return [(name, create_forecaster(name)) for name in names]


# Registry of available forecasters
AVAILABLE_FORECASTERS: Dict[str, Dict[str, Any]] = {
    'linear_regression': {
        'class': LinearRegressionForecaster,
        'type': 'statistical',
        'description': 'Ordinary least squares trend line',
        'strengths': ['Closed form', 'Deterministic', 'Reference baseline']
    },
    'holt_winters': {
        'class': HoltWintersForecaster,
        'type': 'statistical',
        'description': 'Holt-Winters exponential smoothing',
        'strengths': ['Tracks recent level', 'Handles trend/seasonality']
    },
    'naive': {
        'class': NaiveForecaster,
        'type': 'baseline',
        'description': 'Last observed value carried forward',
        'strengths': ['Trivial', 'Strong short-horizon baseline']
    }
}
