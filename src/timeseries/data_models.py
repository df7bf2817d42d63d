"""
Data models for the forecast benchmarking pipeline.
All records are immutable; an "update" builds a new value.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple
import math

import numpy as np

from utils.exceptions import InvalidSeriesError, UndefinedMetricError


@dataclass(frozen=True, order=True)
class Observation:
    """A single timestamped numeric reading."""
    timestamp: datetime
    value: float

    def __post_init__(self):
        object.__setattr__(self, 'value', float(self.value))


@dataclass(frozen=True)
class Series:
    """
    A named, grouped, interval-tagged ordered collection of observations.

    `interval` is the expected spacing between consecutive observations and
    is used to project forecast timestamps forward. `group` is a coarse
    category label used only when aggregating results.
    """
    name: str
    group: str
    interval: timedelta
    observations: Tuple[Observation, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'observations', tuple(self.observations))
        if not isinstance(self.interval, timedelta) or self.interval <= timedelta(0):
            raise InvalidSeriesError(
                f"Series '{self.name}' needs a positive interval, got {self.interval!r}"
            )

    def __len__(self) -> int:
        return len(self.observations)

    @property
    def timestamps(self) -> Tuple[datetime, ...]:
        return tuple(obs.timestamp for obs in self.observations)

    @property
    def values(self) -> np.ndarray:
        return np.array([obs.value for obs in self.observations], dtype=float)


@dataclass(frozen=True)
class RegressionMetrics:
    """
    Regression-quality metrics for one forecast.

    `r_squared` is NaN when it has no defined value (constant actuals with a
    non-zero residual). `mape` is NaN when every actual value is zero.
    """
    mae: float
    mse: float
    rmse: float
    r_squared: float
    mape: float = math.nan
    bias: float = 0.0

    @property
    def has_r_squared(self) -> bool:
        return not math.isnan(self.r_squared)

    def require_r_squared(self) -> float:
        if not self.has_r_squared:
            raise UndefinedMetricError("R-squared is undefined for constant actual values")
        return self.r_squared

    def as_dict(self) -> Dict[str, float]:
        return {
            'mae': self.mae,
            'mse': self.mse,
            'rmse': self.rmse,
            'r_squared': self.r_squared,
            'mape': self.mape,
            'bias': self.bias
        }


@dataclass(frozen=True)
class ForecastResult:
    """A scored forecast produced by one algorithm for one series."""
    algorithm_name: str
    forecast_observations: Tuple[Observation, ...]
    metrics: RegressionMetrics

    def __post_init__(self):
        object.__setattr__(self, 'forecast_observations', tuple(self.forecast_observations))


@dataclass(frozen=True)
class ForecastFailure:
    """Failure marker for a series/algorithm pair that produced no forecast."""
    algorithm_name: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, algorithm_name: str, error: Exception) -> 'ForecastFailure':
        return cls(
            algorithm_name=algorithm_name,
            error_type=type(error).__name__,
            message=str(error)
        )


@dataclass(frozen=True)
class SeriesAnalysis:
    """
    Analysis of one series: the split and every configured forecaster's outcome.
    """
    series: Series
    historical: Tuple[Observation, ...]
    actual: Tuple[Observation, ...]
    forecasts: Tuple[ForecastResult, ...] = ()
    failures: Tuple[ForecastFailure, ...] = ()

    def __post_init__(self):
        for name in ('historical', 'actual', 'forecasts', 'failures'):
            object.__setattr__(self, name, tuple(getattr(self, name)))

        if len(self.historical) + len(self.actual) != len(self.series):
            raise InvalidSeriesError(
                f"Split of '{self.series.name}' does not cover the series: "
                f"{len(self.historical)} + {len(self.actual)} != {len(self.series)}"
            )

    @property
    def is_successful(self) -> bool:
        return not self.failures

    def forecast_for(self, algorithm_name: str) -> Optional[ForecastResult]:
        for result in self.forecasts:
            if result.algorithm_name == algorithm_name:
                return result
        return None
