"""
Base forecaster interface for the forecast benchmarking pipeline.
Every algorithm extrapolates future observations from a historical segment.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Sequence, Tuple
from datetime import datetime, timedelta, timezone
import logging

import numpy as np

from timeseries.data_models import Observation
from utils.exceptions import InsufficientHistoryError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1)
_EPOCH_UTC = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_ticks(timestamp: datetime) -> float:
    """
    Encode a timestamp as seconds elapsed since the Unix epoch.

    Naive timestamps are read as UTC wall clock so that the encoding does not
    depend on the host's local time zone.
    """
    if timestamp.tzinfo is None:
        return (timestamp - _EPOCH).total_seconds()
    return (timestamp - _EPOCH_UTC).total_seconds()


class BaseForecaster(ABC):
    """
    Abstract base class for all forecasting algorithms.

    Subclasses implement `_forecast_values`; `forecast` validates the inputs,
    projects the timestamps and wraps the values into observations.
    """

    # Smallest historical segment the algorithm can work with
    min_history = 1

    def __init__(self, model_name: str, model_type: str, **kwargs):
        """
        Initialize the base forecaster.

        Args:
            model_name: Name reported as the algorithm name in results
            model_type: Type category (e.g., 'statistical', 'baseline')
            **kwargs: Additional model-specific parameters
        """
        self.model_name = model_name
        self.model_type = model_type
        self.parameters = kwargs

        logger.info(f"Initialized {self.model_type} forecaster: {self.model_name}")

    @property
    def name(self) -> str:
        return self.model_name

    def forecast(self,
                 historical: Sequence[Observation],
                 horizon: int,
                 interval: timedelta) -> Tuple[Observation, ...]:
        """
        Forecast `horizon` observations following the historical segment.

        Args:
            historical: Training observations, ascending by timestamp
            horizon: Number of observations to produce
            interval: Spacing between consecutive forecast timestamps

        Returns:
            Tuple of exactly `horizon` observations timestamped
            `last_historical_timestamp + k * interval` for k = 1..horizon
        """
        historical = tuple(historical)
        self.validate_input(historical, horizon, interval)

        values = np.asarray(self._forecast_values(historical, horizon, interval), dtype=float)
        if len(values) != horizon:
            raise ValueError(
                f"{self.model_name} produced {len(values)} values for horizon {horizon}"
            )

        timestamps = self.create_forecast_timestamps(historical[-1].timestamp, horizon, interval)
        return tuple(Observation(ts, value) for ts, value in zip(timestamps, values))

    @abstractmethod
    def _forecast_values(self,
                         historical: Tuple[Observation, ...],
                         horizon: int,
                         interval: timedelta) -> np.ndarray:
        """
        Compute the forecast values.

        Args:
            historical: Validated, non-empty historical observations
            horizon: Number of values to produce
            interval: Spacing between consecutive forecast points

        Returns:
            Array of `horizon` forecast values
        """
        pass

    def validate_input(self,
                       historical: Sequence[Observation],
                       horizon: int,
                       interval: timedelta) -> None:
        """
        Validate forecasting preconditions.

        Raises:
            InsufficientHistoryError: If the history is shorter than `min_history`
            ValueError: If horizon or interval is not positive
        """
        if not isinstance(horizon, (int, np.integer)) or isinstance(horizon, bool) or horizon <= 0:
            raise ValueError(f"horizon must be a positive integer, got {horizon!r}")

        if interval <= timedelta(0):
            raise ValueError(f"interval must be positive, got {interval!r}")

        if len(historical) == 0:
            raise InsufficientHistoryError(f"{self.model_name} needs historical data, got none")

        if len(historical) < self.min_history:
            raise InsufficientHistoryError(
                f"{self.model_name} needs at least {self.min_history} historical "
                f"observations, got {len(historical)}"
            )

    @staticmethod
    def create_forecast_timestamps(last_timestamp: datetime,
                                   horizon: int,
                                   interval: timedelta) -> Tuple[datetime, ...]:
        """Create future timestamps spaced by `interval` after `last_timestamp`."""
        return tuple(last_timestamp + k * interval for k in range(1, horizon + 1))

    def get_model_parameters(self) -> Dict[str, Any]:
        return self.parameters.copy()

    def __str__(self) -> str:
        return f"{self.model_type.title()}Forecaster({self.model_name})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.model_name}', type='{self.model_type}')"
