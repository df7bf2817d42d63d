import os
from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()


def _optional_float(value):
    return float(value) if value not in (None, '') else None


def _optional_int(value):
    return int(value) if value not in (None, '') else None


class Config:
    DATA_DIR = os.getenv('DATA_DIR', 'data')
    CHART_OUTPUT_DIR = os.getenv('CHART_OUTPUT_DIR', 'charts')
    FORECAST_HORIZON = int(os.getenv('FORECAST_HORIZON', 30))
    MAX_WORKERS = int(os.getenv('MAX_WORKERS', 4))
    ANALYSIS_TIMEOUT_SECONDS = _optional_float(os.getenv('ANALYSIS_TIMEOUT_SECONDS'))
    DEFAULT_FORECASTERS = os.getenv('DEFAULT_FORECASTERS', 'linear_regression,holt_winters')
    DEFAULT_INTERVAL_SECONDS = float(os.getenv('DEFAULT_INTERVAL_SECONDS', 86400))
    HISTOGRAM_BINS = _optional_int(os.getenv('HISTOGRAM_BINS'))

    @classmethod
    def forecaster_names(cls):
        """Configured forecaster names, in order."""
        return [name.strip() for name in cls.DEFAULT_FORECASTERS.split(',') if name.strip()]

    @classmethod
    def validate(cls):
        """Validate configuration values"""
        from forecasting.forecaster import AVAILABLE_FORECASTERS

        if cls.FORECAST_HORIZON <= 0:
            raise ConfigurationError("FORECAST_HORIZON must be positive")
        if cls.MAX_WORKERS <= 0 and cls.MAX_WORKERS != -1:
            raise ConfigurationError("MAX_WORKERS must be positive or -1 for all cores")
        if cls.DEFAULT_INTERVAL_SECONDS <= 0:
            raise ConfigurationError("DEFAULT_INTERVAL_SECONDS must be positive")
        if cls.ANALYSIS_TIMEOUT_SECONDS is not None and cls.ANALYSIS_TIMEOUT_SECONDS <= 0:
            raise ConfigurationError("ANALYSIS_TIMEOUT_SECONDS must be positive when set")

        unknown = [name for name in cls.forecaster_names() if name not in AVAILABLE_FORECASTERS]
        if unknown:
            raise ConfigurationError(f"Unknown forecasters in DEFAULT_FORECASTERS: {unknown}")
