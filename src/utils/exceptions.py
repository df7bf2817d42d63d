"""
Custom exceptions for the forecast benchmarking pipeline.
"""


class ForecastBenchmarkError(Exception):
    """Base exception for the forecast benchmarking pipeline."""
    pass


class InvalidSeriesError(ForecastBenchmarkError, ValueError):
    """Exception raised when a series violates the data model contract."""
    pass


class InsufficientHistoryError(ForecastBenchmarkError):
    """Exception raised when the historical segment is too short for an algorithm."""
    pass


class DegenerateFitError(ForecastBenchmarkError):
    """Exception raised when a regression has zero variance on the time axis."""
    pass


class LengthMismatchError(ForecastBenchmarkError):
    """Exception raised when actual and forecast sequences differ in length."""
    pass


class UndefinedMetricError(ForecastBenchmarkError):
    """Exception raised when a caller requires a metric that has no defined value."""
    pass


class ForecastingError(ForecastBenchmarkError):
    """Exception raised during forecast generation."""
    pass


class DataLoadingError(ForecastBenchmarkError):
    """Exception raised while loading series from tabular data."""
    pass


class ConfigurationError(ForecastBenchmarkError):
    """Exception raised for invalid configuration values."""
    pass


class AnalysisTimeoutError(ForecastBenchmarkError):
    """Exception raised when a batch analysis runs past its deadline."""
    pass
