"""
Analysis orchestrator for the forecast benchmarking pipeline.
Splits every series, runs each configured forecaster on the historical
segment and scores the result against the held-out actual segment.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
from datetime import datetime
import logging
import time

import numpy as np
from joblib import Parallel, delayed

from .base_model import BaseForecaster
from .validation import ModelEvaluator, split_series
from timeseries.data_models import ForecastFailure, ForecastResult, Series, SeriesAnalysis
from utils.config import Config
from utils.exceptions import AnalysisTimeoutError, ForecastBenchmarkError, InvalidSeriesError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

NamedForecaster = Tuple[str, BaseForecaster]


class SeriesAnalyzer:
    """
    Runs the split/forecast/score workflow over a batch of series.

    Series are independent, so they are analyzed on a thread pool. A failing
    series/algorithm pair is recorded as a ForecastFailure and the rest of
    the batch carries on.
    """

    def __init__(self,
                 max_workers: Optional[int] = None,
                 timeout: Optional[float] = None,
                 evaluator: Optional[ModelEvaluator] = None):
        """
        Initialize the analyzer.

        Args:
            max_workers: Worker threads (-1 for all cores); Config.MAX_WORKERS if None
            timeout: Deadline in seconds for the whole batch; Config.ANALYSIS_TIMEOUT_SECONDS if None
            evaluator: Scorer used for every forecast
        """
        self.max_workers = max_workers if max_workers is not None else Config.MAX_WORKERS
        self.timeout = timeout if timeout is not None else Config.ANALYSIS_TIMEOUT_SECONDS
        self.evaluator = evaluator or ModelEvaluator()

        logger.info(f"SeriesAnalyzer initialized with {self.max_workers} workers")

    def analyze(self,
                series_list: Sequence[Series],
                horizon: int,
                forecasters: Sequence[NamedForecaster]) -> List[SeriesAnalysis]:
        """
        Analyze every series with every forecaster.

        Args:
            series_list: Series to analyze
            horizon: Number of most recent observations held out per series
            forecasters: Ordered (algorithm name, forecaster) pairs

        Returns:
            One SeriesAnalysis per input series, in input order

        Raises:
            InvalidSeriesError: If any series is empty
            ValueError: If horizon is invalid or forecaster names repeat
            AnalysisTimeoutError: If the batch deadline passes before every series completes
        """
        series_list = list(series_list)
        forecasters = list(forecasters)
        self._validate_batch(series_list, horizon, forecasters)

        if not series_list:
            return []

        started = datetime.now()
        names = [name for name, _ in forecasters]
        logger.info(f"Analyzing {len(series_list)} series with {len(forecasters)} forecasters: {names}")

        n_jobs = self.max_workers if self.max_workers == -1 else min(self.max_workers, len(series_list))
        tasks = (
            delayed(self._analyze_indexed)(index, series, horizon, forecasters)
            for index, series in enumerate(series_list)
        )

        analyses: List[Optional[SeriesAnalysis]] = [None] * len(series_list)
        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        results = Parallel(n_jobs=n_jobs, prefer="threads", return_as="generator_unordered")(tasks)

        completed = 0
        try:
            for index, analysis in results:
                analyses[index] = analysis
                completed += 1
                if deadline is not None and completed < len(series_list) and time.monotonic() > deadline:
                    raise AnalysisTimeoutError(
                        f"Analysis exceeded {self.timeout} seconds with "
                        f"{completed} of {len(series_list)} series completed"
                    )
        except AnalysisTimeoutError as e:
            # Closing the generator cancels the series still queued
            results.close()
            logger.error(str(e))
            raise

        duration = (datetime.now() - started).total_seconds()
        failed = sum(len(analysis.failures) for analysis in analyses)
        logger.info(f"Analysis completed in {duration:.2f} seconds ({failed} failed forecasts)")

        return analyses

    def analyze_series(self,
                       series: Series,
                       horizon: int,
                       forecasters: Sequence[NamedForecaster]) -> SeriesAnalysis:
        """
        Analyze one series.

        Args:
            series: Series to analyze
            horizon: Number of most recent observations held out
            forecasters: Ordered (algorithm name, forecaster) pairs

        Returns:
            SeriesAnalysis with one result or failure per forecaster
        """
        historical, actual = split_series(series, horizon)

        forecasts: List[ForecastResult] = []
        failures: List[ForecastFailure] = []

        for name, forecaster in forecasters:
            try:
                predicted = forecaster.forecast(historical, horizon, series.interval)
                metrics = self.evaluator.evaluate(actual, predicted)
                forecasts.append(ForecastResult(
                    algorithm_name=name,
                    forecast_observations=predicted,
                    metrics=metrics
                ))
            except ForecastBenchmarkError as e:
                logger.warning(f"{name} failed on series '{series.name}': {e}")
                failures.append(ForecastFailure.from_exception(name, e))
            except Exception as e:
                logger.error(f"{name} raised an unexpected error on series '{series.name}': {e}")
                failures.append(ForecastFailure.from_exception(name, e))

        return SeriesAnalysis(
            series=series,
            historical=historical,
            actual=actual,
            forecasts=forecasts,
            failures=failures
        )

    def _analyze_indexed(self,
                         index: int,
                         series: Series,
                         horizon: int,
                         forecasters: Sequence[NamedForecaster]) -> Tuple[int, SeriesAnalysis]:
        return index, self.analyze_series(series, horizon, forecasters)

    def _validate_batch(self,
                        series_list: List[Series],
                        horizon: int,
                        forecasters: List[NamedForecaster]) -> None:
        if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)) or horizon <= 0:
            raise ValueError(f"horizon must be a positive integer, got {horizon!r}")

        names = [name for name, _ in forecasters]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Forecaster names must be unique, duplicated: {duplicates}")

        for series in series_list:
            if len(series) == 0:
                raise InvalidSeriesError(f"Series '{series.name}' has no observations")


def analyze(series_list: Sequence[Series],
            horizon: int,
            forecasters: Sequence[NamedForecaster],
            **kwargs) -> List[SeriesAnalysis]:
    """
    Convenience function to analyze a batch with a fresh SeriesAnalyzer.

    Args:
        series_list: Series to analyze
        horizon: Number of most recent observations held out per series
        forecasters: Ordered (algorithm name, forecaster) pairs
        **kwargs: SeriesAnalyzer parameters

    Returns:
        One SeriesAnalysis per input series, in input order
    """
    return SeriesAnalyzer(**kwargs).analyze(series_list, horizon, forecasters)


def collect_failures(analyses: Sequence[SeriesAnalysis]) -> List[Tuple[str, ForecastFailure]]:
    """List every recorded failure as (series name, failure)."""
    return [
        (analysis.series.name, failure)
        for analysis in analyses
        for failure in analysis.failures
    ]


def get_analysis_summary(analyses: Sequence[SeriesAnalysis]) -> Dict[str, Any]:
    """
    Get summary of an analysis run.

    Returns:
        Dictionary with counts of series, forecasts and failures
    """
    total_forecasts = sum(len(analysis.forecasts) for analysis in analyses)
    total_failures = sum(len(analysis.failures) for analysis in analyses)
    attempted = total_forecasts + total_failures

    return {
        'total_series': len(analyses),
        'successful_series': sum(1 for analysis in analyses if analysis.is_successful),
        'total_forecasts': total_forecasts,
        'failed_forecasts': total_failures,
        'groups': sorted({analysis.series.group for analysis in analyses}),
        'success_rate': total_forecasts / attempted if attempted else 0
    }
