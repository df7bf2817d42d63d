"""
Aggregation of analysis results into chart inputs.
Builds line-chart traces per series and metric buckets per series group.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from timeseries.data_models import Observation, RegressionMetrics, SeriesAnalysis


@dataclass(frozen=True)
class Trace:
    """Named (x, y) point sequence handed to a chart renderer."""
    name: str
    x: Tuple[datetime, ...]
    y: Tuple[float, ...]

    @classmethod
    def from_observations(cls, name: str, observations: Sequence[Observation]) -> 'Trace':
        return cls(
            name=name,
            x=tuple(obs.timestamp for obs in observations),
            y=tuple(obs.value for obs in observations)
        )


def group_metrics(analyses: Sequence[SeriesAnalysis]) -> Dict[str, Dict[str, List[RegressionMetrics]]]:
    """
    Group forecast metrics by series group, then by algorithm.

    Failed series/algorithm pairs contribute nothing. Groups and algorithms
    keep the order in which they first appear.
    """
    grouped: Dict[str, Dict[str, List[RegressionMetrics]]] = {}
    for analysis in analyses:
        by_algorithm = grouped.setdefault(analysis.series.group, {})
        for result in analysis.forecasts:
            by_algorithm.setdefault(result.algorithm_name, []).append(result.metrics)
    return grouped


def histogram_buckets(analyses: Sequence[SeriesAnalysis],
                      metric: str = 'rmse') -> Dict[str, Dict[str, List[float]]]:
    """
    Values of one metric per group and algorithm, ready for histograms.

    Args:
        analyses: Analysis records
        metric: RegressionMetrics field to extract

    Returns:
        Mapping group -> algorithm -> metric values across the group's series
    """
    if metric not in RegressionMetrics.__dataclass_fields__:
        raise ValueError(f"Unknown metric: {metric}")

    return {
        group: {
            algorithm: [getattr(metrics, metric) for metrics in metrics_list]
            for algorithm, metrics_list in by_algorithm.items()
        }
        for group, by_algorithm in group_metrics(analyses).items()
    }


def traces(analysis: SeriesAnalysis) -> List[Trace]:
    """
    Line-chart traces for one series: historical, actual, then one per forecast.
    """
    result = [
        Trace.from_observations('historical', analysis.historical),
        Trace.from_observations('actual', analysis.actual)
    ]
    result.extend(
        Trace.from_observations(forecast.algorithm_name, forecast.forecast_observations)
        for forecast in analysis.forecasts
    )
    return result


def metrics_frame(analyses: Sequence[SeriesAnalysis]) -> pd.DataFrame:
    """
    Tabulate every series/algorithm pair, failures included.

    Returns:
        DataFrame with one row per pair and a `status` column
    """
    rows = []
    for analysis in analyses:
        base = {'series': analysis.series.name, 'group': analysis.series.group}
        for result in analysis.forecasts:
            row = dict(base, algorithm=result.algorithm_name, status='ok', error='')
            row.update(result.metrics.as_dict())
            rows.append(row)
        for failure in analysis.failures:
            rows.append(dict(
                base,
                algorithm=failure.algorithm_name,
                status='failed',
                error=f"{failure.error_type}: {failure.message}"
            ))

    columns = ['series', 'group', 'algorithm', 'status', 'mae', 'mse', 'rmse',
               'r_squared', 'mape', 'bias', 'error']
    return pd.DataFrame(rows, columns=columns)
