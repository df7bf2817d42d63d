"""
Tabular series loader.
Groups rows by series name and maps each row's date/value into an observation.
"""

from typing import List, Optional, Union
from datetime import timedelta
from pathlib import Path
import logging

import pandas as pd

from .data_models import Observation, Series
from utils.config import Config
from utils.exceptions import DataLoadingError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Column layout of the stock price files
STOCK_COLUMNS = {'name_column': 'Name', 'date_column': 'Date', 'value_column': 'Close'}


def infer_interval(timestamps: pd.Series, default: Optional[timedelta] = None) -> timedelta:
    """
    Infer the nominal spacing of a series as the median gap between timestamps.

    Args:
        timestamps: Sorted timestamps of one series
        default: Interval used when fewer than two distinct timestamps exist

    Returns:
        Positive timedelta
    """
    if default is None:
        default = timedelta(seconds=Config.DEFAULT_INTERVAL_SECONDS)

    gaps = timestamps.diff().dropna()
    gaps = gaps[gaps > pd.Timedelta(0)]
    if gaps.empty:
        return default

    return gaps.median().to_pytimedelta()


def load_series_frame(frame: pd.DataFrame,
                      group: str,
                      name_column: str = 'Name',
                      date_column: str = 'Date',
                      value_column: str = 'Close',
                      interval: Optional[timedelta] = None) -> List[Series]:
    """
    Build one Series per distinct name in a DataFrame.

    Args:
        frame: Rows with a name, a date and a numeric value column
        group: Group label given to every series
        name_column: Column holding the series name
        date_column: Column holding the observation timestamp
        value_column: Column holding the observation value
        interval: Spacing for every series; inferred per series if None

    Returns:
        Series in order of first appearance of their name
    """
    missing = [col for col in (name_column, date_column, value_column) if col not in frame.columns]
    if missing:
        raise DataLoadingError(f"Missing required columns: {missing}")

    data = frame[[name_column, date_column, value_column]].copy()
    try:
        data[date_column] = pd.to_datetime(data[date_column])
        data[value_column] = pd.to_numeric(data[value_column])
    except (ValueError, TypeError) as e:
        raise DataLoadingError(f"Could not parse {date_column}/{value_column}: {e}") from e

    dropped = len(data)
    data = data.dropna()
    dropped -= len(data)
    if dropped:
        logger.warning(f"Dropped {dropped} rows with missing values")

    series_list = []
    for name, rows in data.groupby(name_column, sort=False):
        rows = rows.sort_values(date_column, kind='stable')
        series_interval = interval or infer_interval(rows[date_column])

        observations = [
            Observation(timestamp.to_pydatetime(), value)
            for timestamp, value in zip(rows[date_column], rows[value_column])
        ]
        series_list.append(Series(
            name=str(name),
            group=group,
            interval=series_interval,
            observations=observations
        ))

    logger.info(f"Loaded {len(series_list)} series for group '{group}'")
    return series_list


def load_series_csv(path: Union[str, Path], group: str, **kwargs) -> List[Series]:
    """
    Load series from a CSV file with a header row.

    Args:
        path: CSV file path
        group: Group label given to every series
        **kwargs: Column and interval options for load_series_frame

    Returns:
        Series in order of first appearance of their name
    """
    path = Path(path)
    logger.info(f"Loading series from '{path}'...")

    try:
        frame = pd.read_csv(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Failed to read {path}: {e}")
        raise DataLoadingError(f"Failed to read {path}: {e}") from e

    return load_series_frame(frame, group, **kwargs)
