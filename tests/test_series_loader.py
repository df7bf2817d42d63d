"""
Unit tests for the tabular series loader and configuration.
"""

import unittest
from unittest.mock import patch
from datetime import datetime, timedelta
import tempfile
import shutil
import sys
import os

import pandas as pd

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from timeseries.loader import STOCK_COLUMNS, infer_interval, load_series_csv, load_series_frame
from utils.config import Config
from utils.exceptions import ConfigurationError, DataLoadingError


class TestLoadSeriesFrame(unittest.TestCase):
    """Test cases for building series from DataFrames."""

    def setUp(self):
        """Set up test fixtures."""
        # Interleaved tickers with out-of-order dates, as in a raw export
        self.frame = pd.DataFrame({
            'Date': ['2024-01-03', '2024-01-01', '2024-01-02', '2024-01-01', '2024-01-02', '2024-01-03'],
            'Name': ['MSFT', 'MSFT', 'AAPL', 'AAPL', 'MSFT', 'AAPL'],
            'Open': [1, 2, 3, 4, 5, 6],
            'Close': [372.5, 370.0, 185.6, 185.2, 371.1, 184.3]
        })

    def test_groups_by_name_in_first_appearance_order(self):
        """Test one series per name, ordered as names first appear."""
        series_list = load_series_frame(self.frame, group='Stock', **STOCK_COLUMNS)

        self.assertEqual([s.name for s in series_list], ['MSFT', 'AAPL'])
        self.assertTrue(all(s.group == 'Stock' for s in series_list))

    def test_observations_sorted_by_date(self):
        """Test that each series is sorted chronologically."""
        msft = load_series_frame(self.frame, group='Stock', **STOCK_COLUMNS)[0]

        self.assertEqual(msft.timestamps, (datetime(2024, 1, 1), datetime(2024, 1, 2), datetime(2024, 1, 3)))
        self.assertEqual([obs.value for obs in msft.observations], [370.0, 371.1, 372.5])
        self.assertIsInstance(msft.observations[0].timestamp, datetime)

    def test_interval_inferred(self):
        """Test that the median spacing becomes the interval."""
        series_list = load_series_frame(self.frame, group='Stock', **STOCK_COLUMNS)
        self.assertEqual(series_list[0].interval, timedelta(days=1))

    def test_explicit_interval(self):
        """Test that an explicit interval overrides inference."""
        series_list = load_series_frame(self.frame, group='Stock', interval=timedelta(hours=6))
        self.assertTrue(all(s.interval == timedelta(hours=6) for s in series_list))

    def test_custom_columns(self):
        """Test database wait time columns."""
        frame = pd.DataFrame({
            'timestamp': pd.date_range('2024-03-01', periods=4, freq='h'),
            'database': ['orders-db'] * 4,
            'wait_ms': [40, 42, 41, 45]
        })
        series_list = load_series_frame(
            frame, group='Database Wait Times',
            name_column='database', date_column='timestamp', value_column='wait_ms'
        )

        self.assertEqual(len(series_list), 1)
        self.assertEqual(series_list[0].interval, timedelta(hours=1))
        self.assertEqual(len(series_list[0]), 4)

    def test_missing_values_dropped(self):
        """Test that rows without a value are skipped."""
        frame = self.frame.copy()
        frame.loc[0, 'Close'] = None
        msft = load_series_frame(frame, group='Stock', **STOCK_COLUMNS)[0]
        self.assertEqual(len(msft), 2)

    def test_missing_columns(self):
        """Test that missing columns are reported."""
        with self.assertRaises(DataLoadingError) as context:
            load_series_frame(self.frame.drop(columns=['Close']), group='Stock')
        self.assertIn('Close', str(context.exception))

    def test_unparseable_values(self):
        """Test that non-numeric values are rejected."""
        frame = self.frame.copy()
        frame['Close'] = frame['Close'].astype(object)
        frame.loc[1, 'Close'] = 'n/a'
        with self.assertRaises(DataLoadingError):
            load_series_frame(frame, group='Stock')

    def test_single_row_uses_default_interval(self):
        """Test the fallback interval for one-row series."""
        frame = pd.DataFrame({'Date': ['2024-01-01'], 'Name': ['IPO'], 'Close': [10.0]})
        with patch.object(Config, 'DEFAULT_INTERVAL_SECONDS', 3600.0):
            series = load_series_frame(frame, group='Stock')[0]
        self.assertEqual(series.interval, timedelta(hours=1))

    def test_infer_interval_median(self):
        """Test that irregular gaps resolve to the median gap."""
        stamps = pd.Series(pd.to_datetime(['2024-01-01', '2024-01-02', '2024-01-03', '2024-01-08']))
        self.assertEqual(infer_interval(stamps), timedelta(days=1))


class TestLoadSeriesCsv(unittest.TestCase):
    """Test cases for CSV loading."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_load_csv(self):
        """Test loading a stock CSV file."""
        path = os.path.join(self.temp_dir, 'big_five_stocks.csv')
        with open(path, 'w') as f:
            f.write("Date,Name,Open,Close,High,Low,Volume\n")
            f.write("2024-01-02,AAPL,187.15,185.64,188.44,183.89,82488700\n")
            f.write("2024-01-03,AAPL,184.22,184.25,185.88,183.43,58414500\n")
            f.write("2024-01-02,AMZN,151.54,149.93,152.38,148.39,47339400\n")

        series_list = load_series_csv(path, group='Stock', **STOCK_COLUMNS)

        self.assertEqual([s.name for s in series_list], ['AAPL', 'AMZN'])
        self.assertEqual(series_list[0].observations[1].value, 184.25)

    def test_missing_file(self):
        """Test that a missing file raises DataLoadingError."""
        with self.assertRaises(DataLoadingError):
            load_series_csv(os.path.join(self.temp_dir, 'missing.csv'), group='Stock')


class TestConfig(unittest.TestCase):
    """Test cases for configuration validation."""

    def test_defaults_are_valid(self):
        """Test that the default configuration validates."""
        with patch.object(Config, 'DEFAULT_FORECASTERS', 'linear_regression,holt_winters'):
            Config.validate()
            self.assertEqual(Config.forecaster_names(), ['linear_regression', 'holt_winters'])

    def test_invalid_values(self):
        """Test that invalid values are rejected."""
        with patch.object(Config, 'FORECAST_HORIZON', 0):
            with self.assertRaises(ConfigurationError):
                Config.validate()

        with patch.object(Config, 'MAX_WORKERS', 0):
            with self.assertRaises(ConfigurationError):
                Config.validate()

        with patch.object(Config, 'DEFAULT_FORECASTERS', 'linear_regression, prophet'):
            with self.assertRaises(ConfigurationError) as context:
                Config.validate()
            self.assertIn('prophet', str(context.exception))


if __name__ == '__main__':
    unittest.main(verbosity=2)
