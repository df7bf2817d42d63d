#!/usr/bin/env python3
"""
Demo script for the forecast benchmark with sample data.
Loads stock prices (from a CSV if given) and synthetic database wait times,
scores every configured forecaster on the held-out tail and writes charts.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pandas as pd
import numpy as np

from forecasting.analyzer import SeriesAnalyzer, collect_failures, get_analysis_summary
from forecasting.forecaster import default_forecasters
from timeseries.loader import STOCK_COLUMNS, load_series_csv, load_series_frame
from utils.config import Config
from visualization.aggregator import metrics_frame
from visualization.visualizer import PlotlyVisualizer


def create_sample_stock_data():
    """Create random-walk closing prices for a few tickers."""
    np.random.seed(42)
    dates = pd.bdate_range('2023-01-02', periods=250)

    frames = []
    for name, start in [('AAPL', 130.0), ('MSFT', 240.0), ('AMZN', 85.0)]:
        closes = start * np.exp(np.cumsum(np.random.normal(0.0005, 0.015, len(dates))))
        frames.append(pd.DataFrame({'Date': dates, 'Name': name, 'Close': closes}))

    return pd.concat(frames, ignore_index=True)


def create_sample_wait_times():
    """Create hourly query wait times with a daily cycle."""
    np.random.seed(7)
    dates = pd.date_range('2024-03-01', periods=24 * 14, freq='h')
    hours = np.arange(len(dates)) % 24

    frames = []
    for name, base in [('orders-db', 40.0), ('billing-db', 120.0)]:
        waits = base + 0.3 * base * np.sin(2 * np.pi * hours / 24) + np.random.normal(0, base * 0.05, len(dates))
        frames.append(pd.DataFrame({'timestamp': dates, 'database': name, 'wait_ms': waits}))

    return pd.concat(frames, ignore_index=True)


def main():
    """Run the forecast benchmark demo."""
    print("Forecast Benchmark Demo")
    print("=" * 50)

    Config.validate()

    if len(sys.argv) > 1:
        print(f"Loading stocks from {sys.argv[1]}...")
        stocks = load_series_csv(sys.argv[1], group='Stock', **STOCK_COLUMNS)
    else:
        print("Creating sample stock data...")
        stocks = load_series_frame(create_sample_stock_data(), group='Stock', **STOCK_COLUMNS)

    wait_times = load_series_frame(
        create_sample_wait_times(),
        group='Database Wait Times',
        name_column='database',
        date_column='timestamp',
        value_column='wait_ms'
    )
    series_list = stocks + wait_times
    print(f"   Loaded {len(series_list)} series")

    forecasters = default_forecasters()
    print(f"\nForecasting {Config.FORECAST_HORIZON} points with: {[name for name, _ in forecasters]}")

    analyzer = SeriesAnalyzer()
    analyses = analyzer.analyze(series_list, Config.FORECAST_HORIZON, forecasters)

    summary = get_analysis_summary(analyses)
    print(f"\nResults:")
    print(f"   Series analyzed: {summary['total_series']}")
    print(f"   Forecasts scored: {summary['total_forecasts']}")
    print(f"   Failed forecasts: {summary['failed_forecasts']}")

    table = metrics_frame(analyses)
    print("\n" + table[['series', 'algorithm', 'status', 'rmse', 'r_squared']].to_string(index=False))

    for series_name, failure in collect_failures(analyses):
        print(f"   {series_name} / {failure.algorithm_name}: {failure.error_type} ({failure.message})")

    written = PlotlyVisualizer().render_report(analyses)
    print(f"\nWrote {len(written)} charts to {Config.CHART_OUTPUT_DIR}/")


if __name__ == "__main__":
    main()
