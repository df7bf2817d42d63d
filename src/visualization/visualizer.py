"""
Visualization module for forecast benchmarking.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
import logging
import re

import plotly.graph_objects as go

from .aggregator import Trace, histogram_buckets, traces
from timeseries.data_models import SeriesAnalysis
from utils.config import Config

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Visualizer(ABC):
    """Abstract base class for visualization."""

    @abstractmethod
    def create_forecast_chart(self, title: str, chart_traces: Sequence[Trace]) -> Any:
        """Create a line chart overlaying historical, actual and forecast traces."""
        pass

    @abstractmethod
    def create_metric_histogram(self, title: str, buckets: Dict[str, List[float]]) -> Any:
        """Create a histogram with one bucket series per algorithm."""
        pass

    @abstractmethod
    def export_visualization(self, visualization: Any, format_type: str) -> bytes:
        """Export visualization in specified format."""
        pass


class PlotlyVisualizer(Visualizer):
    """
    Interactive charts rendered with plotly.

    Example:
        visualizer = PlotlyVisualizer()
        figure = visualizer.create_forecast_chart(series.name, traces(analysis))
        html = visualizer.export_visualization(figure, 'html')
    """

    SUPPORTED_FORMATS = ('html', 'json')

    def __init__(self, histogram_bins: Optional[int] = None, height: int = 500):
        """
        Initialize the plotly visualizer.

        Args:
            histogram_bins: Bin count for histograms; plotly picks one if None
            height: Figure height in pixels
        """
        self.histogram_bins = histogram_bins if histogram_bins is not None else Config.HISTOGRAM_BINS
        self.height = height

    def create_forecast_chart(self, title: str, chart_traces: Sequence[Trace]) -> go.Figure:
        figure = go.Figure()
        for trace in chart_traces:
            figure.add_trace(go.Scatter(
                x=list(trace.x),
                y=list(trace.y),
                mode='lines',
                name=trace.name
            ))

        figure.update_layout(
            title=title,
            xaxis_title='Time',
            yaxis_title='Value',
            height=self.height
        )
        return figure

    def create_metric_histogram(self,
                                title: str,
                                buckets: Dict[str, List[float]],
                                value_label: str = 'RMSE') -> go.Figure:
        figure = go.Figure()
        for algorithm, values in buckets.items():
            histogram = go.Histogram(x=list(values), name=algorithm, opacity=0.6)
            if self.histogram_bins:
                histogram.nbinsx = self.histogram_bins
            figure.add_trace(histogram)

        figure.update_layout(
            title=title,
            barmode='overlay',
            xaxis_title=value_label,
            yaxis_title='Series',
            height=self.height
        )
        return figure

    def export_visualization(self, visualization: go.Figure, format_type: str) -> bytes:
        format_type = format_type.lower()
        if format_type == 'html':
            return visualization.to_html(include_plotlyjs='cdn', full_html=True).encode('utf-8')
        if format_type == 'json':
            return visualization.to_json().encode('utf-8')

        raise ValueError(
            f"Unsupported export format: {format_type}. Supported: {', '.join(self.SUPPORTED_FORMATS)}"
        )

    def render_report(self,
                      analyses: Sequence[SeriesAnalysis],
                      output_dir: Optional[Union[str, Path]] = None,
                      metric: str = 'rmse') -> List[Path]:
        """
        Write one line chart per series and one histogram per group as HTML.

        Args:
            analyses: Analysis records
            output_dir: Directory for the HTML files; Config.CHART_OUTPUT_DIR if None
            metric: Metric shown in the group histograms

        Returns:
            Paths of the written files
        """
        output_dir = Path(output_dir or Config.CHART_OUTPUT_DIR)
        output_dir.mkdir(parents=True, exist_ok=True)

        written = []
        used = set()
        for analysis in analyses:
            figure = self.create_forecast_chart(analysis.series.name, traces(analysis))
            filename = _unique_filename('series', analysis.series.name, used)
            written.append(self._write(figure, output_dir / filename))

        for group, buckets in histogram_buckets(analyses, metric).items():
            figure = self.create_metric_histogram(f"{group} {metric.upper()}", buckets, metric.upper())
            written.append(self._write(figure, output_dir / _unique_filename('histogram', group, used)))

        logger.info(f"Wrote {len(written)} charts to {output_dir}")
        return written

    def _write(self, figure: go.Figure, path: Path) -> Path:
        path.write_bytes(self.export_visualization(figure, 'html'))
        return path


def _slug(name: str) -> str:
    return re.sub(r'[^A-Za-z0-9_.-]+', '_', name).strip('_') or 'chart'


def _unique_filename(prefix: str, name: str, used: set) -> str:
    """Build an HTML filename, suffixing a counter when the slug is taken."""
    stem = f"{prefix}_{_slug(name)}"
    filename = f"{stem}.html"
    counter = 2
    while filename in used:
        filename = f"{stem}_{counter}.html"
        counter += 1
    used.add(filename)
    return filename
