"""
Registration Plots

Renders a registration run as two stacked panels: the reference scan with the
movable scan before alignment, and the reference scan with the aligned scan.
"""

from pathlib import Path
from typing import Sequence, Tuple, Union

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from ..alignment.fine_registration import ICPResult
from ..alignment.points import ICPPoint, positions_of
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

ScanLike = Union[np.ndarray, Sequence[ICPPoint]]


def _as_xy(scan: ScanLike) -> np.ndarray:
    if isinstance(scan, np.ndarray):
        return scan.reshape(-1, 2)
    return positions_of(scan)


def _scatter(xy: np.ndarray, name: str, color: str, showlegend: bool = True) -> go.Scatter:
    return go.Scatter(
        x=xy[:, 0],
        y=xy[:, 1],
        mode="markers",
        marker=dict(size=3, color=color),
        name=name,
        legendgroup=name,
        showlegend=showlegend,
    )


def format_result_caption(result: Union[ICPResult, Sequence[float]]) -> str:
    """Caption with translation in cm, rotation in degrees and convergence in percent."""
    if isinstance(result, ICPResult):
        result = result.as_tuple()
    x, y, rot, convergence = result
    return (
        f"Translation: x={x * 100.0:.2f}cm, y={y * 100.0:.2f}cm, "
        f"rot={np.rad2deg(rot):.2f}deg, convergence: {convergence * 100.0:.2f}%"
    )


def plot_registration(
    reference: ScanLike,
    aligned: ScanLike,
    original: ScanLike,
    result: Union[ICPResult, Sequence[float]],
    path: Union[str, Path],
    axis_range: Tuple[float, float] = (-4.0, 4.0),
) -> Path:
    """
    Write a before/after plot of a registration run.

    Args:
        reference: Reference scan.
        aligned: Movable scan after registration.
        original: Movable scan before registration.
        result: ICPResult or an (x, y, rot_rad, convergence) sequence.
        path: Output file. ".html" writes an interactive page; any other
            suffix is rendered as a static image (requires kaleido).
        axis_range: Range used for both axes of both panels.

    Returns:
        Path of the written file.
    """
    ref_xy = _as_xy(reference)
    aligned_xy = _as_xy(aligned)
    original_xy = _as_xy(original)

    fig = make_subplots(
        rows=2,
        cols=1,
        subplot_titles=("Before registration", format_result_caption(result)),
        vertical_spacing=0.08,
    )
    fig.add_trace(_scatter(ref_xy, "reference", "blue"), row=1, col=1)
    fig.add_trace(_scatter(original_xy, "movable", "red"), row=1, col=1)
    fig.add_trace(_scatter(ref_xy, "reference", "blue", showlegend=False), row=2, col=1)
    fig.add_trace(_scatter(aligned_xy, "aligned", "green"), row=2, col=1)

    # Keep X and Y to scale in both panels
    fig.update_xaxes(range=list(axis_range), constrain="domain")
    fig.update_yaxes(range=list(axis_range), scaleanchor="x", scaleratio=1, row=1, col=1)
    fig.update_yaxes(range=list(axis_range), scaleanchor="x2", scaleratio=1, row=2, col=1)
    fig.update_layout(width=720, height=1440, template="plotly_white")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".html":
        fig.write_html(str(path))
    else:
        fig.write_image(str(path))
    logger.info("Plot saved to %s", path)
    return path
