"""
Visualization Module

Debug plots of registration runs rendered with Plotly.
"""

from .scan_plot import plot_registration

__all__ = [
    "plot_registration",
]
