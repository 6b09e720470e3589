"""
Tests for the registration plot.
"""

import sys
from pathlib import Path

import numpy as np

sys.path.append(str(Path(__file__).parent.parent / "src"))

from scan_matching.alignment.fine_registration import ICPResult
from scan_matching.alignment.points import points_from_array
from scan_matching.visualization.scan_plot import format_result_caption, plot_registration


def test_caption_units():
    result = ICPResult(0.1, -0.02, np.deg2rad(1.5), 0.95)

    caption = format_result_caption(result)

    assert caption == "Translation: x=10.00cm, y=-2.00cm, rot=1.50deg, convergence: 95.00%"
    assert format_result_caption(result.as_tuple()) == caption


def test_plot_registration_writes_html(tmp_path):
    rng = np.random.default_rng(0)
    reference = rng.uniform(-3.0, 3.0, size=(100, 2))
    original = reference + 0.3
    aligned = points_from_array(reference + 0.001)
    result = ICPResult(-0.3, -0.3, 0.0, 1.0, iterations=3, converged=True)

    out = plot_registration(reference, aligned, original, result, tmp_path / "plots" / "run.html")

    assert out.exists()
    text = out.read_text(encoding="utf-8")
    assert "Translation: x=-30.00cm" in text
