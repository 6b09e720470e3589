"""
Tests for the plain-text scan loader.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from scan_matching.alignment.points import Point2D, PointPair
from scan_matching.preprocessing.scan_loader import load_scan, load_scan_points


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "scan.txt"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_scan_parses_whitespace_separated_pairs(tmp_path):
    path = _write(tmp_path, "0.5 1.25\n-2\t3.0\n\n  4.0   -0.75  \n")

    arr = load_scan(path)

    assert arr.shape == (3, 2)
    np.testing.assert_allclose(arr, [[0.5, 1.25], [-2.0, 3.0], [4.0, -0.75]])


def test_trailing_newline_and_extra_columns_are_ignored(tmp_path):
    path = _write(tmp_path, "1 2 99\n3 4 98\n")

    np.testing.assert_allclose(load_scan(path), [[1.0, 2.0], [3.0, 4.0]])


def test_empty_file_gives_empty_array(tmp_path):
    arr = load_scan(_write(tmp_path, "\n\n"))

    assert arr.shape == (0, 2)


def test_load_scan_points_builds_requested_kind(tmp_path):
    path = _write(tmp_path, "1 2\n3 4\n")

    assert load_scan_points(path) == [Point2D(1.0, 2.0), Point2D(3.0, 4.0)]
    assert load_scan_points(path, PointPair) == [(1.0, 2.0), (3.0, 4.0)]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scan(tmp_path / "missing.txt")


def test_single_column_line_raises(tmp_path):
    path = _write(tmp_path, "1 2\n3\n")

    with pytest.raises(ValueError, match=":2:"):
        load_scan(path)


def test_non_numeric_value_raises(tmp_path):
    path = _write(tmp_path, "1 2\nx 4\n")

    with pytest.raises(ValueError, match="non-numeric"):
        load_scan(path)
