"""
Scan Loader

Reads 2-D scans stored as plain text, one "x y" pair per line separated by
whitespace. Blank lines are ignored.
"""

from pathlib import Path
from typing import List, Type, Union

import numpy as np

from ..alignment.points import P, Point2D, points_from_array
from ..utils.logging import setup_logger

logger = setup_logger(__name__)


def load_scan(file_path: Union[str, Path]) -> np.ndarray:
    """
    Load a scan file into an (N, 2) array.

    Args:
        file_path: Path to the scan text file.

    Returns:
        Float array of shape (N, 2).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a line does not start with two numeric values.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Scan file not found: {file_path}")

    rows = []
    with file_path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            fields = line.split()
            if not fields:
                continue
            if len(fields) < 2:
                raise ValueError(f"{file_path}:{line_no}: expected 'x y', got {line.strip()!r}")
            try:
                rows.append((float(fields[0]), float(fields[1])))
            except ValueError:
                raise ValueError(
                    f"{file_path}:{line_no}: non-numeric coordinate in {line.strip()!r}"
                ) from None

    logger.info("Loaded %d points from %s", len(rows), file_path)
    return np.array(rows, dtype=float).reshape(-1, 2)


def load_scan_points(file_path: Union[str, Path], point_type: Type[P] = Point2D) -> List[P]:
    """Load a scan file as a list of registration points."""
    return points_from_array(load_scan(file_path), point_type)
