"""
Scan Preprocessing Module

Loading of 2-D scans from plain-text files and conversion into registration
point types.
"""

from .scan_loader import load_scan, load_scan_points

__all__ = [
    "load_scan",
    "load_scan_points",
]
