"""
Configuration management for scan-matching.

Provides a typed pydantic model and YAML loader with sensible defaults.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Optional, Literal, Any, Dict

from pydantic import BaseModel, Field, ValidationError
import yaml


# -----------------------
# Typed config structures
# -----------------------


class RegistrationConfig(BaseModel):
    max_iterations: int = Field(default=50, ge=1)
    convergence_distance: float = Field(
        default=0.005,
        gt=0.0,
        description="Translation step (meters) below which ICP stops",
    )
    convergence_rotation_deg: float = Field(
        default=0.1,
        gt=0.0,
        description="Rotation step (degrees) below which ICP stops",
    )
    convergence_points_maxdist: float = Field(
        default=0.01,
        gt=0.0,
        description="Per-axis distance (meters) for a point to count as converged",
    )
    correct_reflection: bool = Field(
        default=False,
        description="Turn an SVD reflection into a proper rotation (a warning is logged either way)",
    )
    condition_epsilon: float = Field(
        default=1e-9,
        ge=0.0,
        description="Singular value ratio below which the correspondence set is ill-conditioned",
    )
    check_invariants: bool = Field(
        default=False,
        description="Re-verify the movable scan center of mass after every transform",
    )
    validate_points: bool = Field(
        default=False,
        description="Check every point's validity once before registering",
    )

    @property
    def convergence_rotation_rad(self) -> float:
        return math.radians(self.convergence_rotation_deg)


class InitialGuessConfig(BaseModel):
    x: float = Field(default=0.0, description="Initial x translation (meters)")
    y: float = Field(default=0.0, description="Initial y translation (meters)")
    angle_deg: float = Field(default=0.0, description="Initial rotation (degrees)")

    @property
    def angle_rad(self) -> float:
        return math.radians(self.angle_deg)


class PlotConfig(BaseModel):
    enabled: bool = Field(default=False)
    output: Optional[str] = Field(default=None, description="Plot file (.html, or an image suffix)")
    axis_min: float = Field(default=-4.0)
    axis_max: float = Field(default=4.0)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file: Optional[str] = Field(default=None)


class AppConfig(BaseModel):
    registration: RegistrationConfig = Field(default_factory=RegistrationConfig)
    initial_guess: InitialGuessConfig = Field(default_factory=InitialGuessConfig)
    plot: PlotConfig = Field(default_factory=PlotConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# -----------------------
# Loader
# -----------------------


def _project_root() -> Path:
    """
    Resolve the repository root directory.

    File is at: repo_root/src/scan_matching/utils/config.py
    """
    return Path(__file__).resolve().parents[3]


def load_config(path: Optional[str | Path] = None, *, allow_missing: bool = True) -> AppConfig:
    """
    Load configuration from YAML into a typed AppConfig.

    Search order when path is None:
    1) repo_root/config/default.yaml
    2) if missing and allow_missing=True: return default AppConfig()

    Args:
        path: Explicit YAML file path.
        allow_missing: If True, returns defaults when the default file is missing.
            An explicit path that does not exist always raises.

    Returns:
        AppConfig instance
    """
    cfg_path: Path
    if path is None:
        cfg_path = _project_root() / "config" / "default.yaml"
    else:
        cfg_path = Path(path)

    if not cfg_path.exists():
        if allow_missing and path is None:
            return AppConfig()
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        # Re-raise with context to help users fix the YAML
        raise ValueError(f"Invalid configuration in {cfg_path}: {e}") from e
