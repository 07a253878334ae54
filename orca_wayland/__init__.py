# orca-slicer-wayland – OrcaSlicer launcher with NVIDIA Wayland support

"""Main package for orca-slicer-wayland."""

__version__ = "0.1.0"

from orca_wayland.config import Config, load_config, setup_logging
from orca_wayland.environment import EnvironmentPlan, compute_environment
from orca_wayland.launcher import Launcher
from orca_wayland.session import SessionContext, detect_session

__all__ = [
    "Config",
    "load_config",
    "setup_logging",
    "EnvironmentPlan",
    "compute_environment",
    "Launcher",
    "SessionContext",
    "detect_session",
    "__version__",
]
