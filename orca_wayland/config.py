"""Centralized configuration and logging setup."""
import logging
import os
from pathlib import Path
from typing import Mapping

from dotenv import dotenv_values


# Constants
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_NVIDIA_TOOL = "nvidia-smi"
DEFAULT_ZINK_DRIVER_PATHS = (
    Path("/run/opengl-driver/lib/dri/zink_dri.so"),
    Path("/usr/lib/dri/zink_dri.so"),
)
DEFAULT_EGL_VENDOR_FILE = "/run/opengl-driver/share/glvnd/egl_vendor.d/50_mesa.json"
DEFAULT_ENV_FILE = Path.home() / ".config" / "orca-slicer-wayland" / ".env"


def setup_logging(level: str | None = None, format_str: str | None = None) -> None:
    """
    Setup centralized logging configuration.

    Log records go to stderr; stdout belongs to the launcher's decision messages.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_str: Log message format
    """
    log_level = (level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    log_format = format_str or os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)

    logging.basicConfig(
        format=log_format,
        level=getattr(logging, log_level, logging.WARNING),
        datefmt=DEFAULT_LOG_DATE_FORMAT,
        force=True,  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={log_level}")


def _read_env_files(paths: list[Path]) -> dict[str, str]:
    """Merge dotenv files without touching os.environ (earlier files win)."""
    values: dict[str, str] = {}
    for path in reversed(paths):
        if path.is_file():
            values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
    return values


class Config:
    """Launcher configuration with validation."""

    def __init__(self, environ: Mapping[str, str] | None = None, env_files: list[Path] | None = None):
        """
        Initialize configuration from the environment and optional .env files.

        The process environment always takes precedence over file values. The
        files are parsed with dotenv_values so nothing from them leaks into
        the environment handed to the slicer.

        Args:
            environ: Environment to read (defaults to os.environ)
            env_files: Dotenv files to consult, highest priority first
        """
        self._environ = os.environ if environ is None else environ
        if env_files is None:
            env_files = self._default_env_files()
        self._file_values = _read_env_files(env_files)

        self.orca_bin = self._get("ORCA_SLICER_BIN")
        prefix = self._get("ORCA_SLICER_PREFIX")
        self.orca_prefix = Path(prefix).expanduser() if prefix else None

        self.nvidia_tool = self._get("ORCA_NVIDIA_TOOL") or DEFAULT_NVIDIA_TOOL
        self.zink_driver_paths = self._parse_paths(self._get("ORCA_ZINK_DRIVER_PATHS"))
        self.egl_vendor_file = self._get("ORCA_EGL_VENDOR_FILE") or DEFAULT_EGL_VENDOR_FILE

        # Logging
        self.log_level = (self._get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()

    def _default_env_files(self) -> list[Path]:
        explicit = self._environ.get("ORCA_WAYLAND_ENV_FILE")
        if explicit:
            return [Path(explicit).expanduser()]
        return [DEFAULT_ENV_FILE, Path.cwd() / ".env"]

    def _get(self, key: str) -> str | None:
        """Get a setting from the environment, falling back to .env values."""
        value = self._environ.get(key)
        if value:
            return value
        return self._file_values.get(key) or None

    def _parse_paths(self, paths_str: str | None) -> tuple[Path, ...]:
        """Parse colon-separated driver paths."""
        if paths_str is None:
            return DEFAULT_ZINK_DRIVER_PATHS
        return tuple(Path(p.strip()) for p in paths_str.split(":") if p.strip())

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation warnings (empty if all OK)
        """
        warnings = []

        if self.orca_bin and not Path(self.orca_bin).is_absolute():
            warnings.append(f"ORCA_SLICER_BIN should be an absolute path: {self.orca_bin}")

        if not self.zink_driver_paths:
            warnings.append("ORCA_ZINK_DRIVER_PATHS is empty - Zink will never be selected")

        if self.orca_prefix and not self.orca_prefix.is_dir():
            warnings.append(f"ORCA_SLICER_PREFIX does not exist: {self.orca_prefix}")

        return warnings

    def __repr__(self) -> str:
        return (
            f"Config(orca_bin={self.orca_bin or 'auto'}, "
            f"orca_prefix={self.orca_prefix or 'not set'}, "
            f"nvidia_tool={self.nvidia_tool}, "
            f"zink_driver_paths={len(self.zink_driver_paths)}, "
            f"egl_vendor_file={self.egl_vendor_file})"
        )


def load_config() -> Config:
    """Load and validate configuration."""
    config = Config()

    logger = logging.getLogger(__name__)
    logger.debug(f"Configuration loaded: {config}")

    warnings = config.validate()
    for warning in warnings:
        logger.warning(warning)

    return config
