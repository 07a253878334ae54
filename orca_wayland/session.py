"""
Session detection for the launcher.

Detects: display server (Wayland or not), a responsive NVIDIA driver stack,
and an installed Zink Gallium driver. Every probe is failure tolerant: a tool
that is missing, crashes or exits non-zero is simply a negative answer.
"""
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

from orca_wayland.config import DEFAULT_NVIDIA_TOOL, DEFAULT_ZINK_DRIVER_PATHS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Graphics state of the current login session, read once at launch."""
    wayland: bool = False
    nvidia: bool = False
    zink_driver: Optional[Path] = None

    @property
    def has_zink(self) -> bool:
        return self.zink_driver is not None


def is_wayland(environ: Mapping[str, str]) -> bool:
    """WAYLAND_DISPLAY set to a non-empty value."""
    return bool(environ.get("WAYLAND_DISPLAY"))


def nvidia_available(tool: str = DEFAULT_NVIDIA_TOOL) -> bool:
    """Return True when the NVIDIA tool is on PATH and runs successfully."""
    path = shutil.which(tool)
    if not path:
        logger.debug(f"{tool} not found on PATH")
        return False

    try:
        result = subprocess.run(
            [path],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        logger.debug(f"{tool} could not be executed: {e}")
        return False

    logger.debug(f"{tool} exited with code {result.returncode}")
    return result.returncode == 0


def find_zink_driver(candidates: Iterable[Path] = DEFAULT_ZINK_DRIVER_PATHS) -> Optional[Path]:
    """Return the first candidate Zink driver file that exists."""
    for path in candidates:
        if Path(path).is_file():
            logger.debug(f"Found Zink driver at: {path}")
            return Path(path)
    return None


def detect_session(
    environ: Optional[Mapping[str, str]] = None,
    nvidia_tool: str = DEFAULT_NVIDIA_TOOL,
    zink_candidates: Iterable[Path] = DEFAULT_ZINK_DRIVER_PATHS,
) -> SessionContext:
    """
    Probe the current session.

    Probes run lazily: the NVIDIA tool is only run inside a Wayland session
    and the Zink driver is only looked up when the NVIDIA probe succeeded.
    Probes that were skipped report a negative result.

    Args:
        environ: Environment to inspect (defaults to os.environ)
        nvidia_tool: Name or path of the NVIDIA diagnostic tool
        zink_candidates: Driver files to check, in priority order

    Returns:
        The detected SessionContext
    """
    environ = os.environ if environ is None else environ

    if not is_wayland(environ):
        return SessionContext()

    if not nvidia_available(nvidia_tool):
        return SessionContext(wayland=True)

    return SessionContext(
        wayland=True,
        nvidia=True,
        zink_driver=find_zink_driver(zink_candidates),
    )
