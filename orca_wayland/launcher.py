"""
OrcaSlicer launcher with NVIDIA Wayland workarounds.
"""
import errno
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

from orca_wayland.config import Config
from orca_wayland.environment import EnvironmentPlan, compute_environment
from orca_wayland.session import detect_session

logger = logging.getLogger(__name__)

# Shell conventions for an exec that never happened
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126

BINARY_NAMES = ("orca-slicer", "orcaslicer", "OrcaSlicer")
INSTALL_LOCATIONS = (
    Path("/run/current-system/sw/bin/orca-slicer"),
    Path("/usr/bin/orca-slicer"),
    Path("/opt/OrcaSlicer/bin/orca-slicer"),
    Path.home() / ".local" / "bin" / "orca-slicer",
)


def _is_self(path: Path) -> bool:
    """True if path is this wrapper (avoids exec'ing ourselves in a loop)."""
    try:
        own = Path(sys.argv[0]).resolve()
        return path.resolve() == own
    except OSError:
        return False


def find_orca_binary(explicit: Optional[str] = None) -> Optional[str]:
    """
    Find the real OrcaSlicer binary.

    Args:
        explicit: Path given on the command line or in ORCA_SLICER_BIN

    Returns:
        Path to the binary, or None if not found
    """
    if explicit:
        return str(Path(explicit).expanduser())

    possible_paths = [shutil.which(name) for name in BINARY_NAMES]
    possible_paths.extend(str(p) for p in INSTALL_LOCATIONS)

    for path in possible_paths:
        if path and Path(path).exists() and not _is_self(Path(path)):
            logger.info(f"Found OrcaSlicer binary at: {path}")
            return path

    logger.warning("OrcaSlicer binary not found in common locations")
    return None


class Launcher:
    """
    Detects the graphics session and replaces the current process with OrcaSlicer.
    """

    def __init__(self, binary: Optional[str] = None, config: Optional[Config] = None):
        """
        Initialize the launcher.

        Args:
            binary: Path to the real OrcaSlicer binary. If None, uses config or searches
            config: Launcher configuration (loaded from the environment if None)
        """
        self.config = config or Config()
        self._explicit_binary = binary or self.config.orca_bin
        self.binary: Optional[str] = None

    def resolve_binary(self) -> Optional[str]:
        """Locate the real binary; only launch() needs it."""
        if self.binary is None:
            self.binary = find_orca_binary(self._explicit_binary)
        return self.binary

    def plan(self, environ: Optional[Mapping[str, str]] = None) -> EnvironmentPlan:
        """Detect the session and compute the environment plan."""
        environ = os.environ if environ is None else environ
        context = detect_session(
            environ,
            nvidia_tool=self.config.nvidia_tool,
            zink_candidates=self.config.zink_driver_paths,
        )
        return compute_environment(context, egl_vendor_file=self.config.egl_vendor_file)

    def launch(self, args: Sequence[str], environ: Optional[Mapping[str, str]] = None) -> int:
        """
        Exec OrcaSlicer with the session's graphics environment.

        On success this never returns: the slicer takes over the process, so
        stdio and its exit status belong to the caller directly.

        Args:
            args: Arguments forwarded verbatim to OrcaSlicer
            environ: Parent environment (defaults to os.environ)

        Returns:
            Shell-style failure code when the exec itself could not happen
        """
        environ = os.environ if environ is None else environ
        plan = self.plan(environ)

        for message in plan.messages:
            print(message, flush=True)
        logger.debug(f"Exporting: {dict(plan.variables)}")

        if not self.resolve_binary():
            logger.error(
                "OrcaSlicer binary not found. Set ORCA_SLICER_BIN or pass --binary."
            )
            return EXIT_NOT_FOUND

        return exec_binary(self.binary, args, plan.apply(environ))


def exec_binary(binary: str, args: Sequence[str], env: Mapping[str, str]) -> int:
    """Replace the current process with binary; return a shell exit code on failure."""
    argv = [binary, *args]
    logger.debug(f"Command: {' '.join(argv)}")

    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.execve(binary, argv, dict(env))
    except FileNotFoundError:
        logger.error(f"{binary}: No such file or directory")
        return EXIT_NOT_FOUND
    except OSError as e:
        logger.error(f"{binary}: {e.strerror or e}")
        if e.errno in (errno.EACCES, errno.ENOEXEC, errno.EPERM):
            return EXIT_NOT_EXECUTABLE
        return EXIT_NOT_FOUND
    # Only reached when os.execve is replaced (tests)
    return 0
