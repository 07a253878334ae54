"""Diagnostics and development shell for debugging OrcaSlicer on NVIDIA Wayland."""
import ctypes.util
import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Mapping, Optional

from orca_wayland.bundle import RUNTIME_LIBRARIES
from orca_wayland.config import DEFAULT_ZINK_DRIVER_PATHS
from orca_wayland.session import find_zink_driver, is_wayland

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/sh"

DEV_TOOLS = {
    "orca-slicer": "Launch Orca Slicer with NVIDIA Wayland support",
    "vulkaninfo": "Show Vulkan info",
    "glxinfo": "Show OpenGL info",
    "nvitop": "Interactive NVIDIA GPU process viewer",
    "nvtop": "htop-like GPU monitor for NVIDIA/AMD/Intel",
    "nvidia-smi": "Show NVIDIA GPU info (if available)",
    "lspci": "List PCI devices",
    "strace": "Trace system calls",
    "ltrace": "Trace library calls",
    "gdb": "GNU debugger",
}

HANDLED_AUTOMATICALLY = (
    "WAYLAND_DISPLAY detection",
    "NVIDIA GPU detection",
    "Zink driver configuration",
    "WebKit DMA-BUF workarounds",
)


def build_banner(
    environ: Optional[Mapping[str, str]] = None,
    zink_candidates: Iterable[Path] = DEFAULT_ZINK_DRIVER_PATHS,
) -> str:
    """Build the development shell banner with the current session state."""
    environ = os.environ if environ is None else environ

    lines = [
        "Orca Slicer NVIDIA Wayland Development Shell",
        "=" * 44,
        "",
        "Available commands:",
    ]
    width = max(len(name) for name in DEV_TOOLS)
    lines.extend(f"  {name.ljust(width)}  - {desc}" for name, desc in DEV_TOOLS.items())
    lines.append("")
    lines.append("Environment variables that will be set automatically:")
    lines.extend(f"  - {item}" for item in HANDLED_AUTOMATICALLY)
    lines.append("")

    lines.append(f"Current session: {'Wayland' if is_wayland(environ) else 'X11'}")

    if shutil.which("nvidia-smi"):
        lines.append("NVIDIA GPU: Available (nvidia-smi found)")
    elif shutil.which("nvitop"):
        lines.append("NVIDIA GPU: Use 'nvitop' or 'nvtop' to check")
    else:
        lines.append("NVIDIA GPU: Install NVIDIA drivers to check")

    zink = find_zink_driver(zink_candidates)
    lines.append(f"Zink driver: {'Available (' + str(zink) + ')' if zink else 'Not found'}")
    return "\n".join(lines)


def tool_report() -> dict[str, Optional[str]]:
    """Map each diagnostic tool to its path on PATH, or None."""
    return {name: shutil.which(name) for name in DEV_TOOLS}


def library_report() -> dict[str, Optional[str]]:
    """Map each runtime package to the library the dynamic linker would load, or None."""
    return {package: ctypes.util.find_library(lib) for package, lib in RUNTIME_LIBRARIES.items()}


def format_report(title: str, report: Mapping[str, Optional[str]]) -> str:
    lines = [title]
    width = max((len(k) for k in report), default=0)
    for name, found in report.items():
        status = f"✅ {found}" if found else "❌ missing"
        lines.append(f"  {name.ljust(width)}  {status}")
    return "\n".join(lines)


def spawn_shell(
    bundle_dir: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    zink_candidates: Iterable[Path] = DEFAULT_ZINK_DRIVER_PATHS,
) -> int:
    """
    Print the banner and replace the process with an interactive shell.

    Args:
        bundle_dir: Assembled bundle whose bin/ is put first on PATH
        environ: Parent environment (defaults to os.environ)
        zink_candidates: Driver files reported in the banner

    Returns:
        Exit code if the shell could not be started
    """
    environ = dict(os.environ if environ is None else environ)
    print(build_banner(environ, zink_candidates), flush=True)

    if bundle_dir:
        bin_dir = str(Path(bundle_dir).resolve() / "bin")
        environ["PATH"] = os.pathsep.join(p for p in (bin_dir, environ.get("PATH", "")) if p)

    shell = environ.get("SHELL") or DEFAULT_SHELL
    logger.debug(f"Starting shell: {shell}")
    try:
        os.execvpe(shell, [shell], environ)
    except OSError as e:
        logger.error(f"Failed to start shell {shell}: {e}")
        return 1
    return 0
