"""
Graphics environment decisions for the launcher.

The decision tree is kept as a branch table so that every combination of
session state maps to exactly one row.
"""
import logging
import shlex
from dataclasses import dataclass, field
from typing import Mapping, Optional

from orca_wayland.config import DEFAULT_EGL_VENDOR_FILE
from orca_wayland.session import SessionContext

logger = logging.getLogger(__name__)

GLX_VENDOR = "__GLX_VENDOR_LIBRARY_NAME"
EGL_VENDOR_FILES = "__EGL_VENDOR_LIBRARY_FILENAMES"
MESA_DRIVER_OVERRIDE = "MESA_LOADER_DRIVER_OVERRIDE"
GALLIUM_DRIVER = "GALLIUM_DRIVER"
WEBKIT_DISABLE_DMABUF = "WEBKIT_DISABLE_DMABUF_RENDERER"
GL_SYNC_TO_VBLANK = "__GL_SYNC_TO_VBLANK"
GL_THREADED_OPTIMIZATIONS = "__GL_THREADED_OPTIMIZATIONS"

# The only names the launcher is allowed to set or override
MANAGED_VARIABLES = (
    GLX_VENDOR,
    EGL_VENDOR_FILES,
    MESA_DRIVER_OVERRIDE,
    GALLIUM_DRIVER,
    WEBKIT_DISABLE_DMABUF,
    GL_SYNC_TO_VBLANK,
    GL_THREADED_OPTIMIZATIONS,
)

# Variable blocks. EGL_VENDOR_FILES is filled in from configuration.
ZINK = {
    GLX_VENDOR: "mesa",
    EGL_VENDOR_FILES: None,
    MESA_DRIVER_OVERRIDE: "zink",
    GALLIUM_DRIVER: "zink",
}
SOFTWARE_FALLBACK = {
    EGL_VENDOR_FILES: None,
}
NVIDIA_WAYLAND = {
    # Fixes the blank preview pane in the embedded WebKit view
    WEBKIT_DISABLE_DMABUF: "1",
    GL_SYNC_TO_VBLANK: "0",
    GL_THREADED_OPTIMIZATIONS: "1",
}


@dataclass(frozen=True)
class Branch:
    """One row of the decision table. None matches any value."""
    wayland: Optional[bool]
    nvidia: Optional[bool]
    zink: Optional[bool]
    blocks: tuple = ()
    messages: tuple = ()

    def matches(self, context: SessionContext) -> bool:
        observed = (context.wayland, context.nvidia, context.has_zink)
        expected = (self.wayland, self.nvidia, self.zink)
        return all(want is None or want == got for want, got in zip(expected, observed))


BRANCH_TABLE = (
    Branch(
        wayland=False, nvidia=None, zink=None,
        messages=("Running on X11",),
    ),
    Branch(
        wayland=True, nvidia=False, zink=None,
        messages=("Detected Wayland session", "No NVIDIA GPU detected"),
    ),
    Branch(
        wayland=True, nvidia=True, zink=True,
        blocks=(ZINK, NVIDIA_WAYLAND),
        messages=(
            "Detected Wayland session",
            "NVIDIA GPU detected, applying Wayland workarounds...",
            "Using Zink for hardware acceleration",
        ),
    ),
    Branch(
        wayland=True, nvidia=True, zink=False,
        blocks=(SOFTWARE_FALLBACK, NVIDIA_WAYLAND),
        messages=(
            "Detected Wayland session",
            "NVIDIA GPU detected, applying Wayland workarounds...",
            "Zink not available, falling back to software rendering",
        ),
    ),
)


@dataclass(frozen=True)
class EnvironmentPlan:
    """Variables to export for the slicer plus the decisions that led to them."""
    variables: Mapping[str, str] = field(default_factory=dict)
    messages: tuple = ()

    def apply(self, environ: Mapping[str, str]) -> dict[str, str]:
        """
        Return a copy of environ with the planned variables applied.

        Inherited variables are never removed; only the managed names may be
        overridden.
        """
        merged = dict(environ)
        merged.update(self.variables)
        return merged

    def exports(self) -> list[str]:
        """Render the plan as shell export lines."""
        return [f"export {name}={shlex.quote(value)}" for name, value in self.variables.items()]


def select_branch(context: SessionContext) -> Branch:
    for branch in BRANCH_TABLE:
        if branch.matches(context):
            return branch
    # Unreachable: the table covers every combination
    raise RuntimeError(f"No launcher branch for session {context}")


def compute_environment(
    context: SessionContext,
    egl_vendor_file: str = DEFAULT_EGL_VENDOR_FILE,
) -> EnvironmentPlan:
    """
    Compute the environment variables for a session.

    Args:
        context: Detected session state
        egl_vendor_file: GLVND EGL vendor description for Mesa

    Returns:
        EnvironmentPlan with the variables to export and the decision messages
    """
    branch = select_branch(context)

    variables: dict[str, str] = {}
    for block in branch.blocks:
        for name, value in block.items():
            variables[name] = egl_vendor_file if name == EGL_VENDOR_FILES else value

    logger.debug(f"Session {context} -> {sorted(variables)}")
    return EnvironmentPlan(variables=variables, messages=branch.messages)
