"""Tests for the launcher's graphics environment decisions."""
import itertools
from pathlib import Path

import pytest

from orca_wayland.config import DEFAULT_EGL_VENDOR_FILE
from orca_wayland.environment import (
    BRANCH_TABLE,
    MANAGED_VARIABLES,
    compute_environment,
)
from orca_wayland.session import SessionContext

ZINK_PATH = Path("/run/opengl-driver/lib/dri/zink_dri.so")

ZINK_KEYS = {
    "__GLX_VENDOR_LIBRARY_NAME",
    "__EGL_VENDOR_LIBRARY_FILENAMES",
    "MESA_LOADER_DRIVER_OVERRIDE",
    "GALLIUM_DRIVER",
}
NVIDIA_WAYLAND_KEYS = {
    "WEBKIT_DISABLE_DMABUF_RENDERER",
    "__GL_SYNC_TO_VBLANK",
    "__GL_THREADED_OPTIMIZATIONS",
}


def _context(wayland: bool, nvidia: bool, zink: bool) -> SessionContext:
    return SessionContext(wayland=wayland, nvidia=nvidia, zink_driver=ZINK_PATH if zink else None)


def _expected_keys(wayland: bool, nvidia: bool, zink: bool) -> set[str]:
    if not (wayland and nvidia):
        return set()
    if zink:
        return ZINK_KEYS | NVIDIA_WAYLAND_KEYS
    return {"__EGL_VENDOR_LIBRARY_FILENAMES"} | NVIDIA_WAYLAND_KEYS


@pytest.mark.parametrize("wayland,nvidia,zink", list(itertools.product([False, True], repeat=3)))
def test_detection_matrix(wayland, nvidia, zink):
    """Every session combination yields exactly the expected variable names."""
    plan = compute_environment(_context(wayland, nvidia, zink))
    assert set(plan.variables) == _expected_keys(wayland, nvidia, zink)
    assert set(plan.variables) <= set(MANAGED_VARIABLES)


def test_each_combination_matches_one_branch():
    for wayland, nvidia, zink in itertools.product([False, True], repeat=3):
        context = _context(wayland, nvidia, zink)
        assert any(branch.matches(context) for branch in BRANCH_TABLE)


def test_zink_values():
    plan = compute_environment(_context(True, True, True))
    assert plan.variables == {
        "__GLX_VENDOR_LIBRARY_NAME": "mesa",
        "__EGL_VENDOR_LIBRARY_FILENAMES": DEFAULT_EGL_VENDOR_FILE,
        "MESA_LOADER_DRIVER_OVERRIDE": "zink",
        "GALLIUM_DRIVER": "zink",
        "WEBKIT_DISABLE_DMABUF_RENDERER": "1",
        "__GL_SYNC_TO_VBLANK": "0",
        "__GL_THREADED_OPTIMIZATIONS": "1",
    }
    assert "Using Zink for hardware acceleration" in plan.messages


def test_software_fallback_values():
    plan = compute_environment(_context(True, True, False))
    assert plan.variables == {
        "__EGL_VENDOR_LIBRARY_FILENAMES": DEFAULT_EGL_VENDOR_FILE,
        "WEBKIT_DISABLE_DMABUF_RENDERER": "1",
        "__GL_SYNC_TO_VBLANK": "0",
        "__GL_THREADED_OPTIMIZATIONS": "1",
    }
    assert "Zink not available, falling back to software rendering" in plan.messages


def test_egl_vendor_file_is_configurable():
    plan = compute_environment(_context(True, True, True), egl_vendor_file="/etc/egl/mesa.json")
    assert plan.variables["__EGL_VENDOR_LIBRARY_FILENAMES"] == "/etc/egl/mesa.json"


def test_x11_sets_nothing():
    plan = compute_environment(_context(False, False, False))
    assert plan.variables == {}
    assert plan.messages == ("Running on X11",)


def test_wayland_without_nvidia_sets_nothing():
    plan = compute_environment(_context(True, False, True))
    assert plan.variables == {}
    assert plan.messages == ("Detected Wayland session", "No NVIDIA GPU detected")


def test_idempotent():
    context = _context(True, True, True)
    assert compute_environment(context) == compute_environment(context)


def test_apply_keeps_parent_environment():
    parent = {"HOME": "/home/user", "GALLIUM_DRIVER": "llvmpipe", "PATH": "/usr/bin"}
    plan = compute_environment(_context(True, True, True))
    merged = plan.apply(parent)

    assert merged["HOME"] == "/home/user"
    assert merged["PATH"] == "/usr/bin"
    assert merged["GALLIUM_DRIVER"] == "zink"
    assert set(merged) == set(parent) | set(plan.variables)
    # The parent mapping itself is untouched
    assert parent["GALLIUM_DRIVER"] == "llvmpipe"


def test_apply_empty_plan_is_inherited_environment():
    parent = {"WAYLAND_DISPLAY": "", "LANG": "C.UTF-8"}
    plan = compute_environment(_context(False, False, False))
    assert plan.apply(parent) == parent


def test_exports():
    plan = compute_environment(_context(True, True, False))
    assert "export WEBKIT_DISABLE_DMABUF_RENDERER=1" in plan.exports()
    assert len(plan.exports()) == 4


def test_exports_are_shell_quoted():
    plan = compute_environment(_context(True, True, False), egl_vendor_file="/my dir/50 mesa.json")
    assert "export __EGL_VENDOR_LIBRARY_FILENAMES='/my dir/50 mesa.json'" in plan.exports()
