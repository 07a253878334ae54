"""
Assemble an installable OrcaSlicer bundle.

The bundle is a prefix-style tree:

    bin/orca-slicer                         wrapper script (runs the launcher)
    libexec/orca-slicer/orca-slicer         link to the upstream binary
    share/applications/<entry>.desktop      desktop entry
    share/icons/...                         upstream icons, when provided

plus the symlink union of every runtime dependency tree.
"""
import logging
import os
import shlex
import shutil
import stat
import sys
from pathlib import Path
from typing import Iterable, Optional

from orca_wayland.desktop import default_desktop_entry

logger = logging.getLogger(__name__)

WRAPPER_NAME = "orca-slicer"
UPSTREAM_LINK = Path("libexec") / "orca-slicer" / "orca-slicer"

# Runtime libraries OrcaSlicer needs for the Wayland/Zink path,
# keyed by package name, valued by the library name passed to the linker.
RUNTIME_LIBRARIES = {
    "mesa": "EGL_mesa",
    "libglvnd": "GLdispatch",
    "vulkan-loader": "vulkan",
    "libGL": "GL",
    "libGLU": "GLU",
    "freeglut": "glut",
    "glib": "glib-2.0",
    "gtk3": "gtk-3",
    "webkitgtk": "webkit2gtk-4.1",
    "cairo": "cairo",
    "pango": "pango-1.0",
    "harfbuzz": "harfbuzz",
    "gdk-pixbuf": "gdk_pixbuf-2.0",
    "atk": "atk-1.0",
}

WRAPPER_TEMPLATE = """#!/bin/sh
# OrcaSlicer with NVIDIA Wayland support
exec {python} -m orca_wayland launch --binary {binary} -- "$@"
"""


class BundleAssembler:
    """Builds the bundle tree in output_dir."""

    def __init__(
        self,
        output_dir: Path,
        upstream_binary: Path,
        upstream_prefix: Optional[Path] = None,
        runtime_paths: Iterable[Path] = (),
        python: str = sys.executable,
    ):
        """
        Args:
            output_dir: Bundle root to create
            upstream_binary: The real OrcaSlicer executable
            upstream_prefix: Upstream install prefix; icons are taken from
                <prefix>/share/icons when given
            runtime_paths: Dependency trees to merge into the bundle
            python: Interpreter used by the wrapper script
        """
        self.output_dir = Path(output_dir)
        self.upstream_binary = Path(upstream_binary)
        self.upstream_prefix = Path(upstream_prefix) if upstream_prefix else None
        self.runtime_paths = [Path(p) for p in runtime_paths]
        self.python = python

    @property
    def wrapper_path(self) -> Path:
        return self.output_dir / "bin" / WRAPPER_NAME

    @property
    def icons_source(self) -> Optional[Path]:
        if self.upstream_prefix is None:
            return None
        return self.upstream_prefix / "share" / "icons"

    def assemble(self) -> Path:
        """
        Build the bundle.

        Returns:
            The bundle root

        Raises:
            FileNotFoundError: If the upstream binary doesn't exist
            RuntimeError: If two runtime trees provide conflicting files
        """
        if not self.upstream_binary.is_file():
            raise FileNotFoundError(f"OrcaSlicer binary not found: {self.upstream_binary}")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        upstream = self._link_upstream()
        self._write_wrapper(upstream)
        default_desktop_entry(str(self.wrapper_path)).write(self.output_dir / "share" / "applications")

        for path in self.runtime_paths:
            self._link_tree(path, self.output_dir)

        self._copy_icons()

        logger.info(f"✅ Bundle assembled at {self.output_dir}")
        return self.output_dir

    def _link_upstream(self) -> Path:
        link = self.output_dir / UPSTREAM_LINK
        link.parent.mkdir(parents=True, exist_ok=True)
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(self.upstream_binary.resolve())
        return link

    def _write_wrapper(self, upstream: Path) -> None:
        self.wrapper_path.parent.mkdir(parents=True, exist_ok=True)
        script = WRAPPER_TEMPLATE.format(
            python=shlex.quote(self.python),
            binary=shlex.quote(str(upstream.absolute())),
        )
        self.wrapper_path.write_text(script, encoding="utf-8")
        mode = self.wrapper_path.stat().st_mode
        self.wrapper_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.debug(f"Wrote wrapper: {self.wrapper_path}")

    def _link_tree(self, source: Path, target: Path) -> None:
        """Merge source into target: real directories, symlinked files."""
        if not source.is_dir():
            logger.warning(f"Runtime path is not a directory, skipping: {source}")
            return

        for entry in sorted(source.iterdir()):
            dest = target / entry.name
            if entry.is_dir() and not entry.is_symlink():
                if dest.is_symlink() or (dest.exists() and not dest.is_dir()):
                    raise RuntimeError(f"Collision: {dest} is not a directory (from {entry})")
                dest.mkdir(exist_ok=True)
                self._link_tree(entry, dest)
                continue

            if dest.is_symlink() or dest.exists():
                if dest.is_symlink() and os.path.realpath(dest) == os.path.realpath(entry):
                    continue
                raise RuntimeError(f"Collision: {dest} already provided, cannot link {entry}")
            dest.symlink_to(entry.resolve())

    def _copy_icons(self) -> None:
        """Copy upstream icons if the upstream package ships any."""
        source = self.icons_source
        if source is None or not source.is_dir():
            logger.debug(f"No icons at {source}, skipping")
            return

        count = 0
        for root, _dirs, files in os.walk(source):
            rel = Path(root).relative_to(source)
            dest_dir = self.output_dir / "share" / "icons" / rel
            dest_dir.mkdir(parents=True, exist_ok=True)
            for name in files:
                dest = dest_dir / name
                # Never write through a link into a runtime tree
                if dest.is_symlink() or dest.exists():
                    dest.unlink()
                shutil.copy2(Path(root) / name, dest)
                count += 1

        logger.info(f"Copied {count} icon file(s) from {source}")
