"""
Desktop entry for the wrapped OrcaSlicer.

Renders a freedesktop.org .desktop file that application menus and file
managers pick up from share/applications.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

DESKTOP_ENTRY_NAME = "orca-slicer-nvidia-wayland"
DESKTOP_NAME = "Orca Slicer (NVIDIA Wayland)"
DESKTOP_COMMENT = "3D Slicer for FDM/FFF 3D Printers with NVIDIA Wayland support"
DESKTOP_ICON = "orca-slicer"
DESKTOP_CATEGORIES = ["Graphics", "3DGraphics", "Engineering"]
DESKTOP_MIME_TYPES = [
    "model/stl",
    "application/vnd.ms-3mfdocument",
    "application/prs.wavefront-obj",
    "application/x-amf",
    "x-scheme-handler/orcaslicer",
]
DESKTOP_SPEC_VERSION = "1.4"

# Exec field code for "a list of files"
FILES_PLACEHOLDER = "%F"


def _escape(value: str) -> str:
    """Escape a string value per the Desktop Entry specification."""
    return (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )


def _escape_list(values: List[str]) -> str:
    return "".join(_escape(v).replace(";", "\\;") + ";" for v in values)


def _quote_exec_arg(arg: str) -> str:
    # A literal % would otherwise be read as a field code
    arg = arg.replace("%", "%%")
    reserved = set(' \t\n"\'\\><~|&;$*?#()`')
    if not any(c in reserved for c in arg):
        return arg
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"').replace("`", "\\`").replace("$", "\\$")
    return f'"{escaped}"'


@dataclass
class DesktopEntry:
    """A launchable application entry."""
    name: str
    desktop_name: str
    exec: str
    icon: str = DESKTOP_ICON
    comment: str = ""
    categories: List[str] = field(default_factory=list)
    mime_types: List[str] = field(default_factory=list)
    startup_notify: bool = True
    terminal: bool = False
    type: str = "Application"

    @property
    def filename(self) -> str:
        return f"{self.name}.desktop"

    def render(self) -> str:
        """Render the entry as .desktop file text."""
        lines = [
            "[Desktop Entry]",
            f"Type={self.type}",
            f"Version={DESKTOP_SPEC_VERSION}",
            f"Name={_escape(self.desktop_name)}",
        ]
        if self.comment:
            lines.append(f"Comment={_escape(self.comment)}")
        lines.append(f"Exec={_escape(self.exec)}")
        lines.append(f"Icon={_escape(self.icon)}")
        lines.append(f"Terminal={'true' if self.terminal else 'false'}")
        if self.categories:
            lines.append(f"Categories={_escape_list(self.categories)}")
        if self.mime_types:
            lines.append(f"MimeType={_escape_list(self.mime_types)}")
        lines.append(f"StartupNotify={'true' if self.startup_notify else 'false'}")
        return "\n".join(lines) + "\n"

    def write(self, directory: Path) -> Path:
        """
        Write the entry into directory.

        Args:
            directory: Target directory, usually <prefix>/share/applications

        Returns:
            Path to the written .desktop file
        """
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_text(self.render(), encoding="utf-8")
        logger.info(f"Wrote desktop entry: {path}")
        return path


def default_desktop_entry(launcher_path: str) -> DesktopEntry:
    """Desktop entry that opens files through the given launcher."""
    return DesktopEntry(
        name=DESKTOP_ENTRY_NAME,
        desktop_name=DESKTOP_NAME,
        exec=f"{_quote_exec_arg(str(launcher_path))} {FILES_PLACEHOLDER}",
        icon=DESKTOP_ICON,
        comment=DESKTOP_COMMENT,
        categories=list(DESKTOP_CATEGORIES),
        mime_types=list(DESKTOP_MIME_TYPES),
        startup_notify=True,
    )
