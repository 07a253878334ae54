"""Tests for the desktop entry."""
from orca_wayland.desktop import DesktopEntry, default_desktop_entry


def test_default_entry_render():
    text = default_desktop_entry("/opt/bundle/bin/orca-slicer").render()
    lines = text.splitlines()

    assert lines[0] == "[Desktop Entry]"
    assert "Type=Application" in lines
    assert "Name=Orca Slicer (NVIDIA Wayland)" in lines
    assert "Exec=/opt/bundle/bin/orca-slicer %F" in lines
    assert "Icon=orca-slicer" in lines
    assert "Categories=Graphics;3DGraphics;Engineering;" in lines
    assert (
        "MimeType=model/stl;application/vnd.ms-3mfdocument;application/prs.wavefront-obj;"
        "application/x-amf;x-scheme-handler/orcaslicer;"
    ) in lines
    assert "StartupNotify=true" in lines
    assert "Terminal=false" in lines
    assert text.endswith("\n")


def test_exec_path_with_spaces_is_quoted():
    entry = default_desktop_entry("/home/me/My Apps/bin/orca-slicer")
    assert entry.exec == '"/home/me/My Apps/bin/orca-slicer" %F'


def test_values_are_escaped():
    entry = DesktopEntry(
        name="x",
        desktop_name="Line\nBreak",
        exec="x",
        categories=["A;B"],
    )
    text = entry.render()
    assert "Name=Line\\nBreak" in text
    assert "Categories=A\\;B;" in text


def test_write(tmp_path):
    entry = default_desktop_entry("orca-slicer")
    path = entry.write(tmp_path / "share" / "applications")
    assert path.name == "orca-slicer-nvidia-wayland.desktop"
    assert path.read_text(encoding="utf-8") == entry.render()


def test_exec_percent_is_escaped():
    entry = default_desktop_entry("/opt/100%/bin/orca-slicer")
    assert entry.exec == "/opt/100%%/bin/orca-slicer %F"
