"""Tests for the diagnostics shell."""
import pytest

from orca_wayland import devshell
from orca_wayland.devshell import DEV_TOOLS, build_banner, format_report, spawn_shell


@pytest.fixture
def no_tools(monkeypatch):
    monkeypatch.setattr(devshell.shutil, "which", lambda name: None)


def test_banner_wayland_with_zink(no_tools, tmp_path):
    zink = tmp_path / "zink_dri.so"
    zink.touch()
    banner = build_banner({"WAYLAND_DISPLAY": "wayland-1"}, zink_candidates=[zink])

    assert banner.startswith("Orca Slicer NVIDIA Wayland Development Shell")
    assert "Current session: Wayland" in banner
    assert f"Zink driver: Available ({zink})" in banner
    assert "NVIDIA GPU: Install NVIDIA drivers to check" in banner
    for tool in DEV_TOOLS:
        assert tool in banner


def test_banner_x11_without_zink(monkeypatch, tmp_path):
    monkeypatch.setattr(devshell.shutil, "which", lambda name: "/usr/bin/nvidia-smi" if name == "nvidia-smi" else None)
    banner = build_banner({}, zink_candidates=[tmp_path / "missing.so"])
    assert "Current session: X11" in banner
    assert "Zink driver: Not found" in banner
    assert "NVIDIA GPU: Available (nvidia-smi found)" in banner


def test_banner_suggests_nvitop(monkeypatch):
    monkeypatch.setattr(devshell.shutil, "which", lambda name: "/usr/bin/nvitop" if name == "nvitop" else None)
    assert "Use 'nvitop' or 'nvtop' to check" in build_banner({}, zink_candidates=[])


def test_format_report():
    text = format_report("Tools:", {"gdb": "/usr/bin/gdb", "ltrace": None})
    assert text.splitlines()[0] == "Tools:"
    assert "/usr/bin/gdb" in text
    assert "missing" in text


def test_spawn_shell_puts_bundle_first(monkeypatch, tmp_path, no_tools, capsys):
    calls = []
    monkeypatch.setattr(devshell.os, "execvpe", lambda file, argv, env: calls.append((file, argv, env)))

    spawn_shell(tmp_path, environ={"SHELL": "/bin/bash", "PATH": "/usr/bin"}, zink_candidates=[])

    shell, argv, env = calls[0]
    assert shell == "/bin/bash"
    assert argv == ["/bin/bash"]
    assert env["PATH"].split(":")[0] == str(tmp_path.resolve() / "bin")
    assert env["PATH"].endswith("/usr/bin")
    assert "Development Shell" in capsys.readouterr().out


def test_spawn_shell_failure(monkeypatch, no_tools):
    def fail(file, argv, env):
        raise FileNotFoundError(2, "No such file or directory")

    monkeypatch.setattr(devshell.os, "execvpe", fail)
    assert spawn_shell(environ={"SHELL": "/no/such/shell"}, zink_candidates=[]) == 1
