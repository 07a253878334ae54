"""
Command line entrypoint. Run with: orca-slicer-wayland <command> or python -m orca_wayland
"""
import argparse
import logging
import sys
from pathlib import Path

from orca_wayland.bundle import BundleAssembler
from orca_wayland.config import Config, load_config, setup_logging
from orca_wayland.desktop import default_desktop_entry
from orca_wayland.devshell import build_banner, format_report, library_report, spawn_shell, tool_report
from orca_wayland.launcher import Launcher, find_orca_binary

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="orca-slicer-wayland",
        description="Launch and package OrcaSlicer with NVIDIA Wayland support",
    )
    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL or WARNING)")
    commands = parser.add_subparsers(dest="command")

    launch = commands.add_parser("launch", help="Launch OrcaSlicer (default)")
    launch.add_argument("--binary", help="Path to the real OrcaSlicer binary")
    launch.add_argument("args", nargs=argparse.REMAINDER, help="Arguments forwarded to OrcaSlicer")

    commands.add_parser("env", help="Print the variables the launcher would export")

    desktop = commands.add_parser("desktop-entry", help="Print or write the desktop entry")
    desktop.add_argument("--exec", dest="exec_path", default="orca-slicer", help="Launcher path for Exec=")
    desktop.add_argument("--output", help="Directory to write the .desktop file into")

    bundle = commands.add_parser("bundle", help="Assemble an installable bundle")
    bundle.add_argument("output", help="Bundle output directory")
    bundle.add_argument("--binary", help="Path to the real OrcaSlicer binary")
    bundle.add_argument("--prefix", help="Upstream install prefix providing share/icons")
    bundle.add_argument(
        "--runtime",
        action="append",
        default=[],
        help="Runtime dependency tree to merge into the bundle (repeatable)",
    )

    commands.add_parser("doctor", help="Report session, tools and runtime libraries")

    shell = commands.add_parser("shell", help="Start a diagnostic shell")
    shell.add_argument("--bundle", help="Bundle directory to put on PATH")

    return parser.parse_args(argv)


def _forwarded(args: list[str]) -> list[str]:
    """Drop the separator between launcher options and slicer arguments."""
    if args and args[0] == "--":
        return args[1:]
    return args


def _cmd_launch(args: argparse.Namespace, config: Config) -> int:
    launcher = Launcher(binary=args.binary, config=config)
    return launcher.launch(_forwarded(args.args or []))


def _cmd_env(args: argparse.Namespace, config: Config) -> int:
    plan = Launcher(config=config).plan()
    for message in plan.messages:
        print(f"# {message}")
    for line in plan.exports():
        print(line)
    return 0


def _cmd_desktop_entry(args: argparse.Namespace, config: Config) -> int:
    entry = default_desktop_entry(args.exec_path)
    if args.output:
        print(entry.write(Path(args.output)))
    else:
        sys.stdout.write(entry.render())
    return 0


def _cmd_bundle(args: argparse.Namespace, config: Config) -> int:
    binary = find_orca_binary(args.binary or config.orca_bin)
    if not binary:
        logger.error("OrcaSlicer binary not found. Set ORCA_SLICER_BIN or pass --binary.")
        return 1

    prefix = Path(args.prefix).expanduser() if args.prefix else config.orca_prefix
    assembler = BundleAssembler(
        output_dir=Path(args.output).expanduser(),
        upstream_binary=Path(binary),
        upstream_prefix=prefix,
        runtime_paths=[Path(p).expanduser() for p in args.runtime],
    )
    try:
        out = assembler.assemble()
    except (FileNotFoundError, RuntimeError) as e:
        logger.error(f"Bundle assembly failed: {e}")
        return 1

    print(out)
    return 0


def _cmd_doctor(args: argparse.Namespace, config: Config) -> int:
    print(build_banner(zink_candidates=config.zink_driver_paths))
    print()
    print(format_report("Diagnostic tools:", tool_report()))
    print()
    print(format_report("Runtime libraries:", library_report()))
    print()
    for message in Launcher(config=config).plan().messages:
        print(f"Launcher: {message}")
    return 0


def _cmd_shell(args: argparse.Namespace, config: Config) -> int:
    bundle_dir = Path(args.bundle).expanduser() if args.bundle else None
    return spawn_shell(bundle_dir, zink_candidates=config.zink_driver_paths)


COMMANDS = {
    "launch": _cmd_launch,
    "env": _cmd_env,
    "desktop-entry": _cmd_desktop_entry,
    "bundle": _cmd_bundle,
    "doctor": _cmd_doctor,
    "shell": _cmd_shell,
}


TOP_LEVEL_OPTIONS = ("-h", "--help", "--log-level")


def _default_to_launch(argv: list[str]) -> list[str]:
    """Treat anything that is not a command as slicer arguments, like `orca-slicer model.stl`."""
    if not argv:
        return ["launch"]
    first = argv[0]
    if first in COMMANDS or first in TOP_LEVEL_OPTIONS or first.startswith("--log-level="):
        return argv
    return ["launch", "--", *argv]


def main(argv: list[str] | None = None) -> int:
    argv = _default_to_launch(sys.argv[1:] if argv is None else list(argv))
    args = _parse_args(argv)
    setup_logging(level=args.log_level)
    config = load_config()
    if not args.log_level and config.log_level != logging.getLevelName(logging.getLogger().level):
        # LOG_LEVEL may only be set in a .env file
        setup_logging(level=config.log_level)

    if args.command is None:
        args = _parse_args(["launch"])

    return COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
