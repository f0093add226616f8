import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import constants as const
from . import i18n, menu
from .commands import register_all_commands
from .context import TaskContext
from .errors import ToolError
from .export import DirectoryExportStore
from .i18n import get_string
from .logger import logging_context, set_console_level
from .registry import CommandRegistry
from .shell import AdbRootShell, LocalRootShell, RootShell
from .ui import ui


def run_task(
    command: str,
    registry: CommandRegistry,
    ctx: TaskContext,
    extra_kwargs: Optional[Dict[str, Any]] = None,
) -> int:
    spec = registry.get(command)
    if spec is None:
        ui.error(get_string("unknown_command").format(command=command))
        return 2

    ui.banner(get_string("starting_task").format(title=spec.title))

    try:
        final_kwargs = spec.default_kwargs.copy()
        if extra_kwargs:
            final_kwargs.update(extra_kwargs)

        if spec.require_device:
            ctx.connect()

        result = spec.func(ctx, **final_kwargs)

        if spec.result_handler:
            spec.result_handler(result)
        elif isinstance(result, str) and result:
            ui.echo(result)
        return 0

    except ToolError as e:
        ui.box_output([get_string("task_failed").format(title=spec.title), str(e)], err=True)
        return 1
    except KeyboardInterrupt:
        ui.error(get_string("process_cancelled"))
        return 130
    finally:
        ui.echo("")
        ui.banner(get_string("task_completed").format(title=spec.title))


def create_shell(adb: Optional[str]) -> RootShell:
    if adb is None:
        return LocalRootShell()
    return AdbRootShell.connect(adb or None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bootimagetool",
        description="Inspect, export and back up Android boot slots with magiskboot.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {const.VERSION}")
    parser.add_argument(
        "--adb", nargs="?", const="", default=None, metavar="SERIAL",
        help="drive a device over ADB instead of the local root shell",
    )
    parser.add_argument("--export-dir", type=Path, default=const.EXPORT_DIR)
    parser.add_argument(
        "--lang", default=i18n.DEFAULT_LANG,
        choices=[code for code, _ in i18n.get_available_languages()],
    )
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("--debug", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status")
    sub.add_parser("refresh")
    sub.add_parser("exports")
    export_parser = sub.add_parser("export")
    export_parser.add_argument("slot")
    restore_parser = sub.add_parser("restore")
    restore_parser.add_argument("slot")
    restore_parser.add_argument("image", type=Path)
    sub.add_parser("menu")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    i18n.load_lang(args.lang)
    if args.debug:
        set_console_level(logging.DEBUG)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = args.log_file or const.LOG_DIR / f"bootimagetool_{timestamp}.log"

    registry = register_all_commands(CommandRegistry())
    ctx = TaskContext(
        store=DirectoryExportStore(args.export_dir),
        shell_factory=lambda: create_shell(args.adb),
    )

    with logging_context(log_file):
        try:
            if args.command == "menu":
                return menu.main_loop(registry, ctx, run_task)
            extra = {k: getattr(args, k) for k in ("slot", "image") if hasattr(args, k)}
            return run_task(args.command, registry, ctx, extra_kwargs=extra)
        except ToolError as e:
            ui.box_output([str(e)], err=True)
            return 1
        except KeyboardInterrupt:
            ui.error(get_string("process_cancelled"))
            return 130
        finally:
            ctx.close()


if __name__ == "__main__":
    sys.exit(main())
