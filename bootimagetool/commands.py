from pathlib import Path
from typing import List

from . import constants as const
from .context import TaskContext
from .i18n import get_string
from .models import SlotRecord
from .registry import CommandRegistry
from .ui import ui


def _status_value(value) -> str:
    return value.value if value is not None else "-"


def format_record(record: SlotRecord, active: bool = False) -> List[str]:
    marker = get_string("status_active_marker") if active else ""
    return [
        get_string("status_slot_header").format(slot=record.name, marker=marker),
        get_string("status_patch").format(status=_status_value(record.patch_status)),
        get_string("status_sha1").format(sha1=record.sha1 or "-"),
        get_string("status_backup").format(status=_status_value(record.backup_status)),
        get_string("status_export").format(status=_status_value(record.export_status)),
    ]


def show_status(ctx: TaskContext) -> List[str]:
    device = ctx.device
    lines: List[str] = []
    for name, slot in device.slots.items():
        lines.extend(format_record(slot.record, active=(name == device.active_slot)))
        lines.append("")
    return lines


def refresh_device(ctx: TaskContext) -> List[str]:
    ctx.device.refresh()
    return show_status(ctx)


def export_slot(ctx: TaskContext, slot: str) -> str:
    entry_id = ctx.device.get_slot(slot).export_image()
    return get_string("cmd_export_saved").format(path=entry_id)


def restore_slot(ctx: TaskContext, slot: str, image: Path) -> List[str]:
    record = ctx.device.get_slot(slot).restore_from_backup(image)
    return format_record(record)


def list_exports(ctx: TaskContext) -> List[str]:
    pattern = f"{const.EXPORT_PREFIX}*{const.EXPORT_EXT}"
    names = [name for _, name in ctx.store.list_candidates(pattern)]
    if not names:
        return [get_string("cmd_no_exports")]
    return names


def _print_lines(lines: List[str]) -> None:
    for line in lines:
        ui.echo(line)


def register_all_commands(registry: CommandRegistry) -> CommandRegistry:
    command_specs = [
        ("status", show_status, get_string("task_title_status"), True, _print_lines),
        ("refresh", refresh_device, get_string("task_title_refresh"), True, _print_lines),
        ("export", export_slot, get_string("task_title_export"), True, None),
        ("restore", restore_slot, get_string("task_title_restore"), True, _print_lines),
        ("exports", list_exports, get_string("task_title_exports"), False, _print_lines),
    ]
    for name, func, title, require_device, handler in command_specs:
        registry.add(name, func, title, require_device=require_device, result_handler=handler)
    return registry
