from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import questionary
from questionary import Choice, Separator

from .context import TaskContext
from .i18n import get_string
from .registry import CommandRegistry
from .ui import ui

Action = Tuple[str, Optional[str]]
TaskRunner = Callable[..., int]


def build_choices(ctx: TaskContext) -> List:
    device = ctx.device
    choices: List = [
        Choice(get_string("menu_refresh"), value=("refresh", None)),
        Choice(get_string("menu_status"), value=("status", None)),
    ]
    for name in device.slots:
        label = name + (get_string("status_active_marker") if name == device.active_slot else "")
        choices.append(Separator(f"  {label}"))
        choices.append(Choice(get_string("menu_export").format(slot=name), value=("export", name)))
        choices.append(Choice(get_string("menu_restore").format(slot=name), value=("restore", name)))
    choices.append(Separator(" "))
    choices.append(Choice(get_string("menu_exit"), value=("exit", None)))
    return choices


def ask_action(ctx: TaskContext) -> Optional[Action]:
    ui.banner(get_string("menu_main_title"))
    return questionary.select(
        get_string("prompt_select"),
        choices=build_choices(ctx),
        qmark=">",
        pointer="->",
        instruction=get_string("prompt_use_arrow_keys"),
    ).ask()


def main_loop(registry: CommandRegistry, ctx: TaskContext, run_task: TaskRunner) -> int:
    while True:
        action = ask_action(ctx)
        if action is None or action[0] == "exit":
            return 0

        command, slot = action
        extra: Dict[str, object] = {"slot": slot} if slot else {}
        if command == "restore":
            image = questionary.path(get_string("prompt_restore_image")).ask()
            if not image:
                continue
            extra["image"] = Path(image).expanduser()

        run_task(command, registry, ctx, extra_kwargs=extra)
