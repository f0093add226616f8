from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, Optional

from . import constants as const
from .errors import DeviceStateUnusable, ToolError
from .export import ExportStore
from .i18n import get_string
from .logger import get_logger
from .models import SlotRecord
from .settings import EngineConfig
from .shell import RootShell
from .slot import Listener, SlotState
from .utils import first_line


def detect_slot_suffix(shell: RootShell) -> Optional[str]:
    suffix = first_line(shell.exec("getprop ro.boot.slot_suffix").out)
    return suffix if suffix in const.SLOT_SUFFIXES else None


class DeviceState:
    def __init__(
        self,
        shell: RootShell,
        store: ExportStore,
        config: Optional[EngineConfig] = None,
        listener: Optional[Listener] = None,
    ):
        self.config = config or EngineConfig()
        self.shell = shell
        self.logger = get_logger(self.config.log_tag)
        self._executor = ThreadPoolExecutor(max_workers=len(const.SLOT_SUFFIXES), thread_name_prefix="slot")

        try:
            self.slot_suffix = detect_slot_suffix(shell)
            if self.slot_suffix:
                names = [f"boot{suffix}" for suffix in const.SLOT_SUFFIXES]
            else:
                names = ["boot"]
            self.slots: Dict[str, SlotState] = {
                name: SlotState(name, shell, store, self.config, listener, executor=self._executor)
                for name in names
            }
            self.refresh()
        except ToolError as e:
            self.close()
            self.logger.debug("Device state unusable: %s", e)
            raise DeviceStateUnusable(get_string("err_device_unusable").format(e=e)) from e

    @property
    def active_slot(self) -> str:
        return f"boot{self.slot_suffix or ''}"

    def get_slot(self, key: str) -> SlotState:
        key = key.strip().lower()
        for name in (key, f"boot{key}", f"boot_{key}"):
            if name in self.slots:
                return self.slots[name]
        raise ToolError(
            get_string("err_unknown_slot").format(slot=key, slots=", ".join(self.slots))
        )

    def refresh(self) -> Dict[str, SlotRecord]:
        futures = {name: slot.submit("refresh") for name, slot in self.slots.items()}
        wait(futures.values())
        return {name: future.result() for name, future in futures.items()}

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "DeviceState":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
