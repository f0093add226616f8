from dataclasses import dataclass, field
from typing import Callable, Optional

from .device import DeviceState
from .export import ExportStore
from .settings import EngineConfig
from .shell import RootShell


@dataclass
class TaskContext:
    store: ExportStore
    shell_factory: Callable[[], RootShell]
    config: EngineConfig = field(default_factory=EngineConfig)
    _device: Optional[DeviceState] = field(default=None, init=False, repr=False)

    def connect(self) -> DeviceState:
        if self._device is None:
            self._device = DeviceState(self.shell_factory(), self.store, self.config)
        return self._device

    @property
    def device(self) -> DeviceState:
        return self.connect()

    def close(self) -> None:
        if self._device is not None:
            self._device.close()
            self._device = None
