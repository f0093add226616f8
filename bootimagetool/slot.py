import io
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Generator, Optional, Union

from . import constants as const
from .backup import BackupManager
from .classifier import BootImageClassifier
from .errors import InvalidBootImage, SlotNotReady, SourceUnavailable, ToolError
from .export import ExportManager, ExportStore
from .i18n import get_string
from .logger import get_logger
from .magiskboot import MagiskBoot
from .models import ExportStatus, SlotPhase, SlotRecord
from .settings import EngineConfig
from .shell import RootShell
from .ui import ui

Listener = Callable[[SlotRecord], None]
ImageSource = Union[str, Path, bytes, BinaryIO]

PUBLIC_OPERATIONS = ("refresh", "export_image", "restore_from_backup")

_default_executor: Optional[ThreadPoolExecutor] = None
_default_executor_lock = threading.Lock()


def _get_default_executor() -> ThreadPoolExecutor:
    global _default_executor
    with _default_executor_lock:
        if _default_executor is None:
            _default_executor = ThreadPoolExecutor(thread_name_prefix="slot")
        return _default_executor


class SlotState:
    def __init__(
        self,
        name: str,
        shell: RootShell,
        store: ExportStore,
        config: Optional[EngineConfig] = None,
        listener: Optional[Listener] = None,
        boot_path: Optional[str] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.config = config or EngineConfig()
        self.record = SlotRecord(name)
        self.boot_path = boot_path or self.config.boot_path(name)
        self.shell = shell
        self.logger = get_logger(self.config.log_tag)
        self._listener = listener
        self._executor = executor
        self._lock = threading.Lock()

        magiskboot = MagiskBoot(shell, self.config.magiskboot)
        self.classifier = BootImageClassifier(
            shell, magiskboot, self.config.work_dir, self.config.log_tag
        )
        self.backups = BackupManager(
            shell, magiskboot, self.config.backup_root, self.config.work_dir, self.config.log_tag
        )
        self.exports = ExportManager(
            shell, self.classifier, store, self.config.work_dir, self.config.log_tag
        )

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def is_refreshing(self) -> bool:
        return self.record.is_refreshing

    @contextmanager
    def _operation(self, phase: SlotPhase, requires_ready: bool = False) -> Generator[None, None, None]:
        with self._lock:
            previous = self.record.phase
            if requires_ready and not (previous == SlotPhase.READY and self.record.is_classified):
                raise SlotNotReady(get_string("err_slot_not_ready").format(slot=self.name))

            success = SlotPhase.READY if phase == SlotPhase.CLASSIFYING else previous
            outcome = previous
            self.record.phase = phase
            try:
                yield
                outcome = success
            except InvalidBootImage as e:
                self.logger.debug("%s: %s failed: %s", self.name, phase.value, e)
                outcome = SlotPhase.CLASSIFY_FAILED
                raise
            except ToolError as e:
                self.logger.debug("%s: %s failed: %s", self.name, phase.value, e)
                if phase == SlotPhase.CLASSIFYING:
                    outcome = SlotPhase.CLASSIFY_FAILED
                raise
            finally:
                self.record.phase = outcome

    def _notify(self) -> None:
        if self._listener:
            self._listener(self.record.snapshot())

    def submit(self, operation: str, *args) -> "Future":
        if operation not in PUBLIC_OPERATIONS:
            raise ValueError(f"Unknown slot operation: {operation}")
        executor = self._executor or _get_default_executor()
        return executor.submit(getattr(self, operation), *args)

    def refresh(self) -> SlotRecord:
        with self._operation(SlotPhase.CLASSIFYING):
            classification = self.classifier.classify(self.boot_path)
            backup_status = self.backups.verify_backup(classification.sha1)
            export_status = self.exports.verify_export(
                classification.sha1, classification.patch_status
            )
            self.record.apply(classification, backup_status, export_status)
        self._notify()
        return self.record.snapshot()

    def export_image(self) -> str:
        with self._operation(SlotPhase.EXPORTING, requires_ready=True):
            entry_id = self.exports.export_image(
                self.boot_path, self.record.sha1, self.record.patch_status
            )
            self.record.export_status = ExportStatus.FOUND
        ui.info(get_string("slot_export_done").format(slot=self.name, path=entry_id))
        self._notify()
        return entry_id

    def restore_from_backup(self, source: ImageSource) -> SlotRecord:
        with self._operation(SlotPhase.RESTORING, requires_ready=True):
            with _open_source(source) as src, self.shell.workspace(self.config.work_dir, "candidate") as work_dir:
                candidate = f"{work_dir}/{const.FN_BOOT}"
                self.shell.write_from(candidate, src)
                status = self.backups.create_backup(candidate, self.record.sha1)
            self.record.backup_status = status
        ui.info(get_string("slot_backup_restored").format(slot=self.name))
        self._notify()
        return self.record.snapshot()


@contextmanager
def _open_source(source: ImageSource) -> Generator[BinaryIO, None, None]:
    if isinstance(source, (bytes, bytearray)):
        yield io.BytesIO(source)
        return
    if hasattr(source, "read"):
        yield source
        return

    try:
        stream = open(Path(source), "rb")
    except OSError as e:
        raise SourceUnavailable(get_string("err_no_image_provided")) from e
    with stream:
        yield stream
