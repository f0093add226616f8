import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PatchStatus(Enum):
    STOCK = "stock"
    PATCHED = "patched"


class BackupStatus(Enum):
    FOUND = "found"
    MISSING = "missing"
    INVALID = "invalid"


class ExportStatus(Enum):
    FOUND = "found"
    MISSING = "missing"
    INVALID = "invalid"


class SlotPhase(Enum):
    UNINITIALIZED = "uninitialized"
    CLASSIFYING = "classifying"
    READY = "ready"
    CLASSIFY_FAILED = "classify_failed"
    EXPORTING = "exporting"
    RESTORING = "restoring"


BUSY_PHASES = frozenset({SlotPhase.CLASSIFYING, SlotPhase.EXPORTING, SlotPhase.RESTORING})


@dataclass(frozen=True)
class Classification:
    patch_status: PatchStatus
    sha1: str


@dataclass
class SlotRecord:
    name: str
    # None until the slot has been classified
    patch_status: Optional[PatchStatus] = None
    sha1: Optional[str] = None
    backup_status: Optional[BackupStatus] = None
    export_status: Optional[ExportStatus] = None
    phase: SlotPhase = SlotPhase.UNINITIALIZED

    @property
    def is_refreshing(self) -> bool:
        return self.phase in BUSY_PHASES

    @property
    def is_classified(self) -> bool:
        return self.patch_status is not None and self.sha1 is not None

    def apply(
        self,
        classification: Classification,
        backup_status: Optional[BackupStatus],
        export_status: Optional[ExportStatus],
    ) -> None:
        self.patch_status = classification.patch_status
        self.sha1 = classification.sha1
        self.backup_status = backup_status
        self.export_status = export_status

    def snapshot(self) -> "SlotRecord":
        return dataclasses.replace(self)
