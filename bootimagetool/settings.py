from dataclasses import dataclass

from . import constants as const


@dataclass(frozen=True)
class EngineConfig:
    magiskboot: str = const.MAGISKBOOT
    backup_root: str = const.BACKUP_ROOT
    block_dir: str = const.BLOCK_DIR
    work_dir: str = const.WORK_DIR
    log_tag: str = const.LOG_TAG

    def boot_path(self, slot_name: str) -> str:
        return f"{self.block_dir}/{slot_name}"
