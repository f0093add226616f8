import shlex

from . import constants as const
from .errors import AlreadyPatched, BackupCommitFailed, HashMismatch, InvalidBootImage, SourceUnavailable
from .i18n import get_string
from .logger import get_logger
from .magiskboot import CPIO_TEST_PATCHED, CPIO_TEST_STOCK, MagiskBoot
from .models import BackupStatus
from .shell import RootShell
from .utils import first_line


def backup_dir(backup_root: str, sha1: str) -> str:
    return f"{backup_root.rstrip('/')}/{const.BACKUP_DIR_PREFIX}{sha1}"


def backup_path(backup_root: str, sha1: str) -> str:
    return f"{backup_dir(backup_root, sha1)}/{const.FN_BACKUP}"


class BackupManager:
    def __init__(
        self,
        shell: RootShell,
        magiskboot: MagiskBoot,
        backup_root: str,
        work_dir: str,
        log_tag: str = const.LOG_TAG,
    ):
        self.shell = shell
        self.magiskboot = magiskboot
        self.backup_root = backup_root
        self.work_dir = work_dir
        self.logger = get_logger(log_tag)

    def verify_backup(self, sha1: str) -> BackupStatus:
        path = backup_path(self.backup_root, sha1)
        if not self.shell.exists(path):
            return BackupStatus.MISSING

        result = self.shell.exec(f"gunzip -c {shlex.quote(path)} | sha1sum | awk '{{ print $1 }}'")
        digest = first_line(result.out)
        if digest == sha1:
            return BackupStatus.FOUND

        self.logger.debug("Backup %s hashes to %s, expected %s", path, digest, sha1)
        return BackupStatus.INVALID

    def create_backup(self, candidate: str, expected_sha1: str) -> BackupStatus:
        # backups only hold stock images, keyed by the whole-image SHA1
        if not self.shell.exists(candidate):
            raise SourceUnavailable(get_string("err_no_image_provided"))

        digest = self.magiskboot.sha1(candidate)
        if digest != expected_sha1:
            self.logger.debug("Candidate %s hashes to %s, expected %s", candidate, digest, expected_sha1)
            raise HashMismatch(get_string("err_invalid_boot_wrong_sha1"))

        with self.shell.workspace(self.work_dir, "restore") as work_dir:
            self.magiskboot.unpack(candidate, work_dir)
            if not self.shell.exists(f"{work_dir}/{const.FN_RAMDISK}"):
                raise InvalidBootImage(get_string("err_invalid_boot_ramdisk_missing"))

            code = self.magiskboot.cpio_test(work_dir)
            if code == CPIO_TEST_PATCHED:
                raise AlreadyPatched(get_string("err_invalid_boot_already_patched"))
            if code != CPIO_TEST_STOCK:
                self.logger.debug("cpio test returned %d for %s", code, candidate)
                raise InvalidBootImage(get_string("err_invalid_boot"))

            self._commit(candidate, expected_sha1)

        status = self.verify_backup(expected_sha1)
        if status != BackupStatus.FOUND:
            raise BackupCommitFailed(get_string("err_backup_restore_failed"))
        return status

    def _commit(self, candidate: str, sha1: str) -> None:
        target_dir = shlex.quote(backup_dir(self.backup_root, sha1))
        target = shlex.quote(f"{backup_dir(self.backup_root, sha1)}/{const.FN_BOOT}")
        steps = [
            f"mkdir -p {target_dir}",
            f"cp {shlex.quote(candidate)} {target}",
            f"gzip -9f {target}",
        ]
        for step in steps:
            result = self.shell.exec(step)
            if not result.is_success:
                self.logger.debug("Backup step failed (%d): %s", result.code, step)
                raise BackupCommitFailed(get_string("err_backup_restore_failed"))
