from . import constants as const
from .errors import InvalidBootImage
from .i18n import get_string
from .logger import get_logger
from .magiskboot import CPIO_TEST_PATCHED, CPIO_TEST_STOCK, MagiskBoot
from .models import Classification, PatchStatus
from .shell import RootShell


class BootImageClassifier:
    """Stock images are keyed by their own SHA1, patched ones by the stock SHA1 in their ramdisk."""

    def __init__(self, shell: RootShell, magiskboot: MagiskBoot, work_dir: str, log_tag: str = const.LOG_TAG):
        self.shell = shell
        self.magiskboot = magiskboot
        self.work_dir = work_dir
        self.logger = get_logger(log_tag)

    def classify(self, image: str) -> Classification:
        with self.shell.workspace(self.work_dir, "classify") as work_dir:
            self.magiskboot.unpack(image, work_dir)

            if not self.shell.exists(f"{work_dir}/{const.FN_RAMDISK}"):
                self.logger.debug("No %s after unpacking %s", const.FN_RAMDISK, image)
                raise InvalidBootImage(get_string("err_invalid_boot_ramdisk_missing"))

            code = self.magiskboot.cpio_test(work_dir)
            if code == CPIO_TEST_STOCK:
                status = PatchStatus.STOCK
                digest = self.magiskboot.sha1(image)
            elif code == CPIO_TEST_PATCHED:
                status = PatchStatus.PATCHED
                digest = self.magiskboot.cpio_sha1(work_dir)
            else:
                self.logger.debug("cpio test returned %d for %s", code, image)
                raise InvalidBootImage(get_string("err_invalid_boot"))

            if digest is None:
                self.logger.debug("No SHA1 reported for %s (%s)", image, status.value)
                raise InvalidBootImage(get_string("err_invalid_boot_sha1"))

        self.logger.debug("%s: %s %s", image, status.value, digest)
        return Classification(status, digest)
