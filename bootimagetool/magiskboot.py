import re
import shlex
from typing import Optional

from . import constants as const
from .shell import RootShell, ShellResult
from .utils import first_line

SHA1_RE = re.compile(r"^[0-9a-f]{40}$")

CPIO_TEST_STOCK = 0
CPIO_TEST_PATCHED = 1


def parse_sha1(result: ShellResult) -> Optional[str]:
    if not result.is_success:
        return None
    line = first_line(result.out)
    if line is None:
        return None
    digest = line.split()[0].lower()
    return digest if SHA1_RE.match(digest) else None


class MagiskBoot:
    def __init__(self, shell: RootShell, binary: str = const.MAGISKBOOT):
        self.shell = shell
        self.binary = binary

    def _cmd(self, *args: str) -> str:
        return " ".join([shlex.quote(self.binary)] + [shlex.quote(a) for a in args])

    def unpack(self, image: str, cwd: str) -> ShellResult:
        return self.shell.exec(self._cmd("unpack", image), cwd=cwd)

    def cpio_test(self, cwd: str) -> int:
        return self.shell.exec(self._cmd("cpio", const.FN_RAMDISK, "test"), cwd=cwd).code

    def sha1(self, path: str) -> Optional[str]:
        return parse_sha1(self.shell.exec(self._cmd("sha1", path)))

    def cpio_sha1(self, cwd: str) -> Optional[str]:
        return parse_sha1(self.shell.exec(self._cmd("cpio", const.FN_RAMDISK, "sha1"), cwd=cwd))
