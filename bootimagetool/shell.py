import os
import secrets
import shlex
import shutil
import subprocess
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import BinaryIO, Generator, Iterator, List, Optional

import adbutils

from . import constants as const
from . import utils
from .errors import ShellError
from .i18n import get_string
from .logger import get_logger

CHUNK_SIZE = 1024 * 1024

logger = get_logger("shell")


@dataclass
class ShellResult:
    code: int
    out: List[str] = field(default_factory=list)
    err: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.code == 0


class RootShell:
    def _run(self, command: str) -> ShellResult:
        raise NotImplementedError

    def read_chunks(self, path: str) -> Iterator[bytes]:
        raise NotImplementedError

    def write_from(self, path: str, stream: BinaryIO) -> None:
        raise NotImplementedError

    def exec(self, command: str, cwd: Optional[str] = None) -> ShellResult:
        if cwd:
            command = f"cd {shlex.quote(cwd)} && {command}"
        result = self._run(command)
        logger.debug("$ %s -> %d", command, result.code)
        return result

    def exists(self, path: str) -> bool:
        return self.exec(f"test -f {shlex.quote(path)}").is_success

    def remove(self, path: str) -> None:
        self.exec(f"rm -f {shlex.quote(path)}")

    @contextmanager
    def workspace(self, root: str, prefix: str = "work") -> Generator[str, None, None]:
        path = f"{root.rstrip('/')}/{prefix}-{secrets.token_hex(4)}"
        if not self.exec(f"mkdir -p {shlex.quote(path)}").is_success:
            raise ShellError(get_string("shell_err_workspace").format(path=path))
        try:
            yield path
        finally:
            if not self.exec(f"rm -rf {shlex.quote(path)}").is_success:
                logger.warning(get_string("warn_failed_cleanup_workspace").format(path=path))


class LocalRootShell(RootShell):
    def __init__(self, su_binary: str = const.SU_BINARY, as_root: Optional[bool] = None):
        if as_root is None:
            as_root = hasattr(os, "geteuid") and os.geteuid() == 0
        self.su_binary = su_binary
        self.as_root = as_root

    def _argv(self, command: str) -> List[str]:
        if self.as_root:
            return ["sh", "-c", command]
        return [self.su_binary, "-c", command]

    def _run(self, command: str) -> ShellResult:
        try:
            result = utils.run_command(self._argv(command), check=False)
        except OSError as e:
            raise ShellError(get_string("shell_err_unavailable").format(e=e)) from e
        if result.returncode != 0:
            logger.debug(utils.format_command_output(result))
        return ShellResult(
            result.returncode,
            (result.stdout or "").splitlines(),
            (result.stderr or "").splitlines(),
        )

    def read_chunks(self, path: str) -> Iterator[bytes]:
        argv = self._argv(f"cat {shlex.quote(path)}")
        try:
            process = subprocess.Popen(argv, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise ShellError(get_string("shell_err_unavailable").format(e=e)) from e

        with process:
            while True:
                chunk = process.stdout.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
            stderr = process.stderr.read()
            process.wait()

        if process.returncode != 0:
            raise ShellError(
                get_string("shell_err_read").format(
                    path=path, e=stderr.decode("utf-8", errors="ignore").strip()
                )
            )

    def write_from(self, path: str, stream: BinaryIO) -> None:
        argv = self._argv(f"cat > {shlex.quote(path)}")
        try:
            process = subprocess.Popen(argv, stdin=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise ShellError(get_string("shell_err_unavailable").format(e=e)) from e

        with process:
            try:
                shutil.copyfileobj(stream, process.stdin, CHUNK_SIZE)
                process.stdin.close()
            except OSError as e:
                process.kill()
                raise ShellError(get_string("shell_err_write").format(path=path, e=e)) from e
            stderr = process.stderr.read()
            process.wait()

        if process.returncode != 0:
            raise ShellError(
                get_string("shell_err_write").format(
                    path=path, e=stderr.decode("utf-8", errors="ignore").strip()
                )
            )


class AdbRootShell(RootShell):
    def __init__(
        self,
        device: adbutils.AdbDevice,
        staging_dir: str = const.ADB_STAGING_DIR,
        su_binary: str = const.SU_BINARY,
    ):
        self.device = device
        self.staging_dir = staging_dir.rstrip("/")
        self.su_binary = su_binary

    @classmethod
    def connect(
        cls, serial: Optional[str] = None, retries: int = 5, delay: float = 2.0, **kwargs
    ) -> "AdbRootShell":
        for attempt in range(retries):
            try:
                devices = adbutils.adb.device_list()
            except adbutils.AdbError as e:
                raise ShellError(get_string("shell_err_unavailable").format(e=e)) from e

            for device in devices:
                if serial and device.serial != serial:
                    continue
                if device.get_state() == "device":
                    logger.debug("Connected to %s after %d attempt(s)", device.serial, attempt + 1)
                    return cls(device, **kwargs)

            if attempt < retries - 1:
                time.sleep(delay)

        raise ShellError(get_string("shell_err_no_device").format(serial=serial or "*"))

    def _staging_path(self) -> str:
        return f"{self.staging_dir}/bootimagetool-{secrets.token_hex(4)}.img"

    def _run(self, command: str) -> ShellResult:
        # adb shell merges stderr into stdout
        wrapped = f"( {command} ) 2>/dev/null"
        try:
            ret = self.device.shell2([self.su_binary, "-c", wrapped])
        except adbutils.AdbError as e:
            raise ShellError(get_string("shell_err_unavailable").format(e=e)) from e
        return ShellResult(ret.returncode, (ret.output or "").splitlines())

    def read_chunks(self, path: str) -> Iterator[bytes]:
        staged = self._staging_path()
        q_path, q_staged = shlex.quote(path), shlex.quote(staged)
        if not self.exec(f"cp {q_path} {q_staged} && chmod 0644 {q_staged}").is_success:
            self.remove(staged)
            raise ShellError(get_string("shell_err_read").format(path=path, e="cp"))
        try:
            yield from self.device.sync.iter_content(staged)
        except adbutils.AdbError as e:
            raise ShellError(get_string("shell_err_read").format(path=path, e=e)) from e
        finally:
            self.remove(staged)

    def write_from(self, path: str, stream: BinaryIO) -> None:
        staged = self._staging_path()
        try:
            try:
                self.device.sync.push(stream, staged)
            except (adbutils.AdbError, OSError) as e:
                raise ShellError(get_string("shell_err_write").format(path=path, e=e)) from e
            if not self.exec(f"cp {shlex.quote(staged)} {shlex.quote(path)}").is_success:
                raise ShellError(get_string("shell_err_write").format(path=path, e="cp"))
        finally:
            self.remove(staged)
