from pathlib import Path
from typing import BinaryIO, List, Tuple

from . import constants as const
from .classifier import BootImageClassifier
from .errors import ExportWriteFailed, InvalidBootImage, ShellError
from .i18n import get_string
from .logger import get_logger
from .models import ExportStatus, PatchStatus
from .shell import RootShell

Candidate = Tuple[str, str]


def export_stem(sha1: str, patch_status: PatchStatus) -> str:
    suffix = const.EXPORT_PATCHED_SUFFIX if patch_status == PatchStatus.PATCHED else ""
    return f"{const.EXPORT_PREFIX}{sha1[:8]}{suffix}"


def export_filename(sha1: str, patch_status: PatchStatus) -> str:
    return f"{export_stem(sha1, patch_status)}{const.EXPORT_EXT}"


def export_pattern(sha1: str, patch_status: PatchStatus) -> str:
    return f"{export_stem(sha1, patch_status)}*{const.EXPORT_EXT}"


class ExportStore:
    def list_candidates(self, pattern: str) -> List[Candidate]:
        raise NotImplementedError

    def open_read(self, entry_id: str) -> BinaryIO:
        raise NotImplementedError

    def insert(self, name: str) -> str:
        raise NotImplementedError

    def open_write(self, entry_id: str) -> BinaryIO:
        raise NotImplementedError

    def notify_inserted(self, entry_id: str) -> None:
        pass

    def discard(self, entry_id: str) -> None:
        raise NotImplementedError


class DirectoryExportStore(ExportStore):
    def __init__(self, root: Path = const.EXPORT_DIR):
        self.root = Path(root)
        self.logger = get_logger("export")

    def list_candidates(self, pattern: str) -> List[Candidate]:
        if not self.root.is_dir():
            return []
        return sorted(
            ((str(p), p.name) for p in self.root.glob(pattern) if p.is_file()),
            key=lambda c: c[1],
        )

    def open_read(self, entry_id: str) -> BinaryIO:
        return open(entry_id, "rb")

    def insert(self, name: str) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        stem, ext = Path(name).stem, Path(name).suffix
        path = self.root / name
        index = 0
        while True:
            try:
                with open(path, "xb"):
                    pass
                return str(path)
            except FileExistsError:
                index += 1
                path = self.root / f"{stem} ({index}){ext}"

    def open_write(self, entry_id: str) -> BinaryIO:
        return open(entry_id, "wb")

    def notify_inserted(self, entry_id: str) -> None:
        self.logger.debug("Exported %s", entry_id)

    def discard(self, entry_id: str) -> None:
        Path(entry_id).unlink(missing_ok=True)


class ExportManager:
    def __init__(
        self,
        shell: RootShell,
        classifier: BootImageClassifier,
        store: ExportStore,
        work_dir: str,
        log_tag: str = const.LOG_TAG,
    ):
        self.shell = shell
        self.classifier = classifier
        self.store = store
        self.work_dir = work_dir
        self.logger = get_logger(log_tag)

    def find_exports(self, sha1: str, patch_status: PatchStatus) -> List[Candidate]:
        candidates = self.store.list_candidates(export_pattern(sha1, patch_status))
        if patch_status == PatchStatus.STOCK:
            patched_stem = export_stem(sha1, PatchStatus.PATCHED)
            candidates = [c for c in candidates if not c[1].startswith(patched_stem)]
        return sorted(candidates, key=lambda c: c[1])

    def verify_export(self, sha1: str, patch_status: PatchStatus) -> ExportStatus:
        matches = self.find_exports(sha1, patch_status)
        if not matches:
            return ExportStatus.MISSING

        entry_id, name = matches[0]
        with self.shell.workspace(self.work_dir, "export") as work_dir:
            image = f"{work_dir}/{const.FN_BOOT}"
            try:
                with self.store.open_read(entry_id) as src:
                    self.shell.write_from(image, src)
            except OSError as e:
                self.logger.debug("Could not read export %s: %s", name, e)
                return ExportStatus.INVALID

            try:
                classification = self.classifier.classify(image)
            except InvalidBootImage as e:
                self.logger.debug("Export %s is not a valid boot image: %s", name, e)
                return ExportStatus.INVALID

        if classification.sha1 != sha1:
            self.logger.debug("Export %s hashes to %s, expected %s", name, classification.sha1, sha1)
            return ExportStatus.INVALID
        return ExportStatus.FOUND

    def export_image(self, source: str, sha1: str, patch_status: PatchStatus) -> str:
        name = export_filename(sha1, patch_status)
        try:
            entry_id = self.store.insert(name)
        except OSError as e:
            self.logger.debug("Could not create %s: %s", name, e)
            raise ExportWriteFailed(get_string("err_export_failed")) from e

        try:
            with self.store.open_write(entry_id) as dst:
                for chunk in self.shell.read_chunks(source):
                    dst.write(chunk)
        except OSError as e:
            self.store.discard(entry_id)
            self.logger.debug("Could not write %s: %s", entry_id, e)
            raise ExportWriteFailed(get_string("err_export_failed")) from e
        except ShellError:
            self.store.discard(entry_id)
            raise

        self.store.notify_inserted(entry_id)
        return entry_id
