import json
from pathlib import Path
from typing import Any

APP_DIR = Path(__file__).parent.resolve()
CONFIG_FILE = APP_DIR / "config.json"

_config = {}

def load_config() -> None:
    global _config
    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE, 'r', encoding='utf-8') as f:
                _config = json.load(f)
        except Exception as e:
            raise RuntimeError(f"[!] Critical Error: Failed to load config.json: {e}")
    else:
        raise RuntimeError(f"[!] Critical Error: Configuration file missing: {CONFIG_FILE}")

def _get_cfg(section: str, key: str, default: Any = None) -> Any:
    if not _config:
        load_config()
    try:
        return _config[section][key]
    except KeyError:
        if default is not None:
            return default
        raise RuntimeError(f"[!] Critical Error: Missing configuration key: [{section}][{key}]")

FN_BOOT = "boot.img"
FN_RAMDISK = "ramdisk.cpio"
FN_BACKUP = "boot.img.gz"

BACKUP_DIR_PREFIX = "magisk_backup_"
EXPORT_PREFIX = "boot_"
EXPORT_PATCHED_SUFFIX = "-patched"
EXPORT_EXT = ".img"

SLOT_SUFFIXES = ("_a", "_b")

MAGISKBOOT = _get_cfg("magisk", "magiskboot", "/data/adb/magisk/magiskboot")
BACKUP_ROOT = _get_cfg("magisk", "backup_root", "/data")

SU_BINARY = _get_cfg("device", "su", "su")
BLOCK_DIR = _get_cfg("device", "block_dir", "/dev/block/by-name")
WORK_DIR = _get_cfg("device", "work_dir", "/data/local/tmp/bootimagetool")
ADB_STAGING_DIR = _get_cfg("device", "adb_staging_dir", "/data/local/tmp")

EXPORT_DIR = Path(_get_cfg("export", "directory", "~/Downloads")).expanduser()

LOG_TAG = _get_cfg("logging", "tag", "BootImageTool/SlotState")
LOG_DIR = Path(_get_cfg("logging", "directory", "~/.bootimagetool/log")).expanduser()

VERSION = _config.get("version", "0.0.0")
