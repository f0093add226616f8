import json
import sys
from pathlib import Path
from typing import Dict, List, Tuple

LANG_DIR = Path(__file__).parent.resolve() / "lang"
DEFAULT_LANG = "en"

_strings: Dict[str, str] = {}
_fallback: Dict[str, str] = {}


def _read_catalogue(path: Path) -> Dict[str, str]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def get_available_languages() -> List[Tuple[str, str]]:
    languages = []
    for path in LANG_DIR.glob("*.json"):
        try:
            name = _read_catalogue(path).get("lang_native_name", path.stem)
        except (OSError, ValueError):
            name = path.stem
        languages.append((path.stem, name))

    languages.sort(key=lambda x: (x[0] != DEFAULT_LANG, x[1].lower()))
    return languages


def load_lang(lang_code: str = DEFAULT_LANG) -> None:
    global _strings, _fallback

    if not _fallback:
        try:
            _fallback = _read_catalogue(LANG_DIR / f"{DEFAULT_LANG}.json")
        except (OSError, ValueError) as e:
            print(f"[!] Failed to load {DEFAULT_LANG}.json: {e}", file=sys.stderr)

    _strings = _fallback
    if lang_code != DEFAULT_LANG:
        try:
            _strings = _read_catalogue(LANG_DIR / f"{lang_code}.json")
        except (OSError, ValueError) as e:
            print(f"[!] Failed to load language {lang_code}, using {DEFAULT_LANG}: {e}", file=sys.stderr)


def get_string(key: str) -> str:
    if not _fallback:
        load_lang()
    value = _strings.get(key) or _fallback.get(key)
    if value:
        return value
    return _fallback.get("err_missing_key", "[{key}]").replace("{key}", key)
